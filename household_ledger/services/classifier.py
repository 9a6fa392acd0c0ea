"""
Account Classifier

Maps an account name to the persona that owns it. Pure lookup, no storage
access; callers build it from the accounts of one consistent read.
"""

from typing import Iterable

from household_ledger.models.ledger import Account, LedgerSnapshot, Ownership


class AccountClassifier:
    """Resolves account names to ownership."""

    def __init__(self, accounts: Iterable[Account]):
        self._owners = {
            account.name: Ownership(account.owner.value) for account in accounts
        }

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> "AccountClassifier":
        return cls(snapshot.accounts)

    def owner_of(self, account_name: str) -> Ownership:
        """
        Ownership of the named account.

        Unknown names (including the "Unassigned" sentinel) classify as
        UNKNOWN rather than raising.
        """
        return self._owners.get(account_name, Ownership.UNKNOWN)

    def is_shared_account(self, account_name: str) -> bool:
        return self.owner_of(account_name) == Ownership.SHARED

    def is_persona_account(self, account_name: str) -> bool:
        return self.owner_of(account_name) in (Ownership.MAIN, Ownership.PARTNER)
