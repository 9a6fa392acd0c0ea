"""
Account Manager

Accounts are referenced by name from every entry, so account changes
cascade:
- Renaming an account renames the reference on every entry
- Deleting an account moves its entries to the "Unassigned" sentinel

Each cascade runs in the same transaction as the account change itself.
"""

from typing import Any, Mapping, Optional, Union

from household_ledger.activity import ActivityLogger
from household_ledger.models.ledger import UNASSIGNED_ACCOUNT, Account
from household_ledger.services.errors import AccountInUseError
from household_ledger.services.storage import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from household_ledger.validation.validator import LedgerValidationError, LedgerValidator


class AccountService:
    """Creates, renames and deletes accounts."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        activity: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._activity = activity or ActivityLogger()

    def upsert_account(self, draft: Union[Mapping[str, Any], Account]) -> Account:
        """
        Create or update an account.

        A changed name is cascaded to every entry that referenced the old name.

        Raises:
            LedgerValidationError: If the draft is invalid
            DuplicateError: If another account already uses the name
        """
        account_id = draft.id if isinstance(draft, Account) else draft.get("id")
        renamed_from = None
        entries_updated = 0

        try:
            account = self._validator.validate_account(draft)
            with self._storage.transaction() as session:
                clash = session.get_account_by_name(account.name)
                if clash is not None and clash.id != account.id:
                    raise DuplicateError(f"An account named '{account.name}' already exists")

                existing = session.get_account(account.id)
                session.save_account(account)

                if existing is not None and existing.name != account.name:
                    renamed_from = existing.name
                    entries_updated = session.rename_account_references(
                        existing.name, account.name
                    )
        except (LedgerValidationError, DuplicateError) as e:
            self._activity.log_rejected("account", account_id, e)
            raise
        except StorageError as e:
            self._activity.log_storage_failed("upsert_account", e)
            raise

        self._activity.log_account_saved(account.id, account.name, account.owner.value)
        if renamed_from is not None:
            self._activity.log_account_renamed(
                account.id, renamed_from, account.name, entries_updated
            )
        return account

    def delete_account(self, account_id: str, reassign: bool = False) -> int:
        """
        Delete an account.

        Args:
            account_id: Account to delete
            reassign: Move referencing entries to "Unassigned". Without it,
                      an account that is still in use is not deleted.

        Returns:
            Number of entries moved to "Unassigned"

        Raises:
            NotFoundError: If the account does not exist
            AccountInUseError: If entries reference it and reassign is False
        """
        try:
            with self._storage.transaction() as session:
                account = session.get_account(account_id)
                if account is None:
                    raise NotFoundError(f"Account '{account_id}' not found")

                references = session.count_account_references(account.name)
                if references and not reassign:
                    raise AccountInUseError(account.name, references)

                moved = 0
                if references:
                    moved = session.rename_account_references(account.name, UNASSIGNED_ACCOUNT)
                session.delete_account(account_id)
        except (NotFoundError, AccountInUseError) as e:
            self._activity.log_rejected("account", account_id, e)
            raise
        except StorageError as e:
            self._activity.log_storage_failed("delete_account", e)
            raise

        self._activity.log_account_deleted(account_id, account.name, moved)
        return moved
