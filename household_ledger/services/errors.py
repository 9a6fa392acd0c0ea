"""
Ledger invariant errors.

These are raised when a request is well-formed but would break a rule the
ledger maintains on its own (split families, account references).
"""


class InvariantViolationError(Exception):
    """Base exception for writes that would break a ledger invariant."""
    pass


class ManagedEntryError(InvariantViolationError):
    """Attempted to write or delete a shadow entry directly."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(
            f"Entry '{entry_id}' is managed automatically; edit its primary entry instead"
        )


class AccountInUseError(InvariantViolationError):
    """Attempted to delete an account that entries still reference."""

    def __init__(self, account_name: str, references: int):
        self.account_name = account_name
        self.references = references
        super().__init__(
            f"Account '{account_name}' is used by {references} entries"
        )
