"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the split logic decoupled from SQL
2. Swap SQLite for another backend later
3. Make the transaction boundary explicit

Every multi-row change (a split family, a cascade delete, an account
rename) happens inside ONE `transaction()` block. Either all rows are
written or none are.

Reads go through `read()` so a primary is never observed without its
shadows.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Iterable, Optional

from household_ledger.models.ledger import (
    Account,
    EntryBase,
    LedgerEntries,
    LedgerSnapshot,
)


class LedgerSession(ABC):
    """
    Row-level operations available inside one transaction.

    Sessions are handed out by `LedgerStorageInterface.transaction()`
    and `read()` and must not be used after the block ends.
    """

    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[EntryBase]:
        """
        Retrieve an entry by its ID.

        Returns:
            The entry if found, None otherwise
        """
        pass

    @abstractmethod
    def list_entries(self) -> LedgerEntries:
        """Return every entry grouped by category."""
        pass

    @abstractmethod
    def save_entry(self, entry: EntryBase) -> None:
        """
        Insert or update an entry by id.

        Updating a primary must never remove its shadows as a side effect.
        """
        pass

    @abstractmethod
    def delete_entry(self, entry_id: str) -> bool:
        """
        Delete one entry.

        Returns:
            True if a row was deleted
        """
        pass

    @abstractmethod
    def delete_linked(
        self,
        primary_id: str,
        keep: Iterable[str] = (),
    ) -> list[str]:
        """
        Delete shadows of `primary_id` except the ids in `keep`.

        Returns:
            IDs of the deleted shadows
        """
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[Account]:
        pass

    @abstractmethod
    def save_account(self, account: Account) -> None:
        """
        Insert or update an account by id.

        Raises:
            DuplicateError: If another account already has this name
        """
        pass

    @abstractmethod
    def delete_account(self, account_id: str) -> bool:
        pass

    @abstractmethod
    def count_account_references(self, name: str) -> int:
        """Number of entries booked on the account called `name`."""
        pass

    @abstractmethod
    def rename_account_references(self, old_name: str, new_name: str) -> int:
        """
        Point every entry on `old_name` at `new_name`.

        Returns:
            Number of entries updated
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete all entries and accounts."""
        pass


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage.

    Any storage implementation must hand out sessions whose changes are
    committed atomically when the block exits normally and rolled back
    when it raises.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[LedgerSession]:
        """
        Open a write transaction.

        Raises:
            StorageError: If the transaction cannot be started or committed
        """
        pass

    @abstractmethod
    def read(self) -> AbstractContextManager[LedgerSession]:
        """Open a read-only transaction over a consistent snapshot."""
        pass

    def load_snapshot(self) -> LedgerSnapshot:
        """Load accounts and all entries from one consistent read."""
        with self.read() as session:
            accounts = session.list_accounts()
            entries = session.list_entries()
        return LedgerSnapshot(
            accounts=accounts,
            fixed=entries.fixed,
            budget=entries.budget,
            income=entries.income,
            savings=entries.savings,
        )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
