"""Storage services package."""

from household_ledger.services.storage.interface import (
    DuplicateError,
    LedgerSession,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from household_ledger.services.storage.sqlite_store import (
    SQLiteLedgerSession,
    SQLiteLedgerStorage,
)

__all__ = [
    # Interfaces
    "LedgerSession",
    "LedgerStorageInterface",
    # Implementations
    "SQLiteLedgerSession",
    "SQLiteLedgerStorage",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
]
