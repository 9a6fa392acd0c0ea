"""Services package."""

from household_ledger.services.accounts import AccountService
from household_ledger.services.classifier import AccountClassifier
from household_ledger.services.errors import (
    AccountInUseError,
    InvariantViolationError,
    ManagedEntryError,
)
from household_ledger.services.splits import SplitCase, SplitDeriver, derive_family
from household_ledger.services.storage import (
    DuplicateError,
    LedgerSession,
    LedgerStorageInterface,
    NotFoundError,
    SQLiteLedgerStorage,
    StorageError,
)
from household_ledger.services.transfer import SnapshotTransfer

__all__ = [
    # Ledger services
    "AccountClassifier",
    "AccountService",
    "SnapshotTransfer",
    "SplitCase",
    "SplitDeriver",
    "derive_family",
    # Invariant errors
    "AccountInUseError",
    "InvariantViolationError",
    "ManagedEntryError",
    # Storage
    "DuplicateError",
    "LedgerSession",
    "LedgerStorageInterface",
    "NotFoundError",
    "SQLiteLedgerStorage",
    "StorageError",
]
