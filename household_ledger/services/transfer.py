"""
Snapshot export and import.

The export document is the full ledger as JSON:

    {"version": 1, "exportedAt": ..., "accounts": [...],
     "fixed": [...], "budget": [...], "income": [...], "savings": [...]}

Import is all-or-nothing: the document is parsed, every split family is
re-checked, and only a fully valid snapshot replaces the ledger, inside one
transaction.
"""

from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from household_ledger.activity import ActivityLogger
from household_ledger.models.ledger import EntryKind, LedgerSnapshot, ValidationIssue
from household_ledger.services.storage import LedgerStorageInterface, StorageError
from household_ledger.validation.validator import (
    LedgerValidationError,
    LedgerValidator,
    issues_from_pydantic,
)

SUPPORTED_VERSION = 1


class SnapshotTransfer:
    """Exports the ledger to JSON and replaces it from a JSON snapshot."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        activity: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._activity = activity or ActivityLogger()

    def export_snapshot(self) -> LedgerSnapshot:
        snapshot = self._storage.load_snapshot()
        self._activity.log_snapshot_exported(len(snapshot.accounts), snapshot.count())
        return snapshot

    def export_json(self, indent: Optional[int] = 2) -> str:
        return self.export_snapshot().model_dump_json(by_alias=True, indent=indent)

    def parse(self, document: Union[str, bytes, Mapping[str, Any]]) -> LedgerSnapshot:
        """
        Parse and fully validate a snapshot without touching storage.

        Raises:
            LedgerValidationError: If the document is malformed or any
                                   split family is inconsistent
        """
        try:
            if isinstance(document, (str, bytes)):
                snapshot = LedgerSnapshot.model_validate_json(document)
            else:
                snapshot = LedgerSnapshot.model_validate(document)
        except ValidationError as e:
            raise LedgerValidationError(issues_from_pydantic(e))

        if snapshot.version != SUPPORTED_VERSION:
            raise LedgerValidationError([ValidationIssue(
                field="version",
                issue_type="unsupported_version",
                message=f"Snapshot version {snapshot.version} is not supported",
                suggested_fix=f"Export the data again with version {SUPPORTED_VERSION}",
            )])

        issues = self._validator.check_snapshot(snapshot)
        if issues:
            raise LedgerValidationError(issues)
        return snapshot

    def import_snapshot(
        self,
        document: Union[str, bytes, Mapping[str, Any]],
    ) -> LedgerSnapshot:
        """
        Replace the whole ledger with a snapshot.

        Returns:
            The imported snapshot

        Raises:
            LedgerValidationError: If the snapshot is invalid (nothing is changed)
            StorageError: If the replacement fails (nothing is changed)
        """
        try:
            snapshot = self.parse(document)
            with self._storage.transaction() as session:
                session.clear()
                for account in snapshot.accounts:
                    session.save_account(account)
                # Primaries before shadows
                for is_shadow in (False, True):
                    for kind in EntryKind:
                        for entry in snapshot.of_kind(kind):
                            if entry.is_shadow == is_shadow:
                                session.save_entry(entry)
        except LedgerValidationError as e:
            self._activity.log_rejected("snapshot", None, e)
            raise
        except StorageError as e:
            self._activity.log_storage_failed("import_snapshot", e)
            raise

        self._activity.log_snapshot_imported(len(snapshot.accounts), snapshot.count())
        return snapshot
