"""
Activity Models for the Household Ledger

Every write to the ledger emits one structured activity event.
This provides:
1. A readable trail in the application log
2. Debugging information when a family write is rejected or fails
3. One place that defines what gets logged for each operation

DESIGN DECISION: Activity events are log lines only. They are not stored
and cannot be replayed; the ledger keeps no version history.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Entries
    ENTRY_SAVED = "entry_saved"
    ENTRY_DELETED = "entry_deleted"
    SHADOWS_REMOVED = "shadows_removed"
    WRITE_REJECTED = "write_rejected"

    # Accounts
    ACCOUNT_SAVED = "account_saved"
    ACCOUNT_RENAMED = "account_renamed"
    ACCOUNT_DELETED = "account_deleted"

    # Snapshots
    SNAPSHOT_EXPORTED = "snapshot_exported"
    SNAPSHOT_IMPORTED = "snapshot_imported"

    # System events
    STORAGE_FAILED = "storage_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'account', 'snapshot')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.entry_saved(entry_id, "fixed", "split", [...])
        event = ActivityEventBuilder.write_rejected("entry", entry_id, reason)
    """

    @staticmethod
    def entry_saved(
        entry_id: str,
        kind: str,
        split_case: str,
        shadow_ids: list[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ENTRY_SAVED,
            entity_type="entry",
            entity_id=entry_id,
            description=f"{kind.capitalize()} entry saved ({split_case})",
            details={
                "kind": kind,
                "split_case": split_case,
                "shadow_ids": shadow_ids,
            },
        )

    @staticmethod
    def shadows_removed(primary_id: str, shadow_ids: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SHADOWS_REMOVED,
            entity_type="entry",
            entity_id=primary_id,
            description=f"Removed {len(shadow_ids)} stale shadow entries",
            details={"shadow_ids": shadow_ids},
        )

    @staticmethod
    def entry_deleted(entry_id: str, shadow_ids: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ENTRY_DELETED,
            entity_type="entry",
            entity_id=entry_id,
            description=f"Entry deleted with {len(shadow_ids)} shadows",
            details={"shadow_ids": shadow_ids},
        )

    @staticmethod
    def write_rejected(
        entity_type: str,
        entity_id: Optional[str],
        reason: str,
        error_code: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.WRITE_REJECTED,
            severity=ActivitySeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Rejected write to {entity_type}",
            details={"error_code": error_code},
            error_message=reason,
        )

    @staticmethod
    def account_saved(account_id: str, name: str, owner: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_SAVED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account saved: {name}",
            details={"name": name, "owner": owner},
        )

    @staticmethod
    def account_renamed(
        account_id: str,
        old_name: str,
        new_name: str,
        entries_updated: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_RENAMED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account renamed: {old_name} -> {new_name}",
            details={
                "old_name": old_name,
                "new_name": new_name,
                "entries_updated": entries_updated,
            },
        )

    @staticmethod
    def account_deleted(
        account_id: str,
        name: str,
        entries_reassigned: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account deleted: {name}",
            details={
                "name": name,
                "entries_reassigned": entries_reassigned,
            },
        )

    @staticmethod
    def snapshot_exported(accounts: int, entries: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SNAPSHOT_EXPORTED,
            entity_type="snapshot",
            description=f"Snapshot exported: {accounts} accounts, {entries} entries",
            details={"accounts": accounts, "entries": entries},
        )

    @staticmethod
    def snapshot_imported(accounts: int, entries: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SNAPSHOT_IMPORTED,
            entity_type="snapshot",
            description=f"Snapshot imported: {accounts} accounts, {entries} entries",
            details={"accounts": accounts, "entries": entries},
        )

    @staticmethod
    def storage_failed(operation: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORAGE_FAILED,
            severity=ActivitySeverity.ERROR,
            description=f"Storage failure during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
