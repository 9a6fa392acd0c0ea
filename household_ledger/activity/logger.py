"""
Activity Logger

DESIGN DECISION: Every write to the ledger is logged as one structured event.
This provides:
1. Traceability of split derivations and cascades
2. Debugging capability when a family write is rejected or rolled back
3. A consistent log format (JSON by default) for every component

The activity logger:
- Is synchronous, like every other ledger operation
- Never persists anything (log output only)
"""

import logging
import sys
from typing import Optional

import structlog

from household_ledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure stdlib logging and structlog for the whole application.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ActivityLogger:
    """
    Central activity logging service.

    Writes one structured log line per event at the event's severity.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or structlog.get_logger("household_ledger.activity")

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at its severity."""
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("ledger_activity", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("ledger_activity", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("ledger_activity", **log_dict)
        else:
            self._logger.info("ledger_activity", **log_dict)

    def log_entry_saved(
        self,
        entry_id: str,
        kind: str,
        split_case: str,
        shadow_ids: list[str],
    ) -> None:
        self.log(ActivityEventBuilder.entry_saved(entry_id, kind, split_case, shadow_ids))

    def log_shadows_removed(self, primary_id: str, shadow_ids: list[str]) -> None:
        if shadow_ids:
            self.log(ActivityEventBuilder.shadows_removed(primary_id, shadow_ids))

    def log_entry_deleted(self, entry_id: str, shadow_ids: list[str]) -> None:
        self.log(ActivityEventBuilder.entry_deleted(entry_id, shadow_ids))

    def log_rejected(
        self,
        entity_type: str,
        entity_id: Optional[str],
        error: Exception,
    ) -> None:
        """Log a write refused for validation, invariant or not-found reasons."""
        self.log(ActivityEventBuilder.write_rejected(
            entity_type=entity_type,
            entity_id=entity_id,
            reason=str(error),
            error_code=type(error).__name__,
        ))

    def log_account_saved(self, account_id: str, name: str, owner: str) -> None:
        self.log(ActivityEventBuilder.account_saved(account_id, name, owner))

    def log_account_renamed(
        self,
        account_id: str,
        old_name: str,
        new_name: str,
        entries_updated: int,
    ) -> None:
        self.log(ActivityEventBuilder.account_renamed(
            account_id, old_name, new_name, entries_updated
        ))

    def log_account_deleted(
        self,
        account_id: str,
        name: str,
        entries_reassigned: int,
    ) -> None:
        self.log(ActivityEventBuilder.account_deleted(account_id, name, entries_reassigned))

    def log_snapshot_exported(self, accounts: int, entries: int) -> None:
        self.log(ActivityEventBuilder.snapshot_exported(accounts, entries))

    def log_snapshot_imported(self, accounts: int, entries: int) -> None:
        self.log(ActivityEventBuilder.snapshot_imported(accounts, entries))

    def log_storage_failed(self, operation: str, error: Exception) -> None:
        self.log(ActivityEventBuilder.storage_failed(operation, str(error)))
