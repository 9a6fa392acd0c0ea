"""
Main Orchestrator for the Household Ledger

This module ties together all the components and defines the
operations the dashboard (or any other caller) uses:
1. Bookkeeping (entries, accounts, snapshot import)
2. Reporting (lists, per-view summaries, settlement, export)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Callers never write shadows; the split deriver owns them
- Every read works on one consistent snapshot of the ledger
- The view is always passed explicitly, there is no "current view"
"""

from typing import Any, Mapping, Optional, Union

from household_ledger.activity import ActivityLogger, configure_logging
from household_ledger.config import Settings, get_settings
from household_ledger.models.ledger import (
    Account,
    AccountBalance,
    DashboardView,
    EntryBase,
    EntryKind,
    LedgerEntries,
    LedgerSnapshot,
    Settlement,
    Summary,
    View,
)
from household_ledger.queries import Aggregator, SettlementCalculator, ViewFilter
from household_ledger.services import (
    AccountService,
    LedgerStorageInterface,
    SnapshotTransfer,
    SplitDeriver,
    SQLiteLedgerStorage,
)
from household_ledger.validation import LedgerValidator


class BookkeepingFlow:
    """
    Orchestrates every write to the ledger.

    Entry writes go through the split deriver, account writes through the
    account service, and whole-ledger replacement through snapshot import.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        split_deriver: Optional[SplitDeriver] = None,
        account_service: Optional[AccountService] = None,
        transfer: Optional[SnapshotTransfer] = None,
    ):
        self._storage = storage
        self._split_deriver = split_deriver or SplitDeriver(storage)
        self._account_service = account_service or AccountService(storage)
        self._transfer = transfer or SnapshotTransfer(storage)

    def upsert_entry(
        self,
        category: Union[EntryKind, str],
        draft: Union[Mapping[str, Any], EntryBase],
        split_requested: bool = False,
    ) -> str:
        """
        Create or update an entry and its split shares.

        Returns:
            The primary entry's id
        """
        return self._split_deriver.upsert_entry(category, draft, split_requested)

    def delete_entry(self, entry_id: str) -> list[str]:
        """Delete an entry and its split shares. Returns the removed share ids."""
        return self._split_deriver.delete_entry(entry_id)

    def upsert_account(self, draft: Union[Mapping[str, Any], Account]) -> Account:
        return self._account_service.upsert_account(draft)

    def delete_account(self, account_id: str, reassign: bool = True) -> int:
        """
        Delete an account, moving its entries to "Unassigned".

        Returns:
            Number of entries moved
        """
        return self._account_service.delete_account(account_id, reassign=reassign)

    def import_snapshot(
        self,
        document: Union[str, bytes, Mapping[str, Any]],
    ) -> LedgerSnapshot:
        """Replace the whole ledger with a validated snapshot."""
        return self._transfer.import_snapshot(document)


class ReportingFlow:
    """
    Orchestrates every read of the ledger.

    Each call loads one snapshot and computes from it, so a primary is
    never seen without its shares.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        transfer: Optional[SnapshotTransfer] = None,
    ):
        self._storage = storage
        self._transfer = transfer or SnapshotTransfer(storage)

    def list_accounts(self) -> list[Account]:
        with self._storage.read() as session:
            return session.list_accounts()

    def list_entries(self) -> LedgerEntries:
        """All entries, shares included, grouped by category."""
        with self._storage.read() as session:
            return session.list_entries()

    def filtered(
        self,
        category: Union[EntryKind, str],
        view: Union[View, str],
    ) -> list[EntryBase]:
        """Entries of one category as seen from one view."""
        return ViewFilter(self.list_entries()).filtered(category, view)

    def get_summary(self, view: Union[View, str]) -> Summary:
        return Aggregator(self._storage.load_snapshot()).summarize(view)

    def get_settlement(self) -> Settlement:
        return SettlementCalculator(self._storage.load_snapshot()).settlement()

    def get_account_balances(self, view: Union[View, str]) -> list[AccountBalance]:
        return Aggregator(self._storage.load_snapshot()).account_balances(view)

    def get_dashboard(self, view: Union[View, str]) -> DashboardView:
        """
        Summary, account rollups and (combined view only) settlement,
        all computed from the same snapshot.
        """
        view = View(view)
        snapshot = self._storage.load_snapshot()
        aggregator = Aggregator(snapshot)

        settlement = None
        if view == View.COMBINED:
            settlement = SettlementCalculator(snapshot).settlement()

        return DashboardView(
            view=view,
            summary=aggregator.summarize(view),
            settlement=settlement,
            balances=aggregator.account_balances(view),
        )

    def export_snapshot(self) -> str:
        """The whole ledger as a JSON document."""
        return self._transfer.export_json()


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[BookkeepingFlow, ReportingFlow, SQLiteLedgerStorage]:
    """
    Factory function to create all application components.

    Configures logging, opens (and if needed migrates) the SQLite ledger
    and wires both flows to it.

    Returns:
        (bookkeeping_flow, reporting_flow, storage)
    """
    settings = settings or get_settings()

    log_settings = settings.logging
    configure_logging(level=log_settings.level, json_output=log_settings.json_output)

    storage_settings = settings.storage
    storage = SQLiteLedgerStorage(
        db_path=storage_settings.path,
        timeout=storage_settings.timeout_seconds,
    )

    activity = ActivityLogger()
    validator = LedgerValidator()
    transfer = SnapshotTransfer(storage, validator, activity)

    bookkeeping_flow = BookkeepingFlow(
        storage=storage,
        split_deriver=SplitDeriver(storage, validator, activity),
        account_service=AccountService(storage, validator, activity),
        transfer=transfer,
    )
    reporting_flow = ReportingFlow(storage=storage, transfer=transfer)

    return bookkeeping_flow, reporting_flow, storage
