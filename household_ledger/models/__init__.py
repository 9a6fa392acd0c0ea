"""
Data Models Package

This package contains all Pydantic models used by the household ledger.
Everything stored in or read from the ledger conforms to these schemas.
"""

from household_ledger.models.ledger import (
    ENTRY_ADAPTER,
    ENTRY_MODELS,
    PERSONAS,
    SHADOW_SUFFIXES,
    UNASSIGNED_ACCOUNT,
    Account,
    AccountBalance,
    BudgetEntry,
    DashboardView,
    Entry,
    EntryBase,
    EntryKind,
    FixedCostCategory,
    FixedEntry,
    IncomeEntry,
    Interval,
    LedgerEntries,
    LedgerSnapshot,
    Owner,
    Ownership,
    SavingsEntry,
    SavingsType,
    Settlement,
    SettlementDirection,
    Summary,
    ValidationIssue,
    View,
    new_entry_id,
    shadow_id,
)
from household_ledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Constants
    "ENTRY_ADAPTER",
    "ENTRY_MODELS",
    "PERSONAS",
    "SHADOW_SUFFIXES",
    "UNASSIGNED_ACCOUNT",
    # Ledger models
    "Account",
    "AccountBalance",
    "BudgetEntry",
    "DashboardView",
    "Entry",
    "EntryBase",
    "EntryKind",
    "FixedCostCategory",
    "FixedEntry",
    "IncomeEntry",
    "Interval",
    "LedgerEntries",
    "LedgerSnapshot",
    "Owner",
    "Ownership",
    "SavingsEntry",
    "SavingsType",
    "Settlement",
    "SettlementDirection",
    "Summary",
    "ValidationIssue",
    "View",
    "new_entry_id",
    "shadow_id",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
