"""Read-side queries package."""

from household_ledger.queries.settlement import SettlementCalculator
from household_ledger.queries.summary import Aggregator, monthly_amount
from household_ledger.queries.views import ViewFilter, is_visible

__all__ = [
    "Aggregator",
    "SettlementCalculator",
    "ViewFilter",
    "is_visible",
    "monthly_amount",
]
