"""
Aggregator

Computes per-view monthly totals and per-account money flow.

Bucket mapping:
    fixed (insurance)  -> security
    fixed (other)      -> fixed
    budget             -> life
    savings            -> wealth
    income             -> income

buffer = income - (security + fixed + life + wealth), never clamped.

Fixed costs are normalized to a monthly figure first (semiannual / 6,
annual / 12). A payer-split primary only counts half of that monthly
figure; the other half is the counterpart's shadow. Shared-account
masters are never halved.
"""

from collections import defaultdict
from typing import Union

from household_ledger.models.ledger import (
    AccountBalance,
    EntryBase,
    EntryKind,
    FixedCostCategory,
    FixedEntry,
    LedgerSnapshot,
    Ownership,
    Summary,
    View,
)
from household_ledger.money import divide_cents, half_share
from household_ledger.queries.views import ViewFilter
from household_ledger.services.classifier import AccountClassifier


def monthly_amount(entry: EntryBase) -> int:
    """Amount per month in cents. Only fixed costs have an interval."""
    if isinstance(entry, FixedEntry):
        return divide_cents(entry.amount, entry.interval.months)
    return entry.amount


class Aggregator:
    """Summaries and account rollups over one ledger snapshot."""

    def __init__(self, snapshot: LedgerSnapshot):
        self._views = ViewFilter(snapshot)
        self._classifier = AccountClassifier.from_snapshot(snapshot)
        self._account_names = [account.name for account in snapshot.accounts]

    def summarize(self, view: Union[View, str]) -> Summary:
        view = View(view)
        totals = defaultdict(int)

        for entry in self._views.filtered(EntryKind.FIXED, view):
            amount = monthly_amount(entry)
            if entry.is_payer_split:
                amount = half_share(amount)
            if entry.category == FixedCostCategory.INSURANCE:
                totals["security"] += amount
            else:
                totals["fixed"] += amount

        totals["life"] = sum(e.amount for e in self._views.filtered(EntryKind.BUDGET, view))
        totals["wealth"] = sum(e.amount for e in self._views.filtered(EntryKind.SAVINGS, view))
        totals["income"] = sum(e.amount for e in self._views.filtered(EntryKind.INCOME, view))

        outflow = totals["security"] + totals["fixed"] + totals["life"] + totals["wealth"]
        unassigned = sum(
            1 for entry in self._views.visible(view)
            if self._classifier.owner_of(entry.account) == Ownership.UNKNOWN
        )

        return Summary(
            view=view,
            security=totals["security"],
            fixed=totals["fixed"],
            life=totals["life"],
            wealth=totals["wealth"],
            income=totals["income"],
            buffer=totals["income"] - outflow,
            unassigned_entries=unassigned,
        )

    def account_balances(self, view: Union[View, str]) -> list[AccountBalance]:
        """
        Monthly inflow and outflow per account for one view.

        Shadows on accounts that are not shared are skipped: no money moves
        for them on that account.
        """
        view = View(view)
        inflow = defaultdict(int)
        outflow = defaultdict(int)
        names = list(self._account_names)

        for entry in self._views.visible(view):
            if entry.is_shadow and not self._classifier.is_shared_account(entry.account):
                continue
            if entry.account not in names:
                names.append(entry.account)
            if entry.kind == EntryKind.INCOME:
                inflow[entry.account] += entry.amount
            else:
                outflow[entry.account] += monthly_amount(entry)

        return [
            AccountBalance(
                account=name,
                ownership=self._classifier.owner_of(name),
                inflow=inflow[name],
                outflow=outflow[name],
            )
            for name in names
        ]
