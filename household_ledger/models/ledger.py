"""
Core Data Models for the Household Ledger

These models define the strict schemas for everything stored in or
derived from the ledger:
1. Accounts and the four entry categories (fixed, budget, income, savings)
2. Split families (a primary entry plus its automatically managed shadows)
3. Read-side results (summaries, settlement, account rollups)

DESIGN DECISION: Entries are a tagged union discriminated by `kind`.
Category-specific fields (interval, fixed-cost category, savings type) live
only on the model that needs them instead of as optional columns on one
record.

All amounts are integer cents. Floats are rejected, not rounded.
The JSON form uses camelCase names (paidBy, isShared, linkedId).
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Iterator, Literal, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from household_ledger.money import half_share


# Sentinel account name that orphaned entries are moved to
UNASSIGNED_ACCOUNT = "Unassigned"

IBAN_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{11,30}$")


# =============================================================================
# ENUMS
# =============================================================================

class Owner(str, Enum):
    """Who an entry or account belongs to."""
    MAIN = "main"
    PARTNER = "partner"
    SHARED = "shared"

    @property
    def counterpart(self) -> "Owner":
        """The other persona. Only defined for main and partner."""
        if self is Owner.MAIN:
            return Owner.PARTNER
        if self is Owner.PARTNER:
            return Owner.MAIN
        raise ValueError("The shared owner has no counterpart")


PERSONAS = (Owner.MAIN, Owner.PARTNER)


class Ownership(str, Enum):
    """
    Result of classifying an account name.

    UNKNOWN is a normal result (the "Unassigned" sentinel, or a name
    that no longer matches any account).
    """
    MAIN = "main"
    PARTNER = "partner"
    SHARED = "shared"
    UNKNOWN = "unknown"


class View(str, Enum):
    """Aggregation lens for reads."""
    MAIN = "main"
    PARTNER = "partner"
    COMBINED = "combined"


class EntryKind(str, Enum):
    """The four ledger categories."""
    FIXED = "fixed"
    BUDGET = "budget"
    INCOME = "income"
    SAVINGS = "savings"


class Interval(str, Enum):
    """Billing interval of a fixed cost."""
    MONTHLY = "monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"

    @property
    def months(self) -> int:
        return {"monthly": 1, "semiannual": 6, "annual": 12}[self.value]


class FixedCostCategory(str, Enum):
    """
    Category of a fixed cost.

    INSURANCE is special: it is reported as "security" in summaries.
    """
    INSURANCE = "insurance"
    SUBSCRIPTION = "subscription"
    MEMBERSHIP = "membership"
    CAR = "car"
    HOUSING = "housing"
    OTHER = "other"


class SavingsType(str, Enum):
    CASH = "cash"
    PLAN = "plan"


class SettlementDirection(str, Enum):
    PARTNER_OWES_MAIN = "partnerOwesMain"
    MAIN_OWES_PARTNER = "mainOwesPartner"
    SETTLED = "settled"


SHADOW_SUFFIXES = tuple(f"_{persona.value}" for persona in PERSONAS)


def new_entry_id() -> str:
    return uuid4().hex


def shadow_id(primary_id: str, persona: Owner) -> str:
    """Deterministic id of the shadow holding `persona`'s share."""
    return f"{primary_id}_{persona.value}"


def iban_checksum_valid(iban: str) -> bool:
    """ISO 7064 mod-97 check on a normalized IBAN."""
    rearranged = iban[4:] + iban[:4]
    digits = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(digits) % 97 == 1


# =============================================================================
# ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """
    A bank account.

    The name is what entries reference, so it must be unique.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        default_factory=new_entry_id,
        min_length=1,
        max_length=100,
        description="Opaque stable identifier",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique display label, referenced by entries",
    )
    owner: Owner = Field(
        ...,
        description="Which persona owns the account, or shared for joint accounts",
    )
    iban: Optional[str] = Field(
        default=None,
        description="IBAN, advisory only",
    )

    @field_validator("name")
    @classmethod
    def reject_sentinel_name(cls, v: str) -> str:
        if v.casefold() == UNASSIGNED_ACCOUNT.casefold():
            raise ValueError(f"'{UNASSIGNED_ACCOUNT}' is reserved for orphaned entries")
        return v

    @field_validator("iban", mode="before")
    @classmethod
    def normalize_iban(cls, v):
        if v is None:
            return None
        v = "".join(str(v).split()).upper()
        return v or None

    @field_validator("iban")
    @classmethod
    def validate_iban(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not IBAN_PATTERN.match(v):
            raise ValueError("IBAN must be a country code, two check digits and 11-30 letters or digits")
        if not iban_checksum_valid(v):
            raise ValueError("IBAN check digits do not match")
        return v


# =============================================================================
# ENTRIES
# =============================================================================

class EntryBase(BaseModel):
    """
    Fields shared by every ledger entry.

    owner   - whose budget the entry counts against
    paid_by - whose money actually left an account (defaults to owner)
    linked_id is set only on shadows and points at their primary.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        default_factory=new_entry_id,
        min_length=1,
        max_length=100,
    )
    name: str = Field(..., min_length=1, max_length=200)
    amount: int = Field(
        ...,
        ge=0,
        strict=True,
        description="Amount in cents",
    )
    account: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Name of the account the money moves through",
    )
    owner: Owner = Owner.MAIN
    paid_by: Optional[Owner] = None
    is_shared: bool = False
    linked_id: Optional[str] = None

    @model_validator(mode="after")
    def default_payer(self):
        if self.paid_by is None:
            self.paid_by = self.owner
        return self

    @property
    def is_shadow(self) -> bool:
        return self.linked_id is not None

    @property
    def is_payer_split(self) -> bool:
        """A persona-owned primary whose counterpart owes half."""
        return (
            self.is_shared
            and self.linked_id is None
            and self.owner != Owner.SHARED
        )

    def share_for(self, persona: Owner) -> "EntryBase":
        """The shadow holding `persona`'s half of this primary."""
        return self.model_copy(update={
            "id": shadow_id(self.id, persona),
            "amount": half_share(self.amount),
            "owner": persona,
            "paid_by": self.paid_by,
            "is_shared": True,
            "linked_id": self.id,
        })


class FixedEntry(EntryBase):
    """A recurring cost (rent, insurance, subscriptions)."""
    kind: Literal["fixed"] = "fixed"
    interval: Interval = Interval.MONTHLY
    category: FixedCostCategory = FixedCostCategory.OTHER

    @computed_field(alias="isSecurity")
    @property
    def is_security(self) -> bool:
        """Always derived from the category, never taken from input."""
        return self.category == FixedCostCategory.INSURANCE


class BudgetEntry(EntryBase):
    """Discretionary monthly spending."""
    kind: Literal["budget"] = "budget"


class IncomeEntry(EntryBase):
    kind: Literal["income"] = "income"


class SavingsEntry(EntryBase):
    kind: Literal["savings"] = "savings"
    savings_type: SavingsType = Field(default=SavingsType.CASH, alias="type")


Entry = Annotated[
    Union[FixedEntry, BudgetEntry, IncomeEntry, SavingsEntry],
    Field(discriminator="kind"),
]

ENTRY_ADAPTER: TypeAdapter = TypeAdapter(Entry)

ENTRY_MODELS: dict[EntryKind, type[EntryBase]] = {
    EntryKind.FIXED: FixedEntry,
    EntryKind.BUDGET: BudgetEntry,
    EntryKind.INCOME: IncomeEntry,
    EntryKind.SAVINGS: SavingsEntry,
}


class LedgerEntries(BaseModel):
    """All entries grouped by category."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    fixed: list[FixedEntry] = Field(default_factory=list)
    budget: list[BudgetEntry] = Field(default_factory=list)
    income: list[IncomeEntry] = Field(default_factory=list)
    savings: list[SavingsEntry] = Field(default_factory=list)

    def of_kind(self, kind: Union[EntryKind, str]) -> list:
        return getattr(self, EntryKind(kind).value)

    def add(self, entry: EntryBase) -> None:
        self.of_kind(entry.kind).append(entry)

    def all(self) -> Iterator[EntryBase]:
        for kind in EntryKind:
            yield from self.of_kind(kind)

    def by_id(self) -> dict[str, EntryBase]:
        return {entry.id: entry for entry in self.all()}

    def count(self) -> int:
        return sum(len(self.of_kind(kind)) for kind in EntryKind)


class LedgerSnapshot(LedgerEntries):
    """
    Full ledger state: accounts plus all entries.

    Used both as the consistent read model and as the export/import document.
    """
    version: int = Field(default=1, ge=1)
    exported_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    accounts: list[Account] = Field(default_factory=list)


# =============================================================================
# READ-SIDE RESULTS
# =============================================================================

class Summary(BaseModel):
    """
    Monthly totals for one view, in cents.

    security - insurance fixed costs
    fixed    - all other fixed costs
    life     - discretionary budget
    wealth   - savings contributions
    buffer   - income minus everything else, may be negative
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    view: View
    security: int = 0
    fixed: int = 0
    life: int = 0
    wealth: int = 0
    income: int = 0
    buffer: int = 0
    unassigned_entries: int = Field(
        default=0,
        ge=0,
        description="Visible entries booked on an account with unknown owner",
    )

    @model_validator(mode="after")
    def check_buffer(self) -> "Summary":
        if self.buffer != self.income - self.outflow:
            raise ValueError("Buffer must equal income minus all outflows")
        return self

    @property
    def outflow(self) -> int:
        return self.security + self.fixed + self.life + self.wealth

    def yearly(self) -> "Summary":
        """Every figure scaled to a year."""
        return Summary(
            view=self.view,
            security=self.security * 12,
            fixed=self.fixed * 12,
            life=self.life * 12,
            wealth=self.wealth * 12,
            income=self.income * 12,
            buffer=self.buffer * 12,
            unassigned_entries=self.unassigned_entries,
        )

    def chart_values(self) -> dict[str, int]:
        """Slices for a chart. Only here is the buffer floored at zero."""
        return {
            "security": self.security,
            "fixed": self.fixed,
            "life": self.life,
            "wealth": self.wealth,
            "buffer": max(0, self.buffer),
        }


class Settlement(BaseModel):
    """Net debt between the two personas."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount_owed: int = Field(..., ge=0)
    direction: SettlementDirection
    partner_owes_main: int = Field(default=0, ge=0)
    main_owes_partner: int = Field(default=0, ge=0)

    @classmethod
    def from_totals(cls, partner_owes_main: int, main_owes_partner: int) -> "Settlement":
        diff = partner_owes_main - main_owes_partner
        if diff > 0:
            direction = SettlementDirection.PARTNER_OWES_MAIN
        elif diff < 0:
            direction = SettlementDirection.MAIN_OWES_PARTNER
        else:
            direction = SettlementDirection.SETTLED
        return cls(
            amount_owed=abs(diff),
            direction=direction,
            partner_owes_main=partner_owes_main,
            main_owes_partner=main_owes_partner,
        )


class AccountBalance(BaseModel):
    """Monthly money flow through one account."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    account: str
    ownership: Ownership
    inflow: int = 0
    outflow: int = 0

    @computed_field
    @property
    def net(self) -> int:
        return self.inflow - self.outflow


class DashboardView(BaseModel):
    """Everything a dashboard needs for one view."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    view: View
    summary: Summary
    settlement: Optional[Settlement] = Field(
        default=None,
        description="Only present in the combined view",
    )
    balances: list[AccountBalance] = Field(default_factory=list)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue",
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'int_type', 'unknown_account')",
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue",
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )
    suggested_fix: Optional[str] = None
