"""
Tests for the Household Ledger models

Test strategy:
1. Unit tests for individual components (models, validators, helpers)
2. Integration tests for flows against a throwaway SQLite file
3. No network or UI in tests
"""

import pytest
from unittest.mock import MagicMock

from household_ledger.activity import ActivityLogger
from household_ledger.models.ledger import (
    ENTRY_ADAPTER,
    Account,
    AccountBalance,
    BudgetEntry,
    FixedCostCategory,
    FixedEntry,
    IncomeEntry,
    Interval,
    LedgerEntries,
    Owner,
    Ownership,
    SavingsEntry,
    SavingsType,
    Settlement,
    SettlementDirection,
    Summary,
    View,
    shadow_id,
)
from household_ledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


class TestAccountModel:
    """Tests for the Account model."""

    def test_account_creation(self):
        """Test Account creation with a generated id."""
        account = Account(name="Joint", owner=Owner.SHARED)
        assert account.name == "Joint"
        assert account.owner == Owner.SHARED
        assert account.id

    def test_account_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        account = Account(name="  Joint  ", owner="shared")
        assert account.name == "Joint"

    def test_account_normalizes_iban(self):
        """Test that the IBAN is upper-cased and spaces removed."""
        account = Account(name="Joint", owner="shared", iban="de89 3704 0044 0532 0130 00")
        assert account.iban == "DE89370400440532013000"

    def test_account_rejects_bad_iban_checksum(self):
        """Test that an IBAN with wrong check digits is rejected."""
        with pytest.raises(ValueError, match="check digits"):
            Account(name="Joint", owner="shared", iban="DE00370400440532013000")

    def test_account_rejects_malformed_iban(self):
        """Test that an IBAN without a country code is rejected."""
        with pytest.raises(ValueError):
            Account(name="Joint", owner="shared", iban="1234")

    def test_account_rejects_reserved_name(self):
        """Test that the orphan sentinel cannot be used as an account name."""
        with pytest.raises(ValueError, match="reserved"):
            Account(name="unassigned", owner="main")

    def test_account_rejects_unknown_owner(self):
        """Test that only main, partner and shared are owners."""
        with pytest.raises(ValueError):
            Account(name="Joint", owner="grandma")


class TestEntryModels:
    """Tests for the entry union."""

    def test_paid_by_defaults_to_owner(self):
        """Test that the payer defaults to the owner."""
        entry = BudgetEntry(name="Food", amount=40000, account="Joint", owner="partner")
        assert entry.paid_by == Owner.PARTNER

    def test_paid_by_defaults_to_shared_for_masters(self):
        """Test that shared entries are paid by shared by default."""
        entry = FixedEntry(name="Rent", amount=120000, account="Joint", owner="shared")
        assert entry.paid_by == Owner.SHARED

    def test_explicit_paid_by_is_kept(self):
        """Test that an explicit payer is not overwritten."""
        entry = BudgetEntry(name="Food", amount=100, account="A", owner="main", paid_by="partner")
        assert entry.paid_by == Owner.PARTNER

    def test_float_amount_rejected(self):
        """Test that float amounts are rejected, not rounded."""
        with pytest.raises(ValueError):
            BudgetEntry(name="Food", amount=12.5, account="A")
        with pytest.raises(ValueError):
            BudgetEntry(name="Food", amount=1200.0, account="A")

    def test_negative_amount_rejected(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            IncomeEntry(name="Salary", amount=-1, account="A")

    def test_is_security_derived_from_category(self):
        """Test that insurance is security and the input flag is ignored."""
        insurance = FixedEntry(name="Liability", amount=1000, account="A", category="insurance")
        other = FixedEntry.model_validate({
            "name": "Netflix",
            "amount": 1299,
            "account": "A",
            "category": "subscription",
            "isSecurity": True,
        })
        assert insurance.is_security is True
        assert other.is_security is False

    def test_camel_case_serialization(self):
        """Test the JSON form uses camelCase names."""
        entry = FixedEntry(name="Rent", amount=100, account="A", category="insurance")
        data = entry.model_dump(by_alias=True)
        assert data["paidBy"] == Owner.MAIN
        assert data["isShared"] is False
        assert data["linkedId"] is None
        assert data["isSecurity"] is True

    def test_savings_type_alias(self):
        """Test savings type is read from the 'type' key."""
        entry = SavingsEntry.model_validate({
            "name": "ETF", "amount": 20000, "account": "A", "type": "plan",
        })
        assert entry.savings_type == SavingsType.PLAN

    def test_discriminated_union(self):
        """Test that the kind tag selects the model."""
        entry = ENTRY_ADAPTER.validate_python({
            "kind": "fixed", "name": "Car", "amount": 6000, "account": "A",
            "interval": "semiannual", "category": "car",
        })
        assert isinstance(entry, FixedEntry)
        assert entry.interval == Interval.SEMIANNUAL
        assert entry.category == FixedCostCategory.CAR

    def test_unknown_kind_rejected(self):
        """Test that an unknown kind tag is rejected."""
        with pytest.raises(ValueError):
            ENTRY_ADAPTER.validate_python({"kind": "rent", "name": "x", "amount": 1, "account": "A"})

    def test_payer_split_property(self):
        """Test which entries count as payer-split primaries."""
        split = FixedEntry(name="Gym", amount=3000, account="A", is_shared=True)
        master = FixedEntry(name="Rent", amount=3000, account="A", owner="shared", is_shared=True)
        shadow = FixedEntry(
            id=shadow_id("x", Owner.PARTNER), name="Gym", amount=1500, account="A",
            owner="partner", is_shared=True, linked_id="x",
        )
        assert split.is_payer_split is True
        assert master.is_payer_split is False
        assert shadow.is_payer_split is False
        assert shadow.is_shadow is True

    def test_ledger_entries_grouping(self):
        """Test adding entries files them by kind."""
        entries = LedgerEntries()
        entries.add(BudgetEntry(name="Food", amount=1, account="A"))
        entries.add(IncomeEntry(name="Salary", amount=2, account="A"))
        assert len(entries.budget) == 1
        assert len(entries.income) == 1
        assert entries.count() == 2


class TestEnums:
    """Tests for ledger enums."""

    def test_interval_months(self):
        """Test interval to months mapping."""
        assert Interval.MONTHLY.months == 1
        assert Interval.SEMIANNUAL.months == 6
        assert Interval.ANNUAL.months == 12

    def test_owner_counterpart(self):
        """Test counterpart of each persona."""
        assert Owner.MAIN.counterpart == Owner.PARTNER
        assert Owner.PARTNER.counterpart == Owner.MAIN
        with pytest.raises(ValueError):
            Owner.SHARED.counterpart

    def test_shadow_id(self):
        """Test deterministic shadow ids."""
        assert shadow_id("abc", Owner.MAIN) == "abc_main"
        assert shadow_id("abc", Owner.PARTNER) == "abc_partner"


class TestReadModels:
    """Tests for summary, settlement and balance models."""

    def test_summary_allows_negative_buffer(self):
        """Test that the buffer is never clamped."""
        summary = Summary(view=View.MAIN, income=100000, fixed=150000, buffer=-50000)
        assert summary.buffer == -50000
        assert summary.chart_values()["buffer"] == 0

    def test_summary_rejects_inconsistent_buffer(self):
        """Test that buffer must equal income minus outflows."""
        with pytest.raises(ValueError, match="Buffer"):
            Summary(view=View.MAIN, income=100, fixed=50, buffer=10)

    def test_summary_yearly(self):
        """Test yearly scaling."""
        summary = Summary(view="combined", income=1000, life=400, buffer=600, unassigned_entries=2)
        yearly = summary.yearly()
        assert yearly.income == 12000
        assert yearly.life == 4800
        assert yearly.buffer == 7200
        assert yearly.unassigned_entries == 2

    def test_settlement_from_totals(self):
        """Test direction selection."""
        assert Settlement.from_totals(1500, 0).direction == SettlementDirection.PARTNER_OWES_MAIN
        assert Settlement.from_totals(0, 700).direction == SettlementDirection.MAIN_OWES_PARTNER
        settled = Settlement.from_totals(500, 500)
        assert settled.direction == SettlementDirection.SETTLED
        assert settled.amount_owed == 0

    def test_settlement_json_direction(self):
        """Test the wire form of the direction."""
        data = Settlement.from_totals(1500, 0).model_dump(mode="json", by_alias=True)
        assert data["direction"] == "partnerOwesMain"
        assert data["amountOwed"] == 1500

    def test_account_balance_net(self):
        """Test net is inflow minus outflow."""
        balance = AccountBalance(account="Joint", ownership=Ownership.SHARED, inflow=100, outflow=250)
        assert balance.net == -150


class TestActivityModels:
    """Tests for activity-related models."""

    def test_activity_event_creation(self):
        """Test ActivityEvent model creation."""
        event = ActivityEvent(
            event_type=ActivityEventType.ENTRY_SAVED,
            description="Entry saved",
        )
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = ActivityEventBuilder.entry_saved("abc", "fixed", "master", ["abc_main", "abc_partner"])
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "entry_saved"
        assert log_dict["details"]["shadow_ids"] == ["abc_main", "abc_partner"]

    def test_write_rejected_is_warning(self):
        """Test that rejected writes log as warnings."""
        event = ActivityEventBuilder.write_rejected("entry", "abc", "bad", "ManagedEntryError")
        assert event.severity == ActivitySeverity.WARNING
        assert event.details["error_code"] == "ManagedEntryError"

    def test_storage_failed_is_error(self):
        """Test that storage failures log as errors."""
        event = ActivityEventBuilder.storage_failed("upsert_entry", "disk full")
        assert event.severity == ActivitySeverity.ERROR
        assert event.error_message == "disk full"


class TestActivityLogger:
    """Tests for the activity logger."""

    def test_logs_at_event_severity(self):
        """Test that warnings and errors use the matching log method."""
        logger = MagicMock()
        activity = ActivityLogger(logger=logger)

        activity.log_rejected("entry", "abc", ValueError("nope"))
        activity.log_storage_failed("delete_entry", RuntimeError("locked"))
        activity.log_entry_deleted("abc", [])

        logger.warning.assert_called_once()
        logger.error.assert_called_once()
        logger.info.assert_called_once()
        assert logger.warning.call_args.kwargs["details"]["error_code"] == "ValueError"

    def test_no_event_when_nothing_removed(self):
        """Test that an empty shadow cleanup is not logged."""
        logger = MagicMock()
        ActivityLogger(logger=logger).log_shadows_removed("abc", [])
        logger.info.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
