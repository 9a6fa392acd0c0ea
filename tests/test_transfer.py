"""Tests for snapshot export and import."""

import json

import pytest

from household_ledger.orchestrator import BookkeepingFlow, ReportingFlow
from household_ledger.services import SQLiteLedgerStorage
from household_ledger.validation import LedgerValidationError


@pytest.fixture
def exported(rent, gym, reporting):
    return json.loads(reporting.export_snapshot())


def issue_types(error):
    return {issue.issue_type for issue in error.issues}


class TestExport:
    """Tests for the export document."""

    def test_document_shape(self, exported):
        """Test the top-level keys and camelCase entry fields."""
        assert set(exported) == {
            "version", "exportedAt", "accounts", "fixed", "budget", "income", "savings",
        }
        assert exported["version"] == 1
        entry = exported["fixed"][0]
        assert {"paidBy", "isShared", "linkedId", "isSecurity", "kind"} <= set(entry)

    def test_shadows_included(self, exported):
        """Test shadows are exported with their links."""
        linked = [e for e in exported["fixed"] if e["linkedId"]]
        assert len(linked) == 3


class TestImport:
    """Tests for validated all-or-nothing import."""

    def test_import_into_empty_ledger(self, exported, tmp_path):
        """Test a valid snapshot reproduces the ledger."""
        store = SQLiteLedgerStorage(tmp_path / "other.db")
        try:
            BookkeepingFlow(store).import_snapshot(json.dumps(exported).encode())
            reporting = ReportingFlow(store)
            assert reporting.list_entries().count() == 5
            assert len(reporting.list_accounts()) == 3
            assert reporting.get_summary("combined").fixed == 120000 + 1500
        finally:
            store.close()

    def test_import_replaces_existing(self, exported, bookkeeping, reporting):
        """Test import clears entries that are not in the snapshot."""
        bookkeeping.upsert_entry("budget", {"name": "Extra", "amount": 1, "account": "Joint"})
        bookkeeping.import_snapshot(exported)
        assert reporting.list_entries().budget == []

    def test_missing_shadow_rejected(self, exported, bookkeeping, reporting):
        """Test a master without both halves is rejected and nothing changes."""
        exported["fixed"] = [e for e in exported["fixed"] if not e["id"].endswith("_main")]
        bookkeeping.upsert_entry("budget", {"name": "Keep", "amount": 1, "account": "Joint"})

        with pytest.raises(LedgerValidationError) as exc_info:
            bookkeeping.import_snapshot(exported)

        assert "missing_share" in issue_types(exc_info.value)
        assert [e.name for e in reporting.list_entries().budget] == ["Keep"]

    def test_wrong_shadow_amount_rejected(self, exported, bookkeeping):
        """Test shadow amounts must be half of their primary."""
        for entry in exported["fixed"]:
            if entry["linkedId"]:
                entry["amount"] += 1
        with pytest.raises(LedgerValidationError) as exc_info:
            bookkeeping.import_snapshot(exported)
        assert "invalid_share_amount" in issue_types(exc_info.value)

    def test_dangling_shadow_rejected(self, exported, bookkeeping):
        """Test a shadow whose primary is missing is rejected."""
        exported["fixed"] = [e for e in exported["fixed"] if e["linkedId"] or e["name"] != "Gym"]
        with pytest.raises(LedgerValidationError) as exc_info:
            bookkeeping.import_snapshot(exported)
        assert "dangling_link" in issue_types(exc_info.value)

    def test_unknown_account_rejected(self, exported, bookkeeping):
        """Test entries must reference accounts in the snapshot."""
        exported["accounts"] = [a for a in exported["accounts"] if a["name"] != "Main Checking"]
        with pytest.raises(LedgerValidationError) as exc_info:
            bookkeeping.import_snapshot(exported)
        assert "unknown_account" in issue_types(exc_info.value)

    def test_float_amount_rejected(self, exported, bookkeeping):
        """Test float amounts in the document are rejected."""
        exported["fixed"][0]["amount"] = 10.5
        with pytest.raises(LedgerValidationError):
            bookkeeping.import_snapshot(json.dumps(exported))

    def test_unsupported_version_rejected(self, exported, bookkeeping):
        """Test only version 1 documents are accepted."""
        exported["version"] = 2
        with pytest.raises(LedgerValidationError) as exc_info:
            bookkeeping.import_snapshot(exported)
        assert issue_types(exc_info.value) == {"unsupported_version"}

    def test_malformed_json_rejected(self, bookkeeping):
        """Test text that is not JSON is a validation error."""
        with pytest.raises(LedgerValidationError):
            bookkeeping.import_snapshot("{not json")

    def test_share_not_matching_primary_rejected(self, rent, bookkeeping, reporting):
        """Test shares whose payer, account or flag differ from their entry are rejected."""
        exported = json.loads(reporting.export_snapshot())
        for entry in exported["fixed"]:
            if entry["linkedId"] == rent:
                entry["paidBy"] = "partner"
                entry["account"] = "Main Checking"
                entry["isShared"] = False

        with pytest.raises(LedgerValidationError) as exc_info:
            bookkeeping.import_snapshot(exported)

        assert issue_types(exc_info.value) == {"inconsistent_share"}
        assert reporting.get_settlement().direction == "settled"

    def test_share_with_other_payer_rejected(self, gym, bookkeeping, reporting):
        """Test a single changed payer on a payer-split share is enough to reject."""
        exported = json.loads(reporting.export_snapshot())
        share = next(e for e in exported["fixed"] if e["linkedId"] == gym)
        share["paidBy"] = "partner"

        with pytest.raises(LedgerValidationError) as exc_info:
            bookkeeping.import_snapshot(exported)

        issue = next(i for i in exc_info.value.issues if i.issue_type == "inconsistent_share")
        assert issue.field.endswith("paidBy")
