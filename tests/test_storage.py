"""Tests for the SQLite ledger store."""

import sqlite3

import pytest

from household_ledger.models.ledger import (
    Account,
    BudgetEntry,
    FixedEntry,
    Interval,
    Owner,
    SavingsEntry,
    SavingsType,
)
from household_ledger.services import SQLiteLedgerStorage
from household_ledger.services.storage import DuplicateError, StorageError


def make_family():
    primary = FixedEntry(
        id="rent", name="Rent", amount=120000, account="Joint",
        owner="shared", is_shared=True, interval="annual",
    )
    shadow = primary.model_copy(update={
        "id": "rent_main", "amount": 60000, "owner": Owner.MAIN, "linked_id": "rent",
    })
    return primary, shadow


class TestEntryRows:
    """Tests for entry persistence."""

    def test_fixed_entry_roundtrip(self, storage):
        """Test that category-specific fields survive storage."""
        primary, _ = make_family()
        with storage.transaction() as session:
            session.save_entry(primary)

        with storage.read() as session:
            loaded = session.get_entry("rent")
        assert loaded.model_dump() == primary.model_dump()
        assert loaded.interval == Interval.ANNUAL

    def test_savings_type_stored(self, storage):
        """Test savings type persists."""
        entry = SavingsEntry(id="etf", name="ETF", amount=5000, account="A", savings_type="plan")
        with storage.transaction() as session:
            session.save_entry(entry)
        with storage.read() as session:
            assert session.get_entry("etf").savings_type == SavingsType.PLAN

    def test_list_entries_groups_by_kind(self, storage):
        """Test list_entries returns entries in their category lists."""
        with storage.transaction() as session:
            session.save_entry(BudgetEntry(id="food", name="Food", amount=100, account="A"))
            session.save_entry(FixedEntry(id="car", name="Car", amount=200, account="A"))
        with storage.read() as session:
            entries = session.list_entries()
        assert [e.id for e in entries.budget] == ["food"]
        assert [e.id for e in entries.fixed] == ["car"]

    def test_update_keeps_shadows(self, storage):
        """Test that re-saving a primary does not cascade to its shadows."""
        primary, shadow = make_family()
        with storage.transaction() as session:
            session.save_entry(primary)
            session.save_entry(shadow)
        with storage.transaction() as session:
            session.save_entry(primary.model_copy(update={"name": "Flat"}))

        with storage.read() as session:
            assert session.get_entry("rent").name == "Flat"
            assert session.get_entry("rent_main") is not None

    def test_delete_primary_cascades(self, storage):
        """Test the linked_id foreign key removes shadows."""
        primary, shadow = make_family()
        with storage.transaction() as session:
            session.save_entry(primary)
            session.save_entry(shadow)
        with storage.transaction() as session:
            assert session.delete_entry("rent") is True

        with storage.read() as session:
            assert session.get_entry("rent_main") is None

    def test_delete_linked_keeps_requested(self, storage):
        """Test delete_linked only removes shadows outside keep."""
        primary, shadow = make_family()
        partner = shadow.model_copy(update={"id": "rent_partner", "owner": Owner.PARTNER})
        with storage.transaction() as session:
            session.save_entry(primary)
            session.save_entry(shadow)
            session.save_entry(partner)
        with storage.transaction() as session:
            removed = session.delete_linked("rent", keep=["rent_partner"])

        assert removed == ["rent_main"]
        with storage.read() as session:
            assert session.get_entry("rent_main") is None
            assert session.get_entry("rent_partner").linked_id == "rent"


class TestAccountRows:
    """Tests for account persistence."""

    def test_duplicate_name_rejected(self, storage):
        """Test account names are unique."""
        with storage.transaction() as session:
            session.save_account(Account(id="a", name="Joint", owner="shared"))
        with pytest.raises(DuplicateError):
            with storage.transaction() as session:
                session.save_account(Account(id="b", name="Joint", owner="main"))

    def test_rename_references(self, storage):
        """Test bulk update of entry account names."""
        with storage.transaction() as session:
            session.save_entry(BudgetEntry(id="food", name="Food", amount=100, account="Old"))
            assert session.rename_account_references("Old", "New") == 1
            assert session.count_account_references("New") == 1


class TestTransactions:
    """Tests for atomicity."""

    def test_rollback_on_exception(self, storage):
        """Test that any exception rolls back the whole block."""
        with pytest.raises(RuntimeError):
            with storage.transaction() as session:
                session.save_account(Account(id="a", name="Joint", owner="shared"))
                raise RuntimeError("boom")

        with storage.read() as session:
            assert session.list_accounts() == []

    def test_sqlite_errors_are_wrapped(self, storage):
        """Test that database errors surface as StorageError."""
        with pytest.raises(StorageError):
            with storage.transaction() as session:
                session._conn.execute("INSERT INTO no_such_table VALUES (1)")

    def test_nested_transaction_rejected(self, storage):
        """Test that transactions cannot be nested."""
        with pytest.raises(StorageError):
            with storage.transaction():
                with storage.transaction():
                    pass

    def test_in_memory_database(self):
        """Test the store works without a file."""
        store = SQLiteLedgerStorage(":memory:")
        try:
            with store.transaction() as session:
                session.save_account(Account(name="Joint", owner="shared"))
            assert len(store.load_snapshot().accounts) == 1
        finally:
            store.close()


class TestSchemaMigration:
    """Tests for opening databases created before split support."""

    def create_legacy_db(self, path):
        conn = sqlite3.connect(path)
        conn.executescript("""
            CREATE TABLE entries (
                id TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                name TEXT NOT NULL,
                amount INTEGER NOT NULL,
                account TEXT NOT NULL,
                interval TEXT,
                category TEXT,
                is_security INTEGER NOT NULL DEFAULT 0,
                savings_type TEXT,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
            INSERT INTO entries (id, kind, name, amount, account)
            VALUES ('old', 'budget', 'Food', 30000, 'Joint');
        """)
        conn.commit()
        conn.close()

    def test_adds_split_columns_with_defaults(self, tmp_path):
        """Test legacy rows load with main ownership and no split."""
        path = tmp_path / "legacy.db"
        self.create_legacy_db(path)

        store = SQLiteLedgerStorage(path)
        try:
            with store.read() as session:
                entry = session.get_entry("old")
        finally:
            store.close()

        assert entry.owner == Owner.MAIN
        assert entry.paid_by == Owner.MAIN
        assert entry.is_shared is False
        assert entry.linked_id is None

    def test_migration_is_idempotent(self, tmp_path):
        """Test opening a migrated database again changes nothing."""
        path = tmp_path / "legacy.db"
        self.create_legacy_db(path)

        SQLiteLedgerStorage(path).close()
        store = SQLiteLedgerStorage(path)
        try:
            assert store.load_snapshot().count() == 1
        finally:
            store.close()
