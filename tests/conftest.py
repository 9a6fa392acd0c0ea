"""Shared fixtures: a throwaway SQLite ledger per test."""

import pytest

from household_ledger.orchestrator import BookkeepingFlow, ReportingFlow
from household_ledger.services import SQLiteLedgerStorage


@pytest.fixture
def storage(tmp_path):
    store = SQLiteLedgerStorage(tmp_path / "ledger.db")
    yield store
    store.close()


@pytest.fixture
def bookkeeping(storage):
    return BookkeepingFlow(storage)


@pytest.fixture
def reporting(storage):
    return ReportingFlow(storage)


@pytest.fixture
def accounts(bookkeeping):
    """One joint account and one personal account per persona."""
    return {
        "joint": bookkeeping.upsert_account({"name": "Joint", "owner": "shared"}),
        "main": bookkeeping.upsert_account({"name": "Main Checking", "owner": "main"}),
        "partner": bookkeeping.upsert_account({"name": "Partner Checking", "owner": "partner"}),
    }


@pytest.fixture
def rent(bookkeeping, accounts):
    """Rent of 1.200,00 on the joint account."""
    return bookkeeping.upsert_entry("fixed", {
        "name": "Rent",
        "amount": 120000,
        "account": "Joint",
        "owner": "shared",
        "category": "housing",
    })


@pytest.fixture
def gym(bookkeeping, accounts):
    """Gym of 30,00 paid by main and split with partner."""
    return bookkeeping.upsert_entry("fixed", {
        "name": "Gym",
        "amount": 3000,
        "account": "Main Checking",
        "owner": "main",
        "category": "membership",
    }, split_requested=True)
