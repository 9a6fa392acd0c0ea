"""
SQLite Storage Implementation

DESIGN DECISION: SQLite is the storage backend because:
1. Split families need real transactions (all rows or none)
2. No server to run for a single household
3. The whole ledger is one file that is easy to back up

Entries are stored as flat rows with a `kind` discriminator. Fields that
only one category uses (interval, category, savings_type) are NULL on the
other rows.

The connection runs with isolation_level=None so transactions are
controlled explicitly: `BEGIN IMMEDIATE` for writes, `BEGIN` for reads.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

import structlog

from household_ledger.models.ledger import (
    ENTRY_MODELS,
    Account,
    EntryBase,
    EntryKind,
    LedgerEntries,
)
from household_ledger.services.storage.interface import (
    DuplicateError,
    LedgerSession,
    LedgerStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)

MEMORY_PATH = ":memory:"

SCHEMA = """
    CREATE TABLE IF NOT EXISTS accounts (
        id          TEXT PRIMARY KEY,
        name        TEXT NOT NULL UNIQUE,
        owner       TEXT NOT NULL CHECK(owner IN ('main', 'partner', 'shared')),
        iban        TEXT,
        created_at  TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS entries (
        id            TEXT PRIMARY KEY,
        kind          TEXT NOT NULL CHECK(kind IN ('fixed', 'budget', 'income', 'savings')),
        name          TEXT NOT NULL,
        amount        INTEGER NOT NULL CHECK(amount >= 0),
        account       TEXT NOT NULL,
        interval      TEXT,
        category      TEXT,
        is_security   INTEGER NOT NULL DEFAULT 0 CHECK(is_security IN (0, 1)),
        savings_type  TEXT,
        owner         TEXT NOT NULL DEFAULT 'main',
        paid_by       TEXT NOT NULL DEFAULT 'main',
        is_shared     INTEGER NOT NULL DEFAULT 0 CHECK(is_shared IN (0, 1)),
        linked_id     TEXT REFERENCES entries(id) ON DELETE CASCADE,
        created_at    TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at    TEXT
    );
"""

# Columns added after the first release, with the DDL used to add them
MIGRATED_ENTRY_COLUMNS = [
    ("owner", "TEXT NOT NULL DEFAULT 'main'"),
    ("paid_by", "TEXT NOT NULL DEFAULT 'main'"),
    ("is_shared", "INTEGER NOT NULL DEFAULT 0"),
    ("linked_id", "TEXT"),
    ("updated_at", "TEXT"),
]

INDEXES = [
    ("idx_entries_linked_id", "entries", "linked_id"),
    ("idx_entries_account", "entries", "account"),
    ("idx_entries_kind", "entries", "kind"),
]

ENTRY_COLUMNS = (
    "id, kind, name, amount, account, interval, category, is_security, "
    "savings_type, owner, paid_by, is_shared, linked_id"
)


def _entry_to_params(entry: EntryBase) -> dict:
    """Convert an entry to named SQL parameters."""
    interval = getattr(entry, "interval", None)
    category = getattr(entry, "category", None)
    savings_type = getattr(entry, "savings_type", None)
    return {
        "id": entry.id,
        "kind": entry.kind,
        "name": entry.name,
        "amount": entry.amount,
        "account": entry.account,
        "interval": interval.value if interval else None,
        "category": category.value if category else None,
        "is_security": int(getattr(entry, "is_security", False)),
        "savings_type": savings_type.value if savings_type else None,
        "owner": entry.owner.value,
        "paid_by": entry.paid_by.value,
        "is_shared": int(entry.is_shared),
        "linked_id": entry.linked_id,
    }


def _row_to_entry(row: sqlite3.Row) -> EntryBase:
    """Convert a database row to the entry model for its kind."""
    kind = EntryKind(row["kind"])
    data = {
        "id": row["id"],
        "name": row["name"],
        "amount": row["amount"],
        "account": row["account"],
        "owner": row["owner"],
        "paid_by": row["paid_by"],
        "is_shared": bool(row["is_shared"]),
        "linked_id": row["linked_id"],
    }
    if kind == EntryKind.FIXED:
        data["interval"] = row["interval"] or "monthly"
        data["category"] = row["category"] or "other"
    elif kind == EntryKind.SAVINGS:
        data["savings_type"] = row["savings_type"] or "cash"
    return ENTRY_MODELS[kind].model_validate(data)


def _row_to_account(row: sqlite3.Row) -> Account:
    return Account(
        id=row["id"],
        name=row["name"],
        owner=row["owner"],
        iban=row["iban"],
    )


class SQLiteLedgerSession(LedgerSession):
    """Ledger operations bound to one open SQLite transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    # ── Entries ──────────────────────────────────────────────────────────────

    def get_entry(self, entry_id: str) -> Optional[EntryBase]:
        row = self._conn.execute(
            f"SELECT {ENTRY_COLUMNS} FROM entries WHERE id = ?", (entry_id,)
        ).fetchone()
        return _row_to_entry(row) if row else None

    def list_entries(self) -> LedgerEntries:
        entries = LedgerEntries()
        rows = self._conn.execute(
            f"SELECT {ENTRY_COLUMNS} FROM entries ORDER BY rowid"
        ).fetchall()
        for row in rows:
            entries.add(_row_to_entry(row))
        return entries

    def save_entry(self, entry: EntryBase) -> None:
        # ON CONFLICT DO UPDATE keeps the row, so the linked_id cascade never fires
        self._conn.execute(
            """
            INSERT INTO entries (
                id, kind, name, amount, account, interval, category,
                is_security, savings_type, owner, paid_by, is_shared, linked_id,
                updated_at
            ) VALUES (
                :id, :kind, :name, :amount, :account, :interval, :category,
                :is_security, :savings_type, :owner, :paid_by, :is_shared, :linked_id,
                CURRENT_TIMESTAMP
            )
            ON CONFLICT(id) DO UPDATE SET
                kind = excluded.kind,
                name = excluded.name,
                amount = excluded.amount,
                account = excluded.account,
                interval = excluded.interval,
                category = excluded.category,
                is_security = excluded.is_security,
                savings_type = excluded.savings_type,
                owner = excluded.owner,
                paid_by = excluded.paid_by,
                is_shared = excluded.is_shared,
                linked_id = excluded.linked_id,
                updated_at = excluded.updated_at
            """,
            _entry_to_params(entry),
        )

    def delete_entry(self, entry_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
        return cursor.rowcount > 0

    def delete_linked(
        self,
        primary_id: str,
        keep: Iterable[str] = (),
    ) -> list[str]:
        keep = set(keep)
        rows = self._conn.execute(
            "SELECT id FROM entries WHERE linked_id = ? ORDER BY id", (primary_id,)
        ).fetchall()
        doomed = [row["id"] for row in rows if row["id"] not in keep]
        self._conn.executemany(
            "DELETE FROM entries WHERE id = ?", [(entry_id,) for entry_id in doomed]
        )
        return doomed

    # ── Accounts ─────────────────────────────────────────────────────────────

    def list_accounts(self) -> list[Account]:
        rows = self._conn.execute(
            "SELECT id, name, owner, iban FROM accounts ORDER BY name COLLATE NOCASE"
        ).fetchall()
        return [_row_to_account(row) for row in rows]

    def get_account(self, account_id: str) -> Optional[Account]:
        row = self._conn.execute(
            "SELECT id, name, owner, iban FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return _row_to_account(row) if row else None

    def get_account_by_name(self, name: str) -> Optional[Account]:
        row = self._conn.execute(
            "SELECT id, name, owner, iban FROM accounts WHERE name = ?", (name,)
        ).fetchone()
        return _row_to_account(row) if row else None

    def save_account(self, account: Account) -> None:
        try:
            self._conn.execute(
                """
                INSERT INTO accounts (id, name, owner, iban)
                VALUES (:id, :name, :owner, :iban)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    owner = excluded.owner,
                    iban = excluded.iban
                """,
                {
                    "id": account.id,
                    "name": account.name,
                    "owner": account.owner.value,
                    "iban": account.iban,
                },
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateError(f"An account named '{account.name}' already exists") from e

    def delete_account(self, account_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
        return cursor.rowcount > 0

    def count_account_references(self, name: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS n FROM entries WHERE account = ?", (name,)
        ).fetchone()
        return row["n"]

    def rename_account_references(self, old_name: str, new_name: str) -> int:
        cursor = self._conn.execute(
            "UPDATE entries SET account = ?, updated_at = CURRENT_TIMESTAMP WHERE account = ?",
            (new_name, old_name),
        )
        return cursor.rowcount

    def clear(self) -> None:
        self._conn.execute("DELETE FROM entries WHERE linked_id IS NOT NULL")
        self._conn.execute("DELETE FROM entries")
        self._conn.execute("DELETE FROM accounts")


class SQLiteLedgerStorage(LedgerStorageInterface):
    """
    SQLite implementation of ledger storage.

    Holds one connection for its lifetime (the ledger has a single writer).
    """

    def __init__(
        self,
        db_path: Union[str, Path] = MEMORY_PATH,
        timeout: float = 10.0,
        init_schema: bool = True,
    ):
        """
        Initialize the storage.

        Args:
            db_path: Path to the SQLite database file, or ":memory:"
            timeout: Seconds to wait for the database lock
            init_schema: Whether to create and migrate the schema on startup
        """
        self.db_path = db_path
        self._timeout = timeout
        self._conn: Optional[sqlite3.Connection] = None
        if init_schema:
            self.initialize()

    @property
    def _is_memory(self) -> bool:
        return str(self.db_path) == MEMORY_PATH

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if not self._is_memory:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(
                    str(self.db_path),
                    timeout=self._timeout,
                    isolation_level=None,
                    check_same_thread=False,
                )
            except sqlite3.Error as e:
                raise StorageError(f"Could not open ledger database {self.db_path}: {e}") from e
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            self._conn = conn
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def initialize(self) -> None:
        """Create the schema, add columns missing from older databases, create indexes."""
        conn = self._get_connection()
        try:
            conn.executescript(SCHEMA)
            self._migrate_schema(conn)
            for index_name, table, columns in INDEXES:
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS {index_name} ON {table}({columns})"
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to initialize ledger schema: {e}") from e
        logger.debug("ledger_schema_ready", db_path=str(self.db_path))

    def _migrate_schema(self, conn: sqlite3.Connection) -> None:
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row["name"] for row in conn.execute("PRAGMA table_info(entries)").fetchall()}
        for column, ddl in MIGRATED_ENTRY_COLUMNS:
            if column not in cols:
                conn.execute(f"ALTER TABLE entries ADD COLUMN {column} {ddl}")
                logger.info("ledger_schema_migrated", column=column)

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    @contextmanager
    def _session(self, begin: str, operation: str) -> Iterator[LedgerSession]:
        conn = self._get_connection()
        try:
            conn.execute(begin)
        except sqlite3.Error as e:
            raise StorageError(f"Could not start {operation}: {e}") from e

        try:
            yield SQLiteLedgerSession(conn)
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback(conn)
            logger.error("ledger_transaction_failed", operation=operation, error=str(e))
            raise StorageError(f"Ledger {operation} failed: {e}") from e
        except BaseException:
            self._rollback(conn)
            raise

    def transaction(self):
        return self._session("BEGIN IMMEDIATE", "write")

    def read(self):
        return self._session("BEGIN", "read")
