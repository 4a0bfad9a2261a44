"""
SQLite ledger store: durable single-file backend on the stdlib driver.

One connection in autocommit mode, guarded by an RLock. An atomic unit holds
the lock from BEGIN IMMEDIATE to COMMIT/ROLLBACK, so settlements in this
process are serialized and other processes are blocked at the database lock.
Decimals are stored as TEXT to keep them exact.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from ledger_core.catalog import Instrument
from ledger_core.errors import AccountNotInitialized, StoreError
from ledger_core.ledger import LedgerEntry
from ledger_core.order import Side
from ledger_core.portfolio import Position
from ledger_core.storage.base import LedgerStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS instruments (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    price TEXT NOT NULL,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS account (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    balance TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS positions (
    instrument_id TEXT PRIMARY KEY REFERENCES instruments(id),
    name TEXT NOT NULL,
    quantity INTEGER NOT NULL CHECK (quantity > 0),
    average_cost TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ledger (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id TEXT NOT NULL UNIQUE,
    side TEXT NOT NULL CHECK (side IN ('buy', 'sell')),
    instrument_id TEXT NOT NULL REFERENCES instruments(id),
    instrument_name TEXT NOT NULL,
    quantity INTEGER NOT NULL CHECK (quantity > 0),
    price TEXT NOT NULL,
    total TEXT NOT NULL,
    profit_loss TEXT,
    timestamp TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_ledger_timestamp ON ledger(timestamp, seq);
"""


def _instrument(row: sqlite3.Row) -> Instrument:
    return Instrument(
        instrument_id=row["id"],
        name=row["name"],
        price=Decimal(row["price"]),
        updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
    )


def _position(row: sqlite3.Row) -> Position:
    return Position(
        instrument_id=row["instrument_id"],
        name=row["name"],
        quantity=int(row["quantity"]),
        average_cost=Decimal(row["average_cost"]),
    )


def _entry(row: sqlite3.Row) -> LedgerEntry:
    return LedgerEntry(
        entry_id=row["entry_id"],
        side=Side(row["side"]),
        instrument_id=row["instrument_id"],
        instrument_name=row["instrument_name"],
        quantity=int(row["quantity"]),
        price=Decimal(row["price"]),
        total=Decimal(row["total"]),
        timestamp=datetime.fromisoformat(row["timestamp"]),
        profit_loss=Decimal(row["profit_loss"]) if row["profit_loss"] is not None else None,
    )


class SQLiteStateStore(LedgerStore):
    """
    Durable store. path may be a filesystem path or ":memory:".
    Safe to share across threads; call close() when done.
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._lock = threading.RLock()
        self._owner: int | None = None
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.path, check_same_thread=False, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys=ON")
            if self.path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
                self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open ledger database {self.path}: {exc}") from exc
        logger.info("SQLite ledger store opened: %s", self.path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                return self._conn.execute(sql, params)
            except sqlite3.Error as exc:
                raise StoreError(f"{exc} (sql: {sql.split()[0]})") from exc

    def _in_unit(self) -> bool:
        return self._owner == threading.get_ident()

    # --- PriceProvider ---

    def get(self, instrument_id: str) -> Instrument | None:
        row = self._execute("SELECT * FROM instruments WHERE id = ?", (instrument_id,)).fetchone()
        return _instrument(row) if row else None

    def set(self, instrument_id: str, price: Decimal, at: datetime) -> Instrument:
        with self._lock:
            cur = self._execute(
                "UPDATE instruments SET price = ?, updated_at = ? WHERE id = ?",
                (str(price), at.isoformat(), instrument_id),
            )
            if cur.rowcount == 0:
                raise StoreError(f"instrument not seeded: {instrument_id}")
            updated = self.get(instrument_id)
        if updated is None:
            raise StoreError(f"instrument vanished during price update: {instrument_id}")
        return updated

    def list(self) -> list[Instrument]:
        rows = self._execute("SELECT * FROM instruments ORDER BY id").fetchall()
        return [_instrument(r) for r in rows]

    def seed(self, instruments: Sequence[Instrument]) -> int:
        with self._lock:
            count = self._execute("SELECT COUNT(*) FROM instruments").fetchone()[0]
            if count:
                return 0
            for i in instruments:
                self._execute(
                    "INSERT INTO instruments (id, name, price, updated_at) VALUES (?, ?, ?, ?)",
                    (i.instrument_id, i.name, str(i.price), i.updated_at.isoformat() if i.updated_at else None),
                )
            return len(instruments)

    # --- atomic boundary ---

    def begin_atomic(self) -> None:
        if self._in_unit():
            raise StoreError("atomic unit already open on this thread")
        self._lock.acquire()
        try:
            self._conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            self._lock.release()
            raise StoreError(f"cannot begin transaction: {exc}") from exc
        self._owner = threading.get_ident()

    def commit(self) -> None:
        if not self._in_unit():
            raise StoreError("commit without an open atomic unit")
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as exc:
            self.abort()
            raise StoreError(f"commit failed: {exc}") from exc
        self._owner = None
        self._lock.release()

    def abort(self) -> None:
        if not self._in_unit():
            return
        try:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
        except sqlite3.Error:
            logger.exception("Rollback failed")
        finally:
            self._owner = None
            self._lock.release()

    # --- StateStore ---

    def read_balance(self) -> Decimal:
        row = self._execute("SELECT balance FROM account WHERE id = 1").fetchone()
        if row is None:
            raise AccountNotInitialized("account has not been initialized")
        return Decimal(row["balance"])

    def write_balance(self, value: Decimal) -> None:
        self._execute("UPDATE account SET balance = ? WHERE id = 1", (str(value),))

    def read_position(self, instrument_id: str) -> Position | None:
        row = self._execute("SELECT * FROM positions WHERE instrument_id = ?", (instrument_id,)).fetchone()
        return _position(row) if row else None

    def write_position(self, position: Position) -> None:
        self._execute(
            "INSERT INTO positions (instrument_id, name, quantity, average_cost) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(instrument_id) DO UPDATE SET quantity = excluded.quantity, average_cost = excluded.average_cost",
            (position.instrument_id, position.name, position.quantity, str(position.average_cost)),
        )

    def delete_position(self, instrument_id: str) -> None:
        self._execute("DELETE FROM positions WHERE instrument_id = ?", (instrument_id,))

    def list_positions(self) -> list[Position]:
        rows = self._execute("SELECT * FROM positions ORDER BY instrument_id").fetchall()
        return [_position(r) for r in rows]

    def append_ledger_entry(self, entry: LedgerEntry) -> None:
        self._execute(
            "INSERT INTO ledger (entry_id, side, instrument_id, instrument_name, quantity, price, total, "
            "profit_loss, timestamp) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                entry.entry_id,
                entry.side.value,
                entry.instrument_id,
                entry.instrument_name,
                entry.quantity,
                str(entry.price),
                str(entry.total),
                str(entry.profit_loss) if entry.profit_loss is not None else None,
                entry.timestamp.isoformat(),
            ),
        )

    def read_ledger_entries(self, offset: int, limit: int) -> list[LedgerEntry]:
        rows = self._execute(
            "SELECT * FROM ledger ORDER BY timestamp DESC, seq DESC LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        return [_entry(r) for r in rows]

    def count_ledger_entries(self) -> int:
        return int(self._execute("SELECT COUNT(*) FROM ledger").fetchone()[0])

    def read_ledger_page(self, offset: int, limit: int) -> tuple[list[LedgerEntry], int]:
        with self._lock:
            if self._in_unit():
                return self.read_ledger_entries(offset, limit), self.count_ledger_entries()
            self._execute("BEGIN")
            try:
                return self.read_ledger_entries(offset, limit), self.count_ledger_entries()
            finally:
                self._execute("COMMIT")

    # --- reads and administration ---

    def snapshot(self) -> tuple[Decimal, list[Position]]:
        with self._lock:
            if self._in_unit():
                return self.read_balance(), self.list_positions()
            self._execute("BEGIN")
            try:
                return self.read_balance(), self.list_positions()
            finally:
                self._execute("COMMIT")

    def account_exists(self) -> bool:
        return self._execute("SELECT 1 FROM account WHERE id = 1").fetchone() is not None

    def create_account(self, balance: Decimal) -> None:
        self._execute("INSERT OR IGNORE INTO account (id, balance) VALUES (1, ?)", (str(balance),))

    def clear(self, balance: Decimal) -> None:
        with self.atomic():
            self._execute("DELETE FROM ledger")
            self._execute("DELETE FROM positions")
            self._execute("INSERT OR REPLACE INTO account (id, balance) VALUES (1, ?)", (str(balance),))
