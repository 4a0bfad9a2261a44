"""
In-memory ledger store: simulation and tests.

Writes inside an atomic unit are staged per thread and applied at commit().
The store lock is held from begin_atomic() until commit() or abort(), so
another unit, a clear() or a reader never interleaves with a settlement.
Nothing survives the process.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

from ledger_core.catalog import Instrument
from ledger_core.errors import AccountNotInitialized, StoreError
from ledger_core.ledger import LedgerEntry
from ledger_core.portfolio import Position
from ledger_core.storage.base import LedgerStore


@dataclass
class _Unit:
    """Writes staged by one thread between begin_atomic() and commit()."""

    balance: Decimal | None = None
    positions: dict[str, Position | None] = field(default_factory=dict)
    ledger: list[LedgerEntry] = field(default_factory=list)


class InMemoryStateStore(LedgerStore):
    """
    Holds instruments, account, positions and ledger in process memory.
    Safe to share across threads.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._local = threading.local()
        self._instruments: dict[str, Instrument] = {}
        self._balance: Decimal | None = None
        self._positions: dict[str, Position] = {}
        self._ledger: list[tuple[int, LedgerEntry]] = []
        self._seq = 0

    # --- PriceProvider ---

    def get(self, instrument_id: str) -> Instrument | None:
        with self._lock:
            return self._instruments.get(instrument_id)

    def set(self, instrument_id: str, price: Decimal, at: datetime) -> Instrument:
        with self._lock:
            current = self._instruments.get(instrument_id)
            if current is None:
                raise StoreError(f"instrument not seeded: {instrument_id}")
            updated = replace(current, price=price, updated_at=at)
            self._instruments[instrument_id] = updated
            return updated

    def list(self) -> list[Instrument]:
        with self._lock:
            return list(self._instruments.values())

    def seed(self, instruments: Sequence[Instrument]) -> int:
        with self._lock:
            if self._instruments:
                return 0
            for instrument in instruments:
                self._instruments[instrument.instrument_id] = instrument
            return len(instruments)

    # --- atomic boundary ---

    def _unit(self) -> _Unit | None:
        return getattr(self._local, "unit", None)

    def begin_atomic(self) -> None:
        if self._unit() is not None:
            raise StoreError("atomic unit already open on this thread")
        # held until commit/abort: other units, clear() and reads wait
        self._lock.acquire()
        self._local.unit = _Unit()

    def commit(self) -> None:
        unit = self._unit()
        if unit is None:
            raise StoreError("commit without an open atomic unit")
        with self._lock:
            positions = dict(self._positions)
            for instrument_id, position in unit.positions.items():
                if position is None:
                    positions.pop(instrument_id, None)
                else:
                    positions[instrument_id] = position
            ledger = list(self._ledger)
            seq = self._seq
            for entry in unit.ledger:
                seq += 1
                ledger.append((seq, entry))
            if unit.balance is not None:
                self._balance = unit.balance
            self._positions = positions
            self._ledger = ledger
            self._seq = seq
        self._local.unit = None
        self._lock.release()

    def abort(self) -> None:
        if self._unit() is None:
            return
        self._local.unit = None
        self._lock.release()

    # --- StateStore ---

    def read_balance(self) -> Decimal:
        unit = self._unit()
        if unit is not None and unit.balance is not None:
            return unit.balance
        with self._lock:
            if self._balance is None:
                raise AccountNotInitialized("account has not been initialized")
            return self._balance

    def write_balance(self, value: Decimal) -> None:
        unit = self._unit()
        if unit is None:
            with self._lock:
                self._balance = value
            return
        unit.balance = value

    def read_position(self, instrument_id: str) -> Position | None:
        unit = self._unit()
        if unit is not None and instrument_id in unit.positions:
            return unit.positions[instrument_id]
        with self._lock:
            return self._positions.get(instrument_id)

    def write_position(self, position: Position) -> None:
        unit = self._unit()
        if unit is None:
            with self._lock:
                self._positions[position.instrument_id] = position
            return
        unit.positions[position.instrument_id] = position

    def delete_position(self, instrument_id: str) -> None:
        unit = self._unit()
        if unit is None:
            with self._lock:
                self._positions.pop(instrument_id, None)
            return
        unit.positions[instrument_id] = None

    def list_positions(self) -> list[Position]:
        with self._lock:
            return list(self._positions.values())

    def append_ledger_entry(self, entry: LedgerEntry) -> None:
        unit = self._unit()
        if unit is None:
            with self._lock:
                self._seq += 1
                self._ledger.append((self._seq, entry))
            return
        unit.ledger.append(entry)

    def read_ledger_entries(self, offset: int, limit: int) -> list[LedgerEntry]:
        with self._lock:
            ordered = sorted(self._ledger, key=lambda row: (row[1].timestamp, row[0]), reverse=True)
        return [entry for _, entry in ordered[offset : offset + limit]]

    def count_ledger_entries(self) -> int:
        with self._lock:
            return len(self._ledger)

    def read_ledger_page(self, offset: int, limit: int) -> tuple[list[LedgerEntry], int]:
        with self._lock:
            return self.read_ledger_entries(offset, limit), len(self._ledger)

    # --- reads and administration ---

    def snapshot(self) -> tuple[Decimal, list[Position]]:
        with self._lock:
            if self._balance is None:
                raise AccountNotInitialized("account has not been initialized")
            return self._balance, list(self._positions.values())

    def account_exists(self) -> bool:
        with self._lock:
            return self._balance is not None

    def create_account(self, balance: Decimal) -> None:
        with self._lock:
            if self._balance is None:
                self._balance = balance

    def clear(self, balance: Decimal) -> None:
        with self._lock:
            self._balance = balance
            self._positions = {}
            self._ledger = []
