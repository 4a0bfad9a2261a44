"""
Storage abstraction layer.

PriceProvider and StateStore ABCs: the narrow persistence interfaces the
settlement engine depends on. InMemoryStateStore and SQLiteStateStore
implement both.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

from ledger_core.catalog import Instrument
from ledger_core.ledger import LedgerEntry
from ledger_core.portfolio import Position

logger = logging.getLogger(__name__)


class PriceProvider(ABC):
    """Durable instrument catalog."""

    @abstractmethod
    def get(self, instrument_id: str) -> Instrument | None:
        """Return the instrument, or None if it was never seeded."""
        ...

    @abstractmethod
    def set(self, instrument_id: str, price: Decimal, at: datetime) -> Instrument:
        """Overwrite the price of an existing instrument and return it."""
        ...

    @abstractmethod
    def list(self) -> list[Instrument]:
        ...

    @abstractmethod
    def seed(self, instruments: Sequence[Instrument]) -> int:
        """Insert instruments only when the catalog is empty. Returns rows inserted."""
        ...


class StateStore(ABC):
    """
    Account, positions and ledger, plus the atomic boundary that groups
    their writes. Writes between begin_atomic() and commit() become visible
    together or not at all.
    """

    # --- state access ---

    @abstractmethod
    def read_balance(self) -> Decimal:
        """Current cash. Raises AccountNotInitialized when no account exists."""
        ...

    @abstractmethod
    def write_balance(self, value: Decimal) -> None:
        ...

    @abstractmethod
    def read_position(self, instrument_id: str) -> Position | None:
        ...

    @abstractmethod
    def write_position(self, position: Position) -> None:
        ...

    @abstractmethod
    def delete_position(self, instrument_id: str) -> None:
        ...

    @abstractmethod
    def list_positions(self) -> list[Position]:
        ...

    @abstractmethod
    def append_ledger_entry(self, entry: LedgerEntry) -> None:
        ...

    @abstractmethod
    def read_ledger_entries(self, offset: int, limit: int) -> list[LedgerEntry]:
        """Entries ordered by timestamp desc, ties newest-inserted first."""
        ...

    @abstractmethod
    def count_ledger_entries(self) -> int:
        ...

    @abstractmethod
    def read_ledger_page(self, offset: int, limit: int) -> tuple[list[LedgerEntry], int]:
        """One page of entries and the total count, read without a commit in between."""
        ...

    # --- atomic boundary ---

    @abstractmethod
    def begin_atomic(self) -> None:
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def abort(self) -> None:
        ...

    @contextmanager
    def atomic(self) -> Iterator[StateStore]:
        """Commit on success; abort and re-raise on any exception."""
        self.begin_atomic()
        try:
            yield self
            self.commit()
        except Exception:
            self.abort()
            raise

    # --- reads and administration ---

    @abstractmethod
    def snapshot(self) -> tuple[Decimal, list[Position]]:
        """Balance and positions read together, never torn by a commit."""
        ...

    @abstractmethod
    def account_exists(self) -> bool:
        ...

    @abstractmethod
    def create_account(self, balance: Decimal) -> None:
        ...

    @abstractmethod
    def clear(self, balance: Decimal) -> None:
        """Bulk reset: set balance, drop all positions and ledger entries."""
        ...


class LedgerStore(PriceProvider, StateStore):
    """A backend holding all four collections."""

    def initialize(self, initial_balance: Decimal, instruments: Sequence[Instrument]) -> None:
        """Seed the catalog if empty and create the account if missing."""
        seeded = self.seed(instruments)
        if seeded:
            logger.info("Seeded default instruments: count=%d", seeded)
        if not self.account_exists():
            self.create_account(initial_balance)
            logger.info("Initialized account: balance=%s", initial_balance)
