"""
Shared fixtures: a two-instrument catalog over fresh stores, a stepping clock.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ledger_core.catalog import Instrument, PriceCatalog
from ledger_core.engine import SettlementEngine
from ledger_core.money import INITIAL_BALANCE
from ledger_core.storage import InMemoryStateStore, SQLiteStateStore

TEST_INSTRUMENTS = (
    Instrument("AAA", "Alpha Corp", Decimal("10.00")),
    Instrument("BBB", "Beta Corp", Decimal("20.00")),
)

T0 = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


def stepping_clock(start: datetime = T0, step: timedelta = timedelta(seconds=1)):
    """Clock returning start, start+step, ... on successive calls."""
    counter = itertools.count()
    return lambda: start + step * next(counter)


@pytest.fixture
def memory_store():
    store = InMemoryStateStore()
    store.initialize(INITIAL_BALANCE, TEST_INSTRUMENTS)
    return store


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteStateStore(tmp_path / "ledger.db")
    store.initialize(INITIAL_BALANCE, TEST_INSTRUMENTS)
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = InMemoryStateStore()
    else:
        s = SQLiteStateStore(tmp_path / "ledger.db")
    s.initialize(INITIAL_BALANCE, TEST_INSTRUMENTS)
    yield s
    if isinstance(s, SQLiteStateStore):
        s.close()


@pytest.fixture
def engine(store):
    return SettlementEngine(store, PriceCatalog(store), clock=stepping_clock())
