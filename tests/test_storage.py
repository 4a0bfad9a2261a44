"""
Tests for storage backends: bootstrap, atomic units, ledger ordering, SQLite durability.
"""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ledger_core import AccountNotInitialized, LedgerEntry, Position, Side, StoreError
from ledger_core.storage import InMemoryStateStore, SQLiteStateStore

from conftest import T0, TEST_INSTRUMENTS


def _entry(entry_id, timestamp=T0, side=Side.BUY, profit_loss=None):
    return LedgerEntry(
        entry_id=entry_id,
        side=side,
        instrument_id="AAA",
        instrument_name="Alpha Corp",
        quantity=100,
        price=Decimal("10.00"),
        total=Decimal("1000.00"),
        timestamp=timestamp,
        profit_loss=profit_loss,
    )


# --- bootstrap ---


@pytest.mark.parametrize("factory", [InMemoryStateStore, lambda: SQLiteStateStore(":memory:")])
def test_uninitialized_account_is_an_error(factory):
    store = factory()
    assert not store.account_exists()
    with pytest.raises(AccountNotInitialized):
        store.read_balance()
    with pytest.raises(AccountNotInitialized):
        store.snapshot()


def test_initialize_is_idempotent(store):
    store.write_balance(Decimal("5.00"))
    store.initialize(Decimal("999.00"), TEST_INSTRUMENTS[:1])
    assert store.read_balance() == Decimal("5.00")
    assert [i.instrument_id for i in store.list()] == ["AAA", "BBB"]


def test_price_provider_set_and_get(store):
    at = datetime(2024, 2, 1, tzinfo=timezone.utc)
    updated = store.set("AAA", Decimal("10.55"), at)
    assert updated.price == Decimal("10.55")
    assert store.get("AAA").updated_at == at
    assert store.get("NOPE") is None
    with pytest.raises(StoreError):
        store.set("NOPE", Decimal("1"), at)


# --- atomic units ---


def test_atomic_commit_applies_all_writes(store):
    with store.atomic():
        store.write_balance(Decimal("90000.00"))
        store.write_position(Position("AAA", "Alpha Corp", 100, Decimal("10.00")))
        store.append_ledger_entry(_entry("e1"))
        # reads inside the unit see its own writes
        assert store.read_balance() == Decimal("90000.00")
        assert store.read_position("AAA").quantity == 100
    balance, positions = store.snapshot()
    assert balance == Decimal("90000.00")
    assert positions == [Position("AAA", "Alpha Corp", 100, Decimal("10.00"))]
    assert store.count_ledger_entries() == 1


def test_atomic_abort_discards_all_writes(store):
    with pytest.raises(RuntimeError):
        with store.atomic():
            store.write_balance(Decimal("1.00"))
            store.write_position(Position("AAA", "Alpha Corp", 100, Decimal("10.00")))
            store.append_ledger_entry(_entry("e1"))
            raise RuntimeError("boom")
    assert store.read_balance() == Decimal("100000.00")
    assert store.read_position("AAA") is None
    assert store.count_ledger_entries() == 0


def test_delete_position_inside_unit(store):
    store.write_position(Position("BBB", "Beta Corp", 200, Decimal("20.00")))
    with store.atomic():
        store.delete_position("BBB")
        assert store.read_position("BBB") is None
    assert store.list_positions() == []


def test_nested_atomic_unit_rejected(store):
    store.begin_atomic()
    try:
        with pytest.raises(StoreError):
            store.begin_atomic()
    finally:
        store.abort()
    with pytest.raises(StoreError):
        store.commit()


def test_open_unit_holds_off_clear_from_other_threads(store):
    store.begin_atomic()
    store.write_balance(Decimal("1.00"))
    store.write_position(Position("AAA", "Alpha Corp", 100, Decimal("10.00")))
    clearer = threading.Thread(target=store.clear, args=(Decimal("500.00"),))
    clearer.start()
    clearer.join(timeout=0.2)
    assert clearer.is_alive()
    store.commit()
    clearer.join(timeout=5)
    assert not clearer.is_alive()
    assert store.snapshot() == (Decimal("500.00"), [])


def test_abort_releases_unit_for_other_threads(store):
    store.begin_atomic()
    store.write_balance(Decimal("1.00"))
    store.abort()
    store.abort()

    def settle_elsewhere():
        with store.atomic():
            store.write_balance(Decimal("2.00"))

    worker = threading.Thread(target=settle_elsewhere)
    worker.start()
    worker.join(timeout=5)
    assert not worker.is_alive()
    assert store.read_balance() == Decimal("2.00")


# --- ledger ---


def test_ledger_ordered_newest_first_with_insertion_tiebreak(store):
    store.append_ledger_entry(_entry("old", T0 - timedelta(minutes=5)))
    store.append_ledger_entry(_entry("tie-1"))
    store.append_ledger_entry(_entry("tie-2"))
    store.append_ledger_entry(_entry("new", T0 + timedelta(minutes=5)))
    assert [e.entry_id for e in store.read_ledger_entries(0, 10)] == ["new", "tie-2", "tie-1", "old"]
    assert [e.entry_id for e in store.read_ledger_entries(1, 2)] == ["tie-2", "tie-1"]
    assert store.count_ledger_entries() == 4


def test_ledger_page_returns_entries_with_total(store):
    for n in range(3):
        store.append_ledger_entry(_entry(f"e{n}", T0 + timedelta(seconds=n)))
    entries, total = store.read_ledger_page(1, 1)
    assert [e.entry_id for e in entries] == ["e1"]
    assert total == 3
    assert store.read_ledger_page(10, 5) == ([], 3)


def test_clear_resets_account(store):
    store.write_position(Position("AAA", "Alpha Corp", 100, Decimal("10.00")))
    store.append_ledger_entry(_entry("e1"))
    store.clear(Decimal("50000.00"))
    assert store.snapshot() == (Decimal("50000.00"), [])
    assert store.count_ledger_entries() == 0
    assert store.get("AAA") is not None


# --- SQLite durability ---


def test_sqlite_state_survives_reopen(tmp_path):
    path = tmp_path / "data" / "ledger.db"
    store = SQLiteStateStore(path)
    store.initialize(Decimal("100000.00"), TEST_INSTRUMENTS)
    with store.atomic():
        store.write_balance(Decimal("98765.43"))
        store.write_position(Position("AAA", "Alpha Corp", 300, Decimal("10.01")))
        store.append_ledger_entry(_entry("b1"))
        store.append_ledger_entry(_entry("s1", T0 + timedelta(seconds=1), Side.SELL, Decimal("-12.50")))
    store.close()

    reopened = SQLiteStateStore(path)
    reopened.initialize(Decimal("100000.00"), TEST_INSTRUMENTS)
    assert reopened.read_balance() == Decimal("98765.43")
    assert reopened.read_position("AAA") == Position("AAA", "Alpha Corp", 300, Decimal("10.01"))
    sell, buy = reopened.read_ledger_entries(0, 10)
    assert sell.side == Side.SELL
    assert sell.profit_loss == Decimal("-12.50")
    assert buy.profit_loss is None
    assert buy.timestamp == T0
    assert buy == _entry("b1")
    reopened.close()


def test_sqlite_rejects_duplicate_entry_ids(sqlite_store):
    sqlite_store.append_ledger_entry(_entry("dup"))
    with pytest.raises(StoreError):
        sqlite_store.append_ledger_entry(_entry("dup"))


class VanishingSQLiteStore(SQLiteStateStore):
    """Row disappears between the UPDATE and the read back."""

    def get(self, instrument_id):
        return None


def test_sqlite_set_raises_when_row_cannot_be_read_back():
    store = VanishingSQLiteStore(":memory:")
    store.initialize(Decimal("100000.00"), TEST_INSTRUMENTS)
    with pytest.raises(StoreError, match="AAA"):
        store.set("AAA", Decimal("11.00"), T0)
    store.close()
