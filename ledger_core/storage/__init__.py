"""
Storage layer: persistence interfaces and backends.

PriceProvider and StateStore interfaces; in-memory store for simulation and
tests; SQLite store for durable single-file ledgers.
"""

from ledger_core.storage.base import LedgerStore, PriceProvider, StateStore
from ledger_core.storage.memory import InMemoryStateStore
from ledger_core.storage.sqlite import SQLiteStateStore

__all__ = [
    "LedgerStore",
    "PriceProvider",
    "StateStore",
    "InMemoryStateStore",
    "SQLiteStateStore",
]
