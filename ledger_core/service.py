"""
LedgerService: the operation set offered to a request layer.

Composes the price catalog, settlement engine and portfolio aggregator over
one store. HTTP/CLI layers call these methods and map LedgerError.to_dict()
to their own responses.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from ledger_core.catalog import DEFAULT_INSTRUMENTS, Instrument, PriceCatalog
from ledger_core.config import LedgerConfig
from ledger_core.engine import Settlement, SettlementEngine
from ledger_core.ledger import LedgerPage
from ledger_core.portfolio import PortfolioView, compute_portfolio
from ledger_core.storage.base import LedgerStore
from ledger_core.storage.memory import InMemoryStateStore
from ledger_core.storage.sqlite import SQLiteStateStore

logger = logging.getLogger(__name__)


class LedgerService:
    """
    One account, one catalog, one store. No module-level state: build as many
    independent services as needed.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        config: LedgerConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or LedgerConfig()
        self.store = store
        if self.config.auto_initialize:
            store.initialize(self.config.initial_balance, DEFAULT_INSTRUMENTS)
        self.catalog = PriceCatalog(store, clock=clock)
        self.engine = SettlementEngine(store, self.catalog, clock=clock, page_limit=self.config.page_limit)

    @classmethod
    def from_config(cls, config: LedgerConfig | None = None) -> LedgerService:
        """SQLite-backed when config.db_path is set, in-memory otherwise."""
        config = config or LedgerConfig.from_env()
        store: LedgerStore
        if config.db_path:
            store = SQLiteStateStore(config.db_path)
        else:
            store = InMemoryStateStore()
            logger.info("Using in-memory ledger store; state is not persisted")
        return cls(store, config=config)

    def buy(self, instrument_id: Any, quantity: Any, price: Any = None) -> Settlement:
        return self.engine.buy(instrument_id, quantity, price)

    def sell(self, instrument_id: Any, quantity: Any, price: Any = None) -> Settlement:
        return self.engine.sell(instrument_id, quantity, price)

    def get_prices(self) -> list[Instrument]:
        return self.catalog.list_instruments()

    def set_price(self, instrument_id: str, price: Any) -> Instrument:
        return self.catalog.set_price(instrument_id, price)

    def get_portfolio(self) -> PortfolioView:
        balance, positions = self.store.snapshot()
        return compute_portfolio(balance, positions, self.catalog.price_map())

    def get_transactions(self, page: int | None = None, limit: int | None = None) -> LedgerPage:
        return self.engine.transactions(page, limit)

    def reset(self) -> None:
        """Administrative bulk clear back to the configured starting balance."""
        self.engine.reset(self.config.initial_balance)
