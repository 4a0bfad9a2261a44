"""
ledger-core: single-account trade-settlement ledger.

Cash, long positions at weighted-average cost, and an append-only ledger of
settled trades. No HTTP layer, no market-data feed. Strong interfaces,
pluggable storage.
"""

__version__ = "0.1.0"

from ledger_core.catalog import DEFAULT_INSTRUMENTS, Instrument, PriceCatalog
from ledger_core.config import LedgerConfig
from ledger_core.engine import Settlement, SettlementEngine
from ledger_core.errors import (
    AccountNotInitialized,
    CommitFailed,
    InsufficientFunds,
    InsufficientPosition,
    InvalidPrice,
    InvalidQuantity,
    LedgerError,
    StoreError,
    UnknownInstrument,
)
from ledger_core.ledger import LedgerEntry, LedgerPage
from ledger_core.order import Side, TradeRequest
from ledger_core.portfolio import PortfolioView, Position, PositionView, compute_portfolio
from ledger_core.service import LedgerService

__all__ = [
    "DEFAULT_INSTRUMENTS",
    "Instrument",
    "PriceCatalog",
    "LedgerConfig",
    "Settlement",
    "SettlementEngine",
    "AccountNotInitialized",
    "CommitFailed",
    "InsufficientFunds",
    "InsufficientPosition",
    "InvalidPrice",
    "InvalidQuantity",
    "LedgerError",
    "StoreError",
    "UnknownInstrument",
    "LedgerEntry",
    "LedgerPage",
    "Side",
    "TradeRequest",
    "PortfolioView",
    "Position",
    "PositionView",
    "compute_portfolio",
    "LedgerService",
]
