"""
Ledger entries: the append-only record of settled trades.

Entries are immutable and written exactly once per settlement.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from ledger_core.order import Side

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100


@dataclass(frozen=True)
class LedgerEntry:
    """One executed trade. profit_loss is set for sells only."""

    entry_id: str
    side: Side
    instrument_id: str
    instrument_name: str
    quantity: int
    price: Decimal
    total: Decimal
    timestamp: datetime
    profit_loss: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.entry_id,
            "type": self.side.value,
            "stockId": self.instrument_id,
            "stockName": self.instrument_name,
            "quantity": self.quantity,
            "price": float(self.price),
            "total": float(self.total),
            "timestamp": self.timestamp.isoformat(),
        }
        if self.profit_loss is not None:
            data["profitLoss"] = float(self.profit_loss)
        return data


@dataclass(frozen=True)
class LedgerPage:
    """A page of entries, newest first."""

    entries: tuple[LedgerEntry, ...]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactions": [e.to_dict() for e in self.entries],
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": self.pages,
        }


def page_bounds(page: int | None, limit: int | None, default_limit: int = DEFAULT_PAGE_LIMIT) -> tuple[int, int, int]:
    """Resolve (page, limit, offset). Page is 1-based; limit is capped."""
    page = 1 if page is None else page
    limit = default_limit if limit is None else limit
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValueError(f"page must be a positive integer, got {page!r}")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")
    limit = min(limit, MAX_PAGE_LIMIT)
    return page, limit, (page - 1) * limit
