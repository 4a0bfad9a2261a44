"""
TradeRequest: a parsed and validated buy/sell intent.

Immutable. Loose request input (numeric strings, missing price) is checked
once here; the engine only ever sees a TradeRequest.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from ledger_core.errors import InvalidPrice, InvalidQuantity, UnknownInstrument
from ledger_core.money import LOT_SIZE, MAX_PRICE, is_valid_lot, to_decimal


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


def parse_side(side: Side | str) -> Side:
    if isinstance(side, Side):
        return side
    try:
        return Side(str(side).strip().lower())
    except ValueError:
        raise ValueError(f"side must be 'buy' or 'sell', got {side!r}") from None


def parse_quantity(quantity: Any) -> int:
    """Accept an int or an integral numeric string; enforce the lot size."""
    value = quantity
    if isinstance(quantity, str):
        text = quantity.strip()
        if text.lstrip("+-").isdigit():
            value = int(text)
    if not is_valid_lot(value):
        raise InvalidQuantity(quantity, LOT_SIZE)
    return value


def parse_price(price: Any) -> Decimal | None:
    """None passes through (use the catalog price); anything else must be in (0, MAX_PRICE]."""
    if price is None:
        return None
    try:
        value = to_decimal(price)
    except ValueError:
        raise InvalidPrice(price) from None
    if value <= 0 or value > MAX_PRICE:
        raise InvalidPrice(price)
    return value


@dataclass(frozen=True)
class TradeRequest:
    """A trade as seen by the engine. Quantity is a whole number of lots."""

    instrument_id: str
    side: Side
    quantity: int
    price: Decimal | None = None

    @classmethod
    def parse(
        cls,
        instrument_id: Any,
        side: Side | str,
        quantity: Any,
        price: Any = None,
    ) -> TradeRequest:
        if not isinstance(instrument_id, str) or not instrument_id.strip():
            raise UnknownInstrument(instrument_id)
        return cls(
            instrument_id=instrument_id.strip(),
            side=parse_side(side),
            quantity=parse_quantity(quantity),
            price=parse_price(price),
        )
