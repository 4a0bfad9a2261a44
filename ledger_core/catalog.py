"""
Price catalog: instrument id -> current price.

Read by valuation and as the fallback execution price. Prices change only
through set_price(); no price history is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable

from ledger_core.errors import InvalidPrice, UnknownInstrument
from ledger_core.order import parse_price

if TYPE_CHECKING:
    from ledger_core.storage.base import PriceProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Instrument:
    """A tradable instrument. Price is the only field that changes."""

    instrument_id: str
    name: str
    price: Decimal
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.instrument_id,
            "name": self.name,
            "price": float(self.price),
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


DEFAULT_INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument("600036", "China Merchants Bank", Decimal("32.65")),
    Instrument("601318", "Ping An Insurance", Decimal("42.80")),
    Instrument("600519", "Kweichow Moutai", Decimal("1725.00")),
    Instrument("000858", "Wuliangye Yibin", Decimal("168.50")),
    Instrument("000333", "Midea Group", Decimal("56.30")),
    Instrument("600028", "Sinopec", Decimal("4.38")),
    Instrument("601899", "Zijin Mining", Decimal("9.82")),
    Instrument("002594", "BYD", Decimal("258.60")),
    Instrument("601012", "LONGi Green Energy", Decimal("38.45")),
    Instrument("600900", "China Yangtze Power", Decimal("22.76")),
)


class PriceCatalog:
    """
    Validating front for a PriceProvider. Unknown ids fail with
    UnknownInstrument listing the ids that do exist.
    """

    def __init__(
        self,
        provider: PriceProvider,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.provider = provider
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def list_instruments(self) -> list[Instrument]:
        return sorted(self.provider.list(), key=lambda i: i.instrument_id)

    def known_ids(self) -> list[str]:
        return [i.instrument_id for i in self.list_instruments()]

    def get(self, instrument_id: str) -> Instrument:
        instrument = self.provider.get(instrument_id)
        if instrument is None:
            raise UnknownInstrument(instrument_id, self.known_ids())
        return instrument

    def get_price(self, instrument_id: str) -> Decimal:
        return self.get(instrument_id).price

    def set_price(self, instrument_id: str, new_price: Any) -> Instrument:
        """Overwrite the price. Zero or negative prices are rejected, never ignored."""
        price = parse_price(new_price)
        if price is None:
            raise InvalidPrice(new_price)
        if self.provider.get(instrument_id) is None:
            raise UnknownInstrument(instrument_id, self.known_ids())
        updated = self.provider.set(instrument_id, price, self._clock())
        logger.info("Price updated: %s -> %s", instrument_id, price)
        return updated

    def price_map(self) -> dict[str, Decimal]:
        return {i.instrument_id: i.price for i in self.provider.list()}
