"""
Settlement engine: validate and apply buy/sell requests.

Each settlement reads balance and position, computes the new state and writes
balance, position and ledger entry inside one store atomic unit. A process
lock serializes settlements so concurrent requests cannot lose updates.
Rejected requests are logged for debugging and reporting.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable

from ledger_core.catalog import Instrument, PriceCatalog
from ledger_core.errors import (
    CommitFailed,
    InsufficientFunds,
    InsufficientPosition,
    LedgerError,
    StoreError,
    UnknownInstrument,
)
from ledger_core.ledger import DEFAULT_PAGE_LIMIT, LedgerEntry, LedgerPage, page_bounds
from ledger_core.money import round_money
from ledger_core.order import Side, TradeRequest
from ledger_core.portfolio import Position, apply_buy, apply_sell
from ledger_core.storage.base import StateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settlement:
    """Result of a settled trade: the ledger entry and the state it left behind."""

    entry: LedgerEntry
    balance: Decimal
    position: Position | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "transaction": self.entry.to_dict(),
            "balance": float(self.balance),
            "position": self.position.to_dict() if self.position else None,
        }


@dataclass(frozen=True)
class RejectedTrade:
    """One entry for a request that failed validation, a business rule or commit."""

    reason: str
    message: str
    timestamp: datetime
    request: TradeRequest | None = None


def _new_entry_id() -> str:
    return uuid.uuid4().hex


class SettlementEngine:
    """
    Apply trades to a StateStore, pricing from a PriceCatalog.
    Flow: resolve instrument → lock → atomic unit (read → check → write
    balance → write position → append ledger entry) → commit.
    """

    def __init__(
        self,
        store: StateStore,
        catalog: PriceCatalog,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
        page_limit: int = DEFAULT_PAGE_LIMIT,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.page_limit = page_limit
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._id_factory = id_factory or _new_entry_id
        self._lock = threading.Lock()
        self._rejected_log: list[RejectedTrade] = []

    def get_rejected_log(self) -> list[RejectedTrade]:
        """Return log of rejected requests for debugging and reporting."""
        return list(self._rejected_log)

    def _reject(self, error: LedgerError, request: TradeRequest | None) -> None:
        self._rejected_log.append(
            RejectedTrade(reason=error.code, message=str(error), timestamp=self._clock(), request=request)
        )

    # --- public operations ---

    def buy(self, instrument_id: Any, quantity: Any, price: Any = None) -> Settlement:
        return self._parse_and_settle(instrument_id, Side.BUY, quantity, price)

    def sell(self, instrument_id: Any, quantity: Any, price: Any = None) -> Settlement:
        return self._parse_and_settle(instrument_id, Side.SELL, quantity, price)

    def _parse_and_settle(self, instrument_id: Any, side: Side, quantity: Any, price: Any) -> Settlement:
        try:
            request = TradeRequest.parse(instrument_id, side, quantity, price)
        except UnknownInstrument as exc:
            failure = UnknownInstrument(exc.instrument_id, self.catalog.known_ids())
            self._reject(failure, None)
            logger.info("Trade rejected: %s", failure)
            raise failure from None
        except LedgerError as exc:
            self._reject(exc, None)
            logger.info("Trade rejected: %s", exc)
            raise
        return self.settle(request)

    def settle(self, request: TradeRequest) -> Settlement:
        """Execute a validated request. Raises a LedgerError subclass on failure."""
        try:
            instrument = self.catalog.get(request.instrument_id)
        except LedgerError as exc:
            self._reject(exc, request)
            logger.info("Trade rejected: %s", exc)
            raise
        price = request.price if request.price is not None else instrument.price

        with self._lock:
            try:
                with self.store.atomic():
                    if request.side == Side.BUY:
                        result = self._apply_buy(instrument, request.quantity, price)
                    else:
                        result = self._apply_sell(instrument, request.quantity, price)
            except (InsufficientFunds, InsufficientPosition) as exc:
                self._reject(exc, request)
                logger.info("Trade rejected: %s", exc)
                raise
            except StoreError as exc:
                logger.error("Settlement commit failed for %s %s", request.side.value, request.instrument_id, exc_info=True)
                failure = CommitFailed(f"settlement of {request.side.value} {request.instrument_id} was not committed: {exc}")
                self._reject(failure, request)
                raise failure from exc

        entry = result.entry
        logger.info(
            "Settled %s %d %s @ %s total=%s balance=%s",
            entry.side.value,
            entry.quantity,
            entry.instrument_id,
            entry.price,
            entry.total,
            result.balance,
        )
        return result

    def transactions(self, page: int | None = None, limit: int | None = None) -> LedgerPage:
        """Ledger entries, newest first."""
        page, limit, offset = page_bounds(page, limit, self.page_limit)
        entries, total = self.store.read_ledger_page(offset, limit)
        return LedgerPage(entries=tuple(entries), page=page, limit=limit, total=total)

    def reset(self, balance: Decimal) -> None:
        """Clear positions and ledger and set the balance. Waits for any settlement in flight."""
        with self._lock:
            self.store.clear(balance)
        logger.warning("Ledger reset: balance=%s, positions and ledger cleared", balance)

    # --- settlement steps (run inside the atomic unit) ---

    def _apply_buy(self, instrument: Instrument, quantity: int, price: Decimal) -> Settlement:
        cost = round_money(price * quantity)
        balance = self.store.read_balance()
        if balance < cost:
            raise InsufficientFunds(required=cost, available=balance)
        position = apply_buy(self.store.read_position(instrument.instrument_id), instrument, quantity, price)

        new_balance = balance - cost
        self.store.write_balance(new_balance)
        self.store.write_position(position)
        entry = LedgerEntry(
            entry_id=self._id_factory(),
            side=Side.BUY,
            instrument_id=instrument.instrument_id,
            instrument_name=instrument.name,
            quantity=quantity,
            price=price,
            total=cost,
            timestamp=self._clock(),
        )
        self.store.append_ledger_entry(entry)
        return Settlement(entry=entry, balance=new_balance, position=position)

    def _apply_sell(self, instrument: Instrument, quantity: int, price: Decimal) -> Settlement:
        held = self.store.read_position(instrument.instrument_id)
        if held is None or held.quantity < quantity:
            raise InsufficientPosition(held=held.quantity if held else 0, requested=quantity)
        revenue = round_money(price * quantity)
        profit_loss = round_money((price - held.average_cost) * quantity)
        balance = self.store.read_balance()
        remaining = apply_sell(held, quantity)

        new_balance = balance + revenue
        self.store.write_balance(new_balance)
        if remaining is None:
            self.store.delete_position(instrument.instrument_id)
        else:
            self.store.write_position(remaining)
        entry = LedgerEntry(
            entry_id=self._id_factory(),
            side=Side.SELL,
            instrument_id=instrument.instrument_id,
            instrument_name=instrument.name,
            quantity=quantity,
            price=price,
            total=revenue,
            timestamp=self._clock(),
            profit_loss=profit_loss,
        )
        self.store.append_ledger_entry(entry)
        return Settlement(entry=entry, balance=new_balance, position=remaining)
