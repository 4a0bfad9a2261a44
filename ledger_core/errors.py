"""
Typed failures raised by the settlement core.

Every error carries a stable ``code`` and a ``to_dict()`` payload so the
request layer can map it to a structured response without string matching.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from ledger_core.money import MAX_PRICE, MAX_QUANTITY


class LedgerError(Exception):
    """Base class for all ledger failures."""

    code = "ledger_error"
    retryable = False

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class InvalidQuantity(LedgerError):
    code = "invalid_quantity"

    def __init__(self, quantity: Any, lot_size: int) -> None:
        self.quantity = quantity
        self.lot_size = lot_size
        super().__init__(f"quantity must be a positive multiple of {lot_size} up to {MAX_QUANTITY}, got {quantity!r}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "quantity": str(self.quantity), "lotSize": self.lot_size}


class InvalidPrice(LedgerError):
    code = "invalid_price"

    def __init__(self, price: Any) -> None:
        self.price = price
        super().__init__(f"price must be a positive number up to {MAX_PRICE}, got {price!r}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "price": str(self.price)}


class UnknownInstrument(LedgerError):
    code = "unknown_instrument"

    def __init__(self, instrument_id: Any, known_ids: Iterable[str] = ()) -> None:
        self.instrument_id = instrument_id
        self.known_ids = tuple(sorted(known_ids))
        super().__init__(f"unknown instrument {instrument_id!r}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "instrumentId": self.instrument_id, "availableInstruments": list(self.known_ids)}


class InsufficientFunds(LedgerError):
    code = "insufficient_funds"

    def __init__(self, required: Decimal, available: Decimal) -> None:
        self.required = required
        self.available = available
        super().__init__(f"insufficient funds: required {required}, available {available}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "required": str(self.required), "available": str(self.available)}


class InsufficientPosition(LedgerError):
    code = "insufficient_position"

    def __init__(self, held: int, requested: int) -> None:
        self.held = held
        self.requested = requested
        super().__init__(f"insufficient position: held {held}, requested {requested}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "held": self.held, "requested": self.requested}


class CommitFailed(LedgerError):
    """Persistence failed mid-settlement. No partial state is visible."""

    code = "commit_failed"
    retryable = True


class AccountNotInitialized(LedgerError):
    """The store has no account row; bootstrap with StateStore.initialize()."""

    code = "account_not_initialized"


class StoreError(LedgerError):
    """Infrastructure failure inside a storage backend."""

    code = "store_error"
