"""
Money and lot-size rules shared by the settlement core.

All monetary math uses Decimal. Rounding to cents happens only where a value
is reported or persisted as a money figure.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any

MONEY_PLACES = Decimal("0.01")
LOT_SIZE = 100
INITIAL_BALANCE = Decimal("100000.00")

# request bounds; their product stays well inside the rounding precision
MAX_PRICE = Decimal("1000000000")
MAX_QUANTITY = 10**12

_MONEY_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """
    Convert int, str, float or Decimal to Decimal.

    Floats go through str() so 32.65 stays 32.65. Raises ValueError for
    anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"not a number: {value!r}") from exc
    else:
        raise ValueError(f"not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def round_money(value: Decimal) -> Decimal:
    """Quantize to cents; ties round away from zero."""
    return value.quantize(MONEY_PLACES, context=_MONEY_CONTEXT)


def is_valid_lot(quantity: Any) -> bool:
    """True for a positive int that is a whole number of lots, at most MAX_QUANTITY."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return False
    return 0 < quantity <= MAX_QUANTITY and quantity % LOT_SIZE == 0
