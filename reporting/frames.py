"""
DataFrame views of ledger and portfolio state.

Money columns are floats here: frames are for analysis and display, the
ledger itself stays in Decimal.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from ledger_core.ledger import LedgerEntry
from ledger_core.portfolio import PortfolioView

LEDGER_COLUMNS = (
    "entry_id",
    "side",
    "instrument_id",
    "instrument_name",
    "quantity",
    "price",
    "total",
    "profit_loss",
    "timestamp",
)

POSITION_COLUMNS = (
    "name",
    "quantity",
    "average_cost",
    "current_price",
    "market_value",
    "cost_basis",
    "unrealized_pnl",
    "unrealized_pnl_percent",
)


def ledger_to_frame(entries: Iterable[LedgerEntry]) -> pd.DataFrame:
    """
    One row per ledger entry, oldest first.

    Parameters
    ----------
    entries : iterable of LedgerEntry
        In any order (e.g. a newest-first page).

    Returns
    -------
    pd.DataFrame
        Columns LEDGER_COLUMNS with a DatetimeIndex named 'datetime'.
        profit_loss is NaN for buys.
    """
    rows = [
        {
            "entry_id": e.entry_id,
            "side": e.side.value,
            "instrument_id": e.instrument_id,
            "instrument_name": e.instrument_name,
            "quantity": e.quantity,
            "price": float(e.price),
            "total": float(e.total),
            "profit_loss": float(e.profit_loss) if e.profit_loss is not None else float("nan"),
            "timestamp": e.timestamp,
        }
        for e in entries
    ]
    if not rows:
        df = pd.DataFrame(columns=list(LEDGER_COLUMNS))
        df.index = pd.DatetimeIndex([], name="datetime")
        return df
    df = pd.DataFrame(rows, columns=list(LEDGER_COLUMNS))
    df.index = pd.DatetimeIndex(pd.to_datetime(df["timestamp"], utc=True), name="datetime")
    # stable sort keeps insertion order for equal timestamps
    return df.sort_index(kind="mergesort")


def portfolio_to_frame(view: PortfolioView) -> pd.DataFrame:
    """One row per valued position, indexed by instrument_id."""
    rows = [
        {
            "instrument_id": p.instrument_id,
            "name": p.name,
            "quantity": p.quantity,
            "average_cost": float(p.average_cost),
            "current_price": float(p.current_price),
            "market_value": float(p.market_value),
            "cost_basis": float(p.cost_basis),
            "unrealized_pnl": float(p.unrealized_pnl),
            "unrealized_pnl_percent": float(p.unrealized_pnl_percent),
        }
        for p in view.positions
    ]
    df = pd.DataFrame(rows, columns=["instrument_id", *POSITION_COLUMNS])
    return df.set_index("instrument_id")
