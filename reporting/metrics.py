"""
Trade metrics: turnover, realized P&L and sell win rate from ledger entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from ledger_core.ledger import LedgerEntry
from ledger_core.order import Side


@dataclass
class TradeMetrics:
    """Summary of settled trades."""

    trade_count: int
    buy_count: int
    sell_count: int
    gross_bought: float
    gross_sold: float
    realized_pnl: float
    winning_sells: int
    losing_sells: int
    win_rate_pct: float
    average_realized_pnl: float


def compute_trade_metrics(entries: Iterable[LedgerEntry]) -> TradeMetrics:
    """
    Compute trade metrics from ledger entries.

    Parameters
    ----------
    entries : iterable of LedgerEntry
        Settled trades in any order.

    Returns
    -------
    TradeMetrics
        Counts, gross turnover per side, realized P&L totals and win rate
        (share of sells with positive realized P&L).
    """
    entries = list(entries)
    buys = np.array([float(e.total) for e in entries if e.side == Side.BUY], dtype=float)
    sells = np.array([float(e.total) for e in entries if e.side == Side.SELL], dtype=float)
    realized = np.array(
        [float(e.profit_loss) for e in entries if e.side == Side.SELL and e.profit_loss is not None],
        dtype=float,
    )

    winning = int(np.count_nonzero(realized > 0))
    losing = int(np.count_nonzero(realized < 0))
    win_rate = (winning / len(realized) * 100.0) if len(realized) else 0.0
    average = float(np.mean(realized)) if len(realized) else 0.0

    return TradeMetrics(
        trade_count=len(entries),
        buy_count=len(buys),
        sell_count=len(sells),
        gross_bought=round(float(np.sum(buys)), 2),
        gross_sold=round(float(np.sum(sells)), 2),
        realized_pnl=round(float(np.sum(realized)), 2),
        winning_sells=winning,
        losing_sells=losing,
        win_rate_pct=round(win_rate, 2),
        average_realized_pnl=round(average, 2),
    )
