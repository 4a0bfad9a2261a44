"""
Portfolio report: print valuation and trade summary from a PortfolioView.
"""

from __future__ import annotations

from typing import Iterable

from ledger_core.ledger import LedgerEntry
from ledger_core.portfolio import PortfolioView
from reporting.metrics import TradeMetrics, compute_trade_metrics


def print_report(
    view: PortfolioView,
    entries: Iterable[LedgerEntry] = (),
) -> TradeMetrics:
    """
    Print holdings, totals and realized trade metrics.

    Parameters
    ----------
    view : PortfolioView
        Output of compute_portfolio() / LedgerService.get_portfolio().
    entries : iterable of LedgerEntry
        Ledger entries for the trade summary (may be empty).

    Returns
    -------
    TradeMetrics
        The computed metrics (e.g. for programmatic use).
    """
    metrics = compute_trade_metrics(entries)
    print("--- Portfolio ---")
    for p in view.positions:
        print(
            f"{p.instrument_id:<8} {p.name:<22} {p.quantity:>7} @ {p.average_cost:>10,.2f}"
            f"  now {p.current_price:>10,.2f}  P&L {p.unrealized_pnl:>12,.2f} ({p.unrealized_pnl_percent:.2f}%)"
        )
    print(f"Cash balance:    {view.balance:,.2f}")
    print(f"Market value:    {view.total_value:,.2f}")
    print(f"Cost basis:      {view.total_cost:,.2f}")
    print(f"Unrealized P&L:  {view.total_profit_loss:,.2f} ({view.total_profit_loss_percent:.2f}%)")
    print(f"Total assets:    {view.total_assets:,.2f}")
    print(f"Trades:          {metrics.trade_count} ({metrics.buy_count} buy / {metrics.sell_count} sell)")
    print(f"Realized P&L:    {metrics.realized_pnl:,.2f}")
    print(f"Sell win rate:   {metrics.win_rate_pct:.2f}%")
    print("-----------------")
    return metrics
