"""
Read-side reporting on top of ledger-core.

DataFrame views of the ledger and portfolio, realized trade metrics, and a
printed portfolio summary.
"""

from reporting.frames import ledger_to_frame, portfolio_to_frame
from reporting.metrics import TradeMetrics, compute_trade_metrics
from reporting.portfolio_report import print_report

__all__ = [
    "ledger_to_frame",
    "portfolio_to_frame",
    "TradeMetrics",
    "compute_trade_metrics",
    "print_report",
]
