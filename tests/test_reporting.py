"""
Tests for reporting: ledger/portfolio frames, trade metrics, printed report.
"""

from decimal import Decimal

import pandas as pd
import pytest

from ledger_core import LedgerService
from ledger_core.storage import InMemoryStateStore
from reporting import compute_trade_metrics, ledger_to_frame, portfolio_to_frame, print_report
from reporting.frames import LEDGER_COLUMNS

from conftest import stepping_clock


@pytest.fixture
def traded_service():
    service = LedgerService(InMemoryStateStore(), clock=stepping_clock())
    service.buy("600028", 1000, "4.00")
    service.buy("601899", 500, "10.00")
    service.sell("600028", 400, "4.50")
    service.sell("601899", 500, "9.00")
    return service


# --- frames ---


def test_ledger_to_frame_empty():
    df = ledger_to_frame([])
    assert df.empty
    assert list(df.columns) == list(LEDGER_COLUMNS)
    assert isinstance(df.index, pd.DatetimeIndex)


def test_ledger_to_frame_oldest_first(traded_service):
    entries = traded_service.get_transactions().entries
    df = ledger_to_frame(entries)
    assert len(df) == 4
    assert isinstance(df.index, pd.DatetimeIndex)
    assert df.index.name == "datetime"
    assert df.index.is_monotonic_increasing
    assert list(df["side"]) == ["buy", "buy", "sell", "sell"]
    assert df["profit_loss"].isna().tolist() == [True, True, False, False]
    assert df["total"].iloc[0] == pytest.approx(4000.0)


def test_portfolio_to_frame(traded_service):
    df = portfolio_to_frame(traded_service.get_portfolio())
    assert list(df.index) == ["600028"]
    assert df.loc["600028", "quantity"] == 600
    assert df.loc["600028", "average_cost"] == pytest.approx(4.0)
    assert df.loc["600028", "current_price"] == pytest.approx(4.38)


# --- metrics ---


def test_compute_trade_metrics(traded_service):
    m = compute_trade_metrics(traded_service.get_transactions().entries)
    assert m.trade_count == 4
    assert m.buy_count == 2
    assert m.sell_count == 2
    assert m.gross_bought == pytest.approx(9000.0)
    assert m.gross_sold == pytest.approx(6300.0)
    # 400 * 0.50 = 200 gain; 500 * -1.00 = -500 loss
    assert m.realized_pnl == pytest.approx(-300.0)
    assert m.winning_sells == 1
    assert m.losing_sells == 1
    assert m.win_rate_pct == pytest.approx(50.0)
    assert m.average_realized_pnl == pytest.approx(-150.0)


def test_compute_trade_metrics_empty():
    m = compute_trade_metrics([])
    assert m.trade_count == 0
    assert m.realized_pnl == 0.0
    assert m.win_rate_pct == 0.0


def test_print_report(traded_service, capsys):
    view = traded_service.get_portfolio()
    metrics = print_report(view, traded_service.get_transactions().entries)
    out = capsys.readouterr().out
    assert "--- Portfolio ---" in out
    assert "Total assets:" in out
    assert "600028" in out
    assert metrics.trade_count == 4
    assert view.total_assets == Decimal("99928.00")
