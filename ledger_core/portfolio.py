"""
Position book and portfolio valuation.

Positions carry weighted-average cost. compute_portfolio is pure: it combines
a balance, positions and current prices into a read-only PortfolioView.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ledger_core.money import round_money

if TYPE_CHECKING:
    from ledger_core.catalog import Instrument

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Position:
    """An open long position. A zero-quantity position is never stored."""

    instrument_id: str
    name: str
    quantity: int
    average_cost: Decimal

    @property
    def cost_basis(self) -> Decimal:
        return self.average_cost * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "instrumentId": self.instrument_id,
            "name": self.name,
            "quantity": self.quantity,
            "averageCost": float(self.average_cost),
        }


def apply_buy(
    position: Position | None,
    instrument: Instrument,
    quantity: int,
    price: Decimal,
) -> Position:
    """Open or add to a position; average cost is re-weighted and rounded to cents."""
    if position is None:
        return Position(instrument.instrument_id, instrument.name, quantity, price)
    new_quantity = position.quantity + quantity
    new_average = round_money((position.average_cost * position.quantity + price * quantity) / new_quantity)
    return Position(position.instrument_id, position.name, new_quantity, new_average)


def apply_sell(position: Position, quantity: int) -> Position | None:
    """Reduce a position. Average cost is unchanged; None when fully closed."""
    remaining = position.quantity - quantity
    if remaining == 0:
        return None
    return Position(position.instrument_id, position.name, remaining, position.average_cost)


@dataclass(frozen=True)
class PositionView:
    """One valued position. Money fields are rounded to cents."""

    instrument_id: str
    name: str
    quantity: int
    average_cost: Decimal
    current_price: Decimal
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_percent: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "stockId": self.instrument_id,
            "stockName": self.name,
            "quantity": self.quantity,
            "averagePrice": float(self.average_cost),
            "currentPrice": float(self.current_price),
            "value": float(self.market_value),
            "costBasis": float(self.cost_basis),
            "profitLoss": float(self.unrealized_pnl),
            "profitLossPercent": float(self.unrealized_pnl_percent),
        }


@dataclass(frozen=True)
class PortfolioView:
    """Valuation snapshot: cash, valued positions and totals."""

    balance: Decimal
    positions: tuple[PositionView, ...]
    total_value: Decimal
    total_cost: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percent: Decimal
    total_assets: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": float(self.balance),
            "portfolioValue": float(self.total_value),
            "totalAssets": float(self.total_assets),
            "portfolioStats": {
                "stocks": [p.to_dict() for p in self.positions],
                "totalValue": float(self.total_value),
                "totalCost": float(self.total_cost),
                "totalProfitLoss": float(self.total_profit_loss),
                "totalProfitLossPercent": float(self.total_profit_loss_percent),
            },
        }


def _percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator > 0:
        return numerator / denominator * HUNDRED
    return ZERO


def compute_portfolio(
    balance: Decimal,
    positions: Iterable[Position],
    prices: Mapping[str, Decimal],
) -> PortfolioView:
    """
    Value positions at current prices.

    Totals accumulate at full precision; only reported figures are rounded.
    A position whose instrument has no price is valued at zero.
    """
    views: list[PositionView] = []
    total_value = ZERO
    total_cost = ZERO
    for pos in sorted(positions, key=lambda p: p.instrument_id):
        current_price = prices.get(pos.instrument_id) or ZERO
        market_value = current_price * pos.quantity
        cost_basis = pos.average_cost * pos.quantity
        unrealized = market_value - cost_basis
        total_value += market_value
        total_cost += cost_basis
        views.append(
            PositionView(
                instrument_id=pos.instrument_id,
                name=pos.name,
                quantity=pos.quantity,
                average_cost=pos.average_cost,
                current_price=current_price,
                market_value=round_money(market_value),
                cost_basis=round_money(cost_basis),
                unrealized_pnl=round_money(unrealized),
                unrealized_pnl_percent=round_money(_percent(unrealized, cost_basis)),
            )
        )
    total_profit_loss = total_value - total_cost
    return PortfolioView(
        balance=round_money(balance),
        positions=tuple(views),
        total_value=round_money(total_value),
        total_cost=round_money(total_cost),
        total_profit_loss=round_money(total_profit_loss),
        total_profit_loss_percent=round_money(_percent(total_profit_loss, total_cost)),
        total_assets=round_money(balance + total_value),
    )
