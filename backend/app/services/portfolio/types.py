# backend/app/services/portfolio/types.py
"""
Internal data types for cost basis and valuation.

These dataclasses are NOT Pydantic schemas; the API shapes live in
app/schemas/investments.py. All values are unrounded Decimals, rounding
to 2 places happens only when a response is built.

Type Hierarchy:
    CostBasis               - amount and average price of one investment
    InvestmentValuation     - ranged balance and P/L of one investment
    MarketSummary           - valuations of one market plus totals
    PortfolioSummary        - all markets plus grand totals
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from app.services.constants import HUNDRED, ZERO
from app.services.currency.converter import PriceTriple


def percentage(part: Decimal, base: Decimal) -> Decimal:
    """part / base × 100, or 0 when there is no base."""
    if base == ZERO:
        return ZERO
    return part / base * HUNDRED


@dataclass(frozen=True)
class CostBasis:
    """
    Derived position of an investment.

    Attributes:
        amount: bought quantity - sold quantity
        avg_price: weighted average BUY price per unit, per currency
        bought_qty / sold_qty: totals over the transaction history
    """
    amount: Decimal
    avg_price: PriceTriple
    bought_qty: Decimal
    sold_qty: Decimal


@dataclass(frozen=True)
class InvestmentValuation:
    """
    Valuation of one investment over a range, in the target currency.

    start_price is the earliest close inside the range, or the average cost
    when the range is "all" or has no history.
    """
    investment_id: int
    account_id: int
    asset_id: int
    ticker: str
    name: str | None
    icon: str | None
    market: str
    amount: Decimal
    avg_price: Decimal
    start_price: Decimal
    current_price: Decimal

    @property
    def start_value(self) -> Decimal:
        return self.amount * self.start_price

    @property
    def balance(self) -> Decimal:
        return self.amount * self.current_price

    @property
    def profit_loss(self) -> Decimal:
        return self.balance - self.start_value

    @property
    def profit_loss_percentage(self) -> Decimal:
        return percentage(self.profit_loss, self.start_value)


@dataclass
class MarketSummary:
    market: str
    investments: list[InvestmentValuation] = field(default_factory=list)

    @property
    def total_balance(self) -> Decimal:
        return sum((v.balance for v in self.investments), ZERO)

    @property
    def total_start_value(self) -> Decimal:
        return sum((v.start_value for v in self.investments), ZERO)

    @property
    def total_profit_loss(self) -> Decimal:
        return sum((v.profit_loss for v in self.investments), ZERO)

    @property
    def total_profit_loss_percentage(self) -> Decimal:
        return percentage(self.total_profit_loss, self.total_start_value)


@dataclass
class PortfolioSummary:
    currency: str
    range: str
    markets: dict[str, MarketSummary] = field(default_factory=dict)

    @property
    def general_balance(self) -> Decimal:
        return sum((m.total_balance for m in self.markets.values()), ZERO)

    @property
    def total_start_value(self) -> Decimal:
        return sum((m.total_start_value for m in self.markets.values()), ZERO)

    @property
    def total_profit_loss(self) -> Decimal:
        return sum((m.total_profit_loss for m in self.markets.values()), ZERO)

    @property
    def profit_loss_percentage(self) -> Decimal:
        return percentage(self.total_profit_loss, self.total_start_value)
