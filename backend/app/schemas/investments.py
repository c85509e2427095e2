# backend/app/schemas/investments.py
"""
Pydantic schemas for Investment CRUD and valuation responses.

Amount and average prices are derived from transactions, so neither the
create nor the update body accepts them.

Valuation responses carry values rounded to 2 decimal places (ROUND_HALF_UP);
the from_summary() builders do the rounding so the service layer never does.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.services.portfolio.types import InvestmentValuation, MarketSummary, PortfolioSummary
from app.utils.numbers import round_to_two


# =============================================================================
# CRUD SCHEMAS
# =============================================================================

class InvestmentCreate(BaseModel):
    account_id: int = Field(..., description="Account holding the investment")
    asset_id: int = Field(..., description="Asset invested in")


class InvestmentUpdate(BaseModel):
    account_id: int | None = Field(default=None, description="Move the investment to another account")


class InvestmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    asset_id: int
    amount: Decimal
    avg_price_try: Decimal
    avg_price_usd: Decimal
    avg_price_eur: Decimal
    created_at: datetime
    updated_at: datetime


# =============================================================================
# VALUATION SCHEMAS
# =============================================================================

class InvestmentPrice(BaseModel):
    """One investment valued in the requested currency and range."""

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
    balance: Decimal
    profit_loss: Decimal
    profit_loss_percentage: Decimal

    @classmethod
    def from_valuation(cls, v: InvestmentValuation) -> "InvestmentPrice":
        return cls(
            investment_id=v.investment_id,
            account_id=v.account_id,
            asset_id=v.asset_id,
            ticker=v.ticker,
            name=v.name,
            icon=v.icon,
            market=v.market,
            amount=v.amount,
            avg_price=round_to_two(v.avg_price),
            start_price=round_to_two(v.start_price),
            current_price=round_to_two(v.current_price),
            balance=round_to_two(v.balance),
            profit_loss=round_to_two(v.profit_loss),
            profit_loss_percentage=round_to_two(v.profit_loss_percentage),
        )


class MarketBalance(BaseModel):
    market: str
    total_balance: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percentage: Decimal

    @classmethod
    def from_summary(cls, m: MarketSummary) -> "MarketBalance":
        return cls(
            market=m.market,
            total_balance=round_to_two(m.total_balance),
            total_profit_loss=round_to_two(m.total_profit_loss),
            total_profit_loss_percentage=round_to_two(m.total_profit_loss_percentage),
        )


class MarketPrices(MarketBalance):
    investments: list[InvestmentPrice]

    @classmethod
    def from_summary(cls, m: MarketSummary) -> "MarketPrices":
        base = MarketBalance.from_summary(m)
        return cls(
            **base.model_dump(),
            investments=[InvestmentPrice.from_valuation(v) for v in m.investments],
        )


class TotalBalanceResponse(BaseModel):
    currency: str
    range: str
    general_balance: Decimal
    total_profit_loss: Decimal
    profit_loss_percentage: Decimal

    @classmethod
    def from_summary(cls, s: PortfolioSummary) -> "TotalBalanceResponse":
        return cls(
            currency=s.currency,
            range=s.range,
            general_balance=round_to_two(s.general_balance),
            total_profit_loss=round_to_two(s.total_profit_loss),
            profit_loss_percentage=round_to_two(s.profit_loss_percentage),
        )


class MarketBalanceResponse(BaseModel):
    currency: str
    range: str
    markets: list[MarketBalance]

    @classmethod
    def from_summary(cls, s: PortfolioSummary) -> "MarketBalanceResponse":
        return cls(
            currency=s.currency,
            range=s.range,
            markets=[MarketBalance.from_summary(m) for m in s.markets.values()],
        )


class InvestmentPricesResponse(TotalBalanceResponse):
    """Investments grouped by market plus the portfolio totals."""

    investment_prices: dict[str, MarketPrices]

    @classmethod
    def from_summary(cls, s: PortfolioSummary) -> "InvestmentPricesResponse":
        totals = TotalBalanceResponse.from_summary(s)
        return cls(
            **totals.model_dump(),
            investment_prices={name: MarketPrices.from_summary(m) for name, m in s.markets.items()},
        )
