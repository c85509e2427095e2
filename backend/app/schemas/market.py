# backend/app/schemas/market.py
"""
Schemas for the read-only scraped views, exchange rates and sync results.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class QuoteResponse(BaseModel):
    """A scraped row as served by /stocks, /crypto, /funds and friends."""
    model_config = ConfigDict(from_attributes=True)

    ticker: str
    name: str
    price: Decimal | None
    icon: str | None = None
    currency: str | None = None
    buy: Decimal | None = None
    sell: Decimal | None = None
    change: Decimal | None = None


class ExchangeRatesResponse(BaseModel):
    """TRY value of one unit of each currency."""

    try_: Decimal = Field(default=Decimal("1"), alias="try", serialization_alias="try")
    usd: Decimal
    eur: Decimal
    eur_to_usd: Decimal

    model_config = ConfigDict(populate_by_name=True)


class MarketSyncResponse(BaseModel):
    market: str
    fetched: int
    written: int
    success: bool
    error: str | None = None


class SyncRunResponse(BaseModel):
    status: str = Field(..., description="completed, partial or failed")
    started_at: datetime
    completed_at: datetime | None
    total_written: int
    markets: list[MarketSyncResponse]
