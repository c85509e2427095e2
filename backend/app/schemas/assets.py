# backend/app/schemas/assets.py
"""
Pydantic schemas for Asset validation.

Assets are normally written by the market sync; the create/update schemas
serve manual corrections and assets no scraper covers. Prices are given in
the asset's quote currency and stored in all three currencies by the router.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models import AssetMarket
from app.schemas.validators import validate_currency_code, validate_ticker


class AssetCreate(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=32, examples=["AAPL", "THYAO"])
    market: AssetMarket = Field(..., examples=["usa-stock"])
    name: str | None = Field(default=None, max_length=255)
    icon: str | None = Field(default=None, max_length=500)
    currency: str | None = Field(
        default=None,
        description="Quote currency (defaults to the market's currency)",
        examples=["USD"],
    )
    price: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Current price in the quote currency",
    )

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        return validate_ticker(v)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return validate_currency_code(v)


class AssetUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    icon: str | None = Field(default=None, max_length=500)
    currency: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=18, decimal_places=8)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return validate_currency_code(v)


class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticker: str
    market: AssetMarket
    name: str | None
    icon: str | None
    currency: str
    price_try: Decimal
    price_usd: Decimal
    price_eur: Decimal
    scraped_at: datetime | None
    created_at: datetime
    updated_at: datetime


class AssetTypeResponse(BaseModel):
    name: str
    type: str


class TrendResponse(BaseModel):
    """Compact asset view for the ticker tape."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticker: str
    market: AssetMarket
    name: str | None
    icon: str | None
    price_try: Decimal
    price_usd: Decimal
    price_eur: Decimal
