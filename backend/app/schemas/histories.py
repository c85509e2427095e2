"""Pydantic schemas for History (daily close price) validation."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class HistoryCreate(BaseModel):
    asset_id: int
    close_price_try: Decimal = Field(..., ge=0, max_digits=18, decimal_places=8)
    close_price_usd: Decimal = Field(..., ge=0, max_digits=18, decimal_places=8)
    close_price_eur: Decimal = Field(..., ge=0, max_digits=18, decimal_places=8)
    created_at: datetime | None = Field(
        default=None,
        description="Snapshot time (defaults to now)",
    )


class HistoryUpdate(BaseModel):
    close_price_try: Decimal | None = Field(default=None, ge=0, max_digits=18, decimal_places=8)
    close_price_usd: Decimal | None = Field(default=None, ge=0, max_digits=18, decimal_places=8)
    close_price_eur: Decimal | None = Field(default=None, ge=0, max_digits=18, decimal_places=8)
    created_at: datetime | None = None


class HistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_id: int
    close_price_try: Decimal
    close_price_usd: Decimal
    close_price_eur: Decimal
    created_at: datetime
