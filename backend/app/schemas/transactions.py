# backend/app/schemas/transactions.py
"""
Pydantic schemas for Transaction validation.

The price is entered in `currency` (defaulting to the asset's quote
currency); the stored TRY/USD/EUR prices are fixed by the service with the
rates at write time and are read-only.

IMPORTANT: All financial values use Decimal for precision.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models import TransactionType
from app.schemas.validators import validate_currency_code


class TransactionCreate(BaseModel):
    investment_id: int = Field(..., description="Investment the trade belongs to")
    transaction_type: TransactionType = Field(..., examples=["buy", "sell"])
    quantity: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Units traded (must be positive)",
        examples=["10", "0.5"],
    )
    price: Decimal = Field(
        ...,
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Price per unit in `currency`",
        examples=["150.50"],
    )
    currency: str | None = Field(default=None, examples=["USD", "try"])

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return validate_currency_code(v)


class TransactionUpdate(BaseModel):
    transaction_type: TransactionType | None = None
    quantity: Decimal | None = Field(default=None, gt=0, max_digits=18, decimal_places=8)
    price: Decimal | None = Field(default=None, ge=0, max_digits=18, decimal_places=8)
    currency: str | None = None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return validate_currency_code(v)


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    investment_id: int
    transaction_type: TransactionType
    quantity: Decimal
    price: Decimal
    currency: str
    price_try: Decimal
    price_usd: Decimal
    price_eur: Decimal
    created_at: datetime
    updated_at: datetime
