# backend/app/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

- Ticker normalization
- Currency code validation (TRY, USD, EUR)
- Market validation
"""

import re

from app.models import AssetMarket, Currency

# Ticker: 1-32 chars, letters, digits, dots, dashes, underscores
TICKER_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9._\-]{0,31}$")


def validate_ticker(value: str) -> str:
    """
    Normalize a ticker (trim, uppercase) and check its format.

    Raises:
        ValueError: empty or malformed ticker
    """
    if not value or not value.strip():
        raise ValueError("Ticker cannot be empty")

    normalized = value.strip().upper()
    if not TICKER_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid ticker format: '{normalized}'. "
            "Use letters, digits, dots, dashes or underscores (max 32)"
        )
    return normalized


def validate_currency_code(value: str | None) -> str | None:
    """Uppercase a currency code, accepting only TRY, USD and EUR."""
    if value is None:
        return None
    try:
        return Currency.parse(value).value
    except ValueError:
        raise ValueError(
            f"Unsupported currency '{value}'. Use one of: {', '.join(c.value for c in Currency)}"
        ) from None


def validate_market(value: str | AssetMarket) -> AssetMarket:
    try:
        return AssetMarket(value.strip().lower() if isinstance(value, str) else value)
    except ValueError:
        raise ValueError(
            f"Unknown market '{value}'. Use one of: {', '.join(m.value for m in AssetMarket)}"
        ) from None
