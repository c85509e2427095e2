"""
Currency conversion between TRY, USD and EUR.

The rate source lives in app.services.currency.rates (RateProvider); it
is not re-exported here because it depends on the asset store, which
itself uses the converter.

Usage:
    from app.services.currency import CurrencyRates, convert_price

    price_usd = convert_price(price_try, "TRY", "USD", rates)
"""

from app.services.currency.converter import (
    CurrencyRates,
    PriceTriple,
    conversion_rate,
    convert_price,
    prices_in_all_currencies,
)

__all__ = [
    "CurrencyRates",
    "PriceTriple",
    "conversion_rate",
    "convert_price",
    "prices_in_all_currencies",
]
