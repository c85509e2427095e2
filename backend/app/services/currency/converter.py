# backend/app/services/currency/converter.py
"""
TRY / USD / EUR price conversion.

Rate convention (same as the central bank feed):
    CurrencyRates.usd = how many TRY one USD buys
    CurrencyRates.eur = how many TRY one EUR buys

Conversion matrix (multiply the price by the rate):

    TRY -> USD   1 / usd
    TRY -> EUR   1 / eur
    USD -> TRY   usd
    EUR -> TRY   eur
    USD -> EUR   usd / eur
    EUR -> USD   eur / usd

Same currency always converts at exactly 1.

Example:
    rates = CurrencyRates(usd=Decimal("32.50"), eur=Decimal("35.00"))
    convert_price(Decimal("100"), "USD", "EUR", rates)   # 92.857...
    prices_in_all_currencies(Decimal("325"), "TRY", rates)
    # PriceTriple(try_=325, usd=10, eur=9.2857...)
"""

from dataclasses import dataclass
from decimal import Decimal

from app.models import Currency
from app.services.exceptions import FXConversionError, FXRateNotFoundError


@dataclass(frozen=True)
class CurrencyRates:
    """TRY value of one USD and one EUR."""
    usd: Decimal
    eur: Decimal

    def __post_init__(self) -> None:
        if self.usd is None or self.eur is None or self.usd <= 0 or self.eur <= 0:
            raise FXConversionError(f"Rates must be positive (usd={self.usd}, eur={self.eur})")

    @property
    def eur_to_usd(self) -> Decimal:
        return self.eur / self.usd


@dataclass(frozen=True)
class PriceTriple:
    """One value expressed in all three currencies."""
    try_: Decimal
    usd: Decimal
    eur: Decimal

    def get(self, currency: Currency | str) -> Decimal:
        code = Currency.parse(currency)
        if code is Currency.TRY:
            return self.try_
        return self.usd if code is Currency.USD else self.eur


def _parse(code: Currency | str, other: Currency | str) -> Currency:
    try:
        return Currency.parse(code)
    except ValueError:
        raise FXRateNotFoundError(str(code), str(other)) from None


def conversion_rate(
    source: Currency | str,
    target: Currency | str,
    rates: CurrencyRates,
) -> Decimal:
    """
    Multiplier that turns a price in `source` into a price in `target`.

    Raises:
        FXRateNotFoundError: either code is not TRY, USD or EUR
    """
    src = _parse(source, target)
    dst = _parse(target, source)

    if src is dst:
        return Decimal(1)

    matrix: dict[tuple[Currency, Currency], Decimal] = {
        (Currency.TRY, Currency.USD): Decimal(1) / rates.usd,
        (Currency.TRY, Currency.EUR): Decimal(1) / rates.eur,
        (Currency.USD, Currency.TRY): rates.usd,
        (Currency.EUR, Currency.TRY): rates.eur,
        (Currency.USD, Currency.EUR): rates.usd / rates.eur,
        (Currency.EUR, Currency.USD): rates.eur / rates.usd,
    }
    rate = matrix.get((src, dst))
    if rate is None:
        raise FXRateNotFoundError(src.value, dst.value)
    return rate


def convert_price(
    price: Decimal,
    source: Currency | str,
    target: Currency | str,
    rates: CurrencyRates,
) -> Decimal:
    return Decimal(price) * conversion_rate(source, target, rates)


def prices_in_all_currencies(
    price: Decimal,
    currency: Currency | str,
    rates: CurrencyRates,
) -> PriceTriple:
    """Express `price` (quoted in `currency`) in TRY, USD and EUR."""
    return PriceTriple(
        try_=convert_price(price, currency, Currency.TRY, rates),
        usd=convert_price(price, currency, Currency.USD, rates),
        eur=convert_price(price, currency, Currency.EUR, rates),
    )
