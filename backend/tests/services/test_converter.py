# tests/services/test_converter.py
"""
Tests for TRY/USD/EUR conversion.

Rates used: 1 USD = 30 TRY, 1 EUR = 33 TRY.
"""

from decimal import Decimal

import pytest

from app.models import Currency
from app.services.currency import CurrencyRates, conversion_rate, convert_price, prices_in_all_currencies
from app.services.exceptions import FXConversionError, FXRateNotFoundError
from app.utils.numbers import quantize_price

RATES = CurrencyRates(usd=Decimal("30"), eur=Decimal("33"))


class TestConversionRate:

    @pytest.mark.parametrize("currency", list(Currency))
    def test_same_currency_is_one(self, currency):
        assert conversion_rate(currency, currency, RATES) == Decimal(1)

    def test_matrix(self):
        assert conversion_rate("USD", "TRY", RATES) == Decimal("30")
        assert conversion_rate("EUR", "TRY", RATES) == Decimal("33")
        assert conversion_rate("TRY", "USD", RATES) == Decimal(1) / Decimal("30")
        assert conversion_rate("TRY", "EUR", RATES) == Decimal(1) / Decimal("33")
        assert conversion_rate("USD", "EUR", RATES) == Decimal("30") / Decimal("33")
        assert conversion_rate("EUR", "USD", RATES) == Decimal("33") / Decimal("30")

    def test_codes_are_case_insensitive(self):
        assert conversion_rate("usd", "try", RATES) == Decimal("30")

    def test_unknown_currency(self):
        with pytest.raises(FXRateNotFoundError):
            conversion_rate("GBP", "TRY", RATES)


class TestConvertPrice:

    def test_try_to_usd(self):
        assert quantize_price(convert_price(Decimal("300"), "TRY", "USD", RATES)) == Decimal("10")

    def test_usd_to_eur(self):
        assert quantize_price(convert_price(Decimal("33"), "USD", "EUR", RATES)) == Decimal("30")

    def test_round_trip(self):
        usd = convert_price(Decimal("123.45"), "TRY", "USD", RATES)

        assert quantize_price(convert_price(usd, "USD", "TRY", RATES)) == Decimal("123.45")

    def test_prices_in_all_currencies(self):
        triple = prices_in_all_currencies(Decimal("10"), Currency.USD, RATES)

        assert triple.try_ == Decimal("300")
        assert triple.usd == Decimal("10")
        assert triple.eur.quantize(Decimal("0.0001")) == Decimal("9.0909")
        assert triple.get("try") == triple.try_
        assert triple.get(Currency.EUR) == triple.eur


class TestCurrencyRates:

    def test_eur_to_usd(self):
        assert RATES.eur_to_usd == Decimal("1.1")

    @pytest.mark.parametrize("usd,eur", [(Decimal("0"), Decimal("33")), (Decimal("30"), Decimal("-1")), (None, Decimal("33"))])
    def test_non_positive_rates_rejected(self, usd, eur):
        with pytest.raises(FXConversionError):
            CurrencyRates(usd=usd, eur=eur)
