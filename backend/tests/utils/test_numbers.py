# tests/utils/test_numbers.py
"""
Tests for locale-aware number parsing and rounding helpers.
"""

from decimal import Decimal

import pytest

from app.utils.numbers import convert_to_number, quantize_price, round_to_two


class TestConvertToNumber:

    @pytest.mark.parametrize("raw,expected", [
        ("1.234,56", Decimal("1234.56")),
        ("1,234.56", Decimal("1234.56")),
        ("187.44 USD", Decimal("187.44")),
        ("2,5", Decimal("2.5")),
        ("%2,5", Decimal("2.5")),
        ("1.234.567", Decimal("1234567")),
        ("−1.2", Decimal("-1.2")),
        ("42", Decimal("42")),
    ])
    def test_guessed_separator(self, raw, expected):
        assert convert_to_number(raw) == expected

    def test_explicit_comma_separator(self):
        assert convert_to_number("2.745,12", decimal_separator=",") == Decimal("2745.12")

    def test_explicit_dot_separator(self):
        assert convert_to_number("34.1849", decimal_separator=".") == Decimal("34.1849")

    def test_explicit_separator_overrides_guess(self):
        # A lone dot would be guessed as decimal
        assert convert_to_number("1.234", decimal_separator=",") == Decimal("1234")

    @pytest.mark.parametrize("raw", [None, "", "—", "-", "N/A"])
    def test_non_numeric_returns_none(self, raw):
        assert convert_to_number(raw) is None

    def test_numbers_pass_through(self):
        assert convert_to_number(Decimal("1.5")) == Decimal("1.5")
        assert convert_to_number(3) == Decimal("3")
        assert convert_to_number(0.1) == Decimal("0.1")


class TestRounding:

    def test_round_to_two_half_up(self):
        assert round_to_two(Decimal("1.005")) == Decimal("1.01")
        assert round_to_two(Decimal("-1.005")) == Decimal("-1.01")
        assert round_to_two(Decimal("2")) == Decimal("2.00")

    def test_quantize_price_eight_places(self):
        assert quantize_price(Decimal("1") / Decimal("3")) == Decimal("0.33333333")
        assert str(quantize_price(Decimal("30"))) == "30.00000000"
