# backend/app/utils/numbers.py
"""
Number parsing and rounding helpers for scraped and reported values.

Scraped pages mix locales: Turkish sites write "1.234,56", English ones
"1,234.56", TradingView adds a currency suffix ("187.44 USD") and a unicode
minus ("−1.2"). convert_to_number() turns all of them into Decimal.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from app.services.constants import DISPLAY_PRECISION, PRICE_PRECISION

# Everything except digits, separators and sign
_NON_NUMERIC = re.compile(r"[^0-9,.\-+]")


def convert_to_number(value: str | int | float | Decimal | None, decimal_separator: str | None = None) -> Decimal | None:
    """
    Parse a locale-formatted number.

    Args:
        value: Raw text such as "1.234,56", "1,234.56", "187.44 USD", "%2,5"
        decimal_separator: "," or "." when the source locale is known.
            When None the separator is guessed: with both present the
            rightmost one wins, a lone comma is decimal, repeated dots are
            thousands separators.

    Returns:
        The Decimal value, or None when nothing numeric is left.

    Example:
        >>> convert_to_number("1.234,56")
        Decimal('1234.56')
        >>> convert_to_number("1,234.56 USD")
        Decimal('1234.56')
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    text = value.strip().replace("−", "-").replace(" ", "").replace(" ", "")
    text = _NON_NUMERIC.sub("", text)
    if not text or text in {"-", "+"}:
        return None

    if decimal_separator is None:
        decimal_separator = _guess_decimal_separator(text)

    thousands = "." if decimal_separator == "," else ","
    text = text.replace(thousands, "").replace(decimal_separator, ".")

    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def _guess_decimal_separator(text: str) -> str:
    has_comma = "," in text
    has_dot = "." in text
    if has_comma and has_dot:
        return "," if text.rfind(",") > text.rfind(".") else "."
    if has_comma:
        return ","
    if text.count(".") > 1:
        return ","
    return "."


def round_to_two(value: Decimal) -> Decimal:
    """Round for display (ROUND_HALF_UP, 2 places)."""
    return Decimal(value).quantize(DISPLAY_PRECISION, rounding=ROUND_HALF_UP)


def quantize_price(value: Decimal) -> Decimal:
    """Round to the 8 places stored in Numeric(18, 8) columns."""
    return Decimal(value).quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)
