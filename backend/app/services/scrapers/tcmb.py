# backend/app/services/scrapers/tcmb.py
"""
Central Bank of the Republic of Türkiye daily exchange rates.

Source: https://www.tcmb.gov.tr/kurlar/today.xml

    <Tarih_Date Tarih="17.10.2026" Date="10/17/2026">
      <Currency CrossOrder="0" Kod="USD" CurrencyCode="USD">
        <Unit>1</Unit>
        <Isim>ABD DOLARI</Isim>
        <CurrencyName>US DOLLAR</CurrencyName>
        <ForexBuying>34.1234</ForexBuying>
        <ForexSelling>34.1849</ForexSelling>
        <BanknoteBuying>34.0995</BanknoteBuying>
        <BanknoteSelling>34.2362</BanknoteSelling>
      </Currency>
      ...

Prices are TRY per one unit of the currency (BanknoteSelling, falling back
to ForexSelling for currencies without banknote quotes). Rows quoted per
100 units (JPY) are divided by <Unit>.
"""

import xml.etree.ElementTree as ET
from decimal import Decimal

from app.config import settings
from app.models import AssetMarket, Currency
from app.services.scrapers.base import Scraper, ScrapedQuote
from app.utils.numbers import convert_to_number

# Currency code -> ISO 3166 country code used for the flag icon
_FLAG_COUNTRIES: dict[str, str] = {
    "USD": "us", "EUR": "eu", "GBP": "gb", "CHF": "ch", "JPY": "jp",
    "CAD": "ca", "AUD": "au", "DKK": "dk", "SEK": "se", "NOK": "no",
    "SAR": "sa", "KWD": "kw", "RON": "ro", "RUB": "ru", "BGN": "bg",
    "CNY": "cn", "PKR": "pk", "QAR": "qa", "KRW": "kr", "AZN": "az",
    "AED": "ae", "TRY": "tr",
}

FLAG_URL = "https://flagcdn.com/w40/{country}.png"


def flag_icon(code: str) -> str | None:
    country = _FLAG_COUNTRIES.get(code.upper())
    return FLAG_URL.format(country=country) if country else None


def _text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    return (child.text or "").strip() if child is not None else ""


class TcmbExchangeScraper(Scraper):
    market = AssetMarket.EXCHANGE

    @property
    def name(self) -> str:
        return "tcmb"

    @property
    def urls(self) -> list[str]:
        return [settings.tcmb_url]

    def parse(self, text: str, url: str) -> list[ScrapedQuote]:
        root = ET.fromstring(text)
        quotes: list[ScrapedQuote] = []

        for item in root.iter("Currency"):
            code = (item.get("CurrencyCode") or item.get("Kod") or "").strip().upper()
            sell = convert_to_number(_text(item, "BanknoteSelling"), decimal_separator=".")
            if sell is None:
                sell = convert_to_number(_text(item, "ForexSelling"), decimal_separator=".")
            if not code or sell is None:
                continue

            unit = convert_to_number(_text(item, "Unit"), decimal_separator=".") or Decimal(1)
            buy = convert_to_number(_text(item, "BanknoteBuying"), decimal_separator=".")

            quotes.append(ScrapedQuote(
                ticker=code,
                price=sell / unit,
                name=_text(item, "Isim") or _text(item, "CurrencyName"),
                icon=flag_icon(code),
                currency=Currency.TRY.value,
                buy=buy / unit if buy is not None else None,
                sell=sell / unit,
            ))

        return quotes

    def postprocess(self, quotes: list[ScrapedQuote]) -> list[ScrapedQuote]:
        # TRY itself is an exchange asset so holdings of cash in lira can be valued
        if quotes and not any(q.ticker == Currency.TRY.value for q in quotes):
            quotes.append(ScrapedQuote(
                ticker=Currency.TRY.value,
                price=Decimal(1),
                name="TÜRK LİRASI",
                icon=flag_icon(Currency.TRY.value),
                currency=Currency.TRY.value,
                buy=Decimal(1),
                sell=Decimal(1),
            ))
        return quotes
