# backend/app/services/scrapers/funds.py
"""
Turkish mutual fund unit prices.

Two bank portals are scraped and merged:
- İş Portföy: tbody rows with a.fund-name, .table-code and the unit price
  in the third cell
- Yapı Kredi: tbody rows with "CODE / ..." in the first cell, the fund name
  in the second and the unit price in the third

Prices are TRY with a decimal comma. Rows missing a code, name or price are
dropped; when both portals list a code the first one wins.
"""

from bs4 import BeautifulSoup

from app.models import AssetMarket, Currency
from app.services.scrapers.base import Scraper, ScrapedQuote
from app.utils.numbers import convert_to_number

ISPORTFOY_URL = "https://www.isportfoy.com.tr/getiri-ve-fiyatlar"
YAPIKREDI_URL = "https://www.yapikredi.com.tr/yatirimci-kosesi/fon-bilgileri"


def _first_line(text: str) -> str:
    return text.strip().split("\n")[0].strip()


class FundScraper(Scraper):
    market = AssetMarket.FUND

    @property
    def name(self) -> str:
        return "funds"

    @property
    def urls(self) -> list[str]:
        return [ISPORTFOY_URL, YAPIKREDI_URL]

    def parse(self, text: str, url: str) -> list[ScrapedQuote]:
        soup = BeautifulSoup(text, "html.parser")
        if url == YAPIKREDI_URL:
            rows = [self._parse_yapikredi_row(tr) for tr in soup.select("tbody tr")]
        else:
            rows = [self._parse_isportfoy_row(tr) for tr in soup.select("tbody tr")]
        return [row for row in rows if row is not None]

    def postprocess(self, quotes: list[ScrapedQuote]) -> list[ScrapedQuote]:
        seen: set[str] = set()
        unique = []
        for quote in quotes:
            if quote.ticker not in seen:
                seen.add(quote.ticker)
                unique.append(quote)
        return unique

    @staticmethod
    def _build(code: str, name: str, price_text: str) -> ScrapedQuote | None:
        price = convert_to_number(price_text, decimal_separator=",")
        if not code or not name or price is None:
            return None
        return ScrapedQuote(
            ticker=code.upper(),
            price=price,
            name=name,
            currency=Currency.TRY.value,
        )

    def _parse_isportfoy_row(self, row) -> ScrapedQuote | None:
        name_el = row.select_one("td a.fund-name")
        code_el = row.select_one("td .table-code")
        cells = row.find_all("td")
        if name_el is None or code_el is None or len(cells) < 3:
            return None
        return self._build(
            code_el.get_text(strip=True),
            name_el.get_text(strip=True),
            _first_line(cells[2].get_text()),
        )

    def _parse_yapikredi_row(self, row) -> ScrapedQuote | None:
        cells = row.find_all("td")
        if len(cells) < 3:
            return None
        code_link = cells[0].find("a")
        name_link = cells[1].find("a")
        if code_link is None or name_link is None:
            return None
        return self._build(
            code_link.get_text().split(" /")[0].strip(),
            name_link.get_text(strip=True),
            _first_line(cells[2].get_text()),
        )
