# backend/app/services/scrapers/commodities.py
"""
Gold and precious metal prices from bigpara.

The price table is a list of <ul> rows inside .tBody:

    <div class="tBody">
      <ul>
        <li class="cell010"><a href="...">Gram Altın</a></li>
        <li class="cell009">2.745,12</li>   <!-- buy -->
        <li class="cell009">2.746,05</li>   <!-- sell -->
        ...

Prices are TRY. The ticker is derived from the name ("Gram Altın" ->
"GRAM-ALTIN") since the page has no codes.
"""

import re
import unicodedata

from bs4 import BeautifulSoup

from app.models import AssetMarket, Currency
from app.services.scrapers.base import Scraper, ScrapedQuote
from app.utils.numbers import convert_to_number

BIGPARA_GOLD_URL = "https://bigpara.hurriyet.com.tr/altin/ata-altin-fiyati/"

_TR_ASCII = str.maketrans("ıİğĞüÜşŞöÖçÇ", "iIgGuUsSoOcC")


def commodity_code(name: str) -> str:
    """Derive a ticker from a display name: Gram Altın -> GRAM-ALTIN."""
    ascii_name = unicodedata.normalize("NFKD", name.translate(_TR_ASCII))
    ascii_name = ascii_name.encode("ascii", "ignore").decode()
    return re.sub(r"[^A-Z0-9]+", "-", ascii_name.upper()).strip("-")


class BigparaCommodityScraper(Scraper):
    market = AssetMarket.COMMODITY

    @property
    def name(self) -> str:
        return "bigpara"

    @property
    def urls(self) -> list[str]:
        return [BIGPARA_GOLD_URL]

    def parse(self, text: str, url: str) -> list[ScrapedQuote]:
        soup = BeautifulSoup(text, "html.parser")
        quotes: list[ScrapedQuote] = []

        for row in soup.select(".tBody ul"):
            name_el = row.select_one(".cell010 a") or row.select_one(".cell010 b")
            cells = row.select(".cell009")
            if name_el is None or len(cells) < 2:
                continue

            name = name_el.get_text(strip=True)
            buy = convert_to_number(cells[0].get_text(strip=True), decimal_separator=",")
            sell = convert_to_number(cells[1].get_text(strip=True), decimal_separator=",")
            if not name or sell is None:
                continue

            quotes.append(ScrapedQuote(
                ticker=commodity_code(name),
                price=sell,
                name=name,
                currency=Currency.TRY.value,
                buy=buy,
                sell=sell,
            ))

        return quotes
