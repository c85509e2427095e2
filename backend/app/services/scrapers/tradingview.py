# backend/app/services/scrapers/tradingview.py
"""
TradingView component and market pages (stocks, crypto, indices).

Each listing row looks like:

    <tr class="row-...">
      <td>
        <img class="tickerLogo-GrtoTeat" src="https://s3-symbol-logo...svg">
        <a class="tickerNameBox-GrtoTeat">AAPL</a>
        <sup class="tickerDescription-GrtoTeat">Apple Inc.</sup>
      </td>
      <td>...</td>
      <td>227.52 USD</td>
      ...

CSS class suffixes change with every TradingView deploy, so cells are
matched on the stable class prefix. The price is the third cell; its
trailing word, when present, is the quote currency.
"""

from bs4 import BeautifulSoup

from app.models import AssetMarket
from app.services.scrapers.base import Scraper, ScrapedQuote
from app.utils.numbers import convert_to_number

DOW_JONES_URL = "https://tr.tradingview.com/symbols/DJ-DJI/components"
NASDAQ_100_URL = "https://tr.tradingview.com/symbols/NASDAQ-NDX/components"
SP500_URL = "https://tr.tradingview.com/symbols/SPX/components/?exchange=SP"
ELECTRONIC_URL = (
    "https://www.tradingview.com/markets/stocks-usa/"
    "sectorandindustry-industry/electronic-production-equipment"
)
BIST100_URL = "https://tr.tradingview.com/symbols/BIST-XU100/components"
CRYPTO_URL = "https://www.tradingview.com/markets/cryptocurrencies/prices-all/"
INDICES_URL = "https://www.tradingview.com/markets/indices/quotes-major/"

PRICE_CELL_INDEX = 2


def _decimal_separator(url: str) -> str:
    # The Turkish site localizes numbers ("1.234,56")
    return "," if "://tr." in url else "."


def _by_class_prefix(prefix: str):
    return lambda classes: bool(classes) and any(c.startswith(prefix) for c in classes.split())


class TradingViewScraper(Scraper):
    """
    Scrapes one or more TradingView listing pages.

    Args:
        source_name: Name for logs ("usa-stocks", "crypto"...)
        page_urls: Listing pages, merged in order
        market: Market the rows are synced into
        default_currency: Used when a price cell has no currency suffix
    """

    def __init__(
            self,
            source_name: str,
            page_urls: list[str],
            market: AssetMarket,
            default_currency: str | None = None,
            pool=None,
    ) -> None:
        super().__init__(pool=pool)
        self._name = source_name
        self._urls = page_urls
        self.market = market
        self.default_currency = default_currency or market.default_currency.value

    @property
    def name(self) -> str:
        return self._name

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    def parse(self, text: str, url: str) -> list[ScrapedQuote]:
        soup = BeautifulSoup(text, "html.parser")
        separator = _decimal_separator(url)
        quotes: list[ScrapedQuote] = []

        for row in soup.find_all("tr"):
            ticker_el = row.find(class_=_by_class_prefix("tickerNameBox")) or row.find(
                class_=_by_class_prefix("tickerName")
            )
            cells = row.find_all("td")
            if ticker_el is None or len(cells) <= PRICE_CELL_INDEX:
                continue

            ticker = ticker_el.get_text(strip=True)
            price_text = cells[PRICE_CELL_INDEX].get_text(" ", strip=True)
            if not ticker or not price_text:
                continue

            parts = price_text.split()
            currency = parts[-1].upper() if len(parts) > 1 and parts[-1].isalpha() else self.default_currency
            price = convert_to_number(parts[0], decimal_separator=separator)
            if price is None:
                continue

            description_el = row.find(class_=_by_class_prefix("tickerDescription"))
            logo_el = row.find("img", class_=_by_class_prefix("tickerLogo"))

            quotes.append(ScrapedQuote(
                ticker=ticker,
                price=price,
                name=description_el.get_text(strip=True) if description_el else ticker,
                icon=logo_el.get("src") if logo_el else None,
                currency=currency,
            ))

        return quotes

    def postprocess(self, quotes: list[ScrapedQuote]) -> list[ScrapedQuote]:
        # Index component pages overlap (AAPL is in all three US indices)
        seen: set[str] = set()
        unique = []
        for quote in quotes:
            if quote.ticker not in seen:
                seen.add(quote.ticker)
                unique.append(quote)
        return unique


def usa_stock_scraper(pool=None) -> TradingViewScraper:
    return TradingViewScraper(
        "usa-stocks",
        [DOW_JONES_URL, ELECTRONIC_URL, NASDAQ_100_URL, SP500_URL],
        AssetMarket.USA_STOCK,
        pool=pool,
    )


def tr_stock_scraper(pool=None) -> TradingViewScraper:
    return TradingViewScraper("tr-stocks", [BIST100_URL], AssetMarket.TR_STOCK, pool=pool)


def crypto_scraper(pool=None) -> TradingViewScraper:
    return TradingViewScraper("crypto", [CRYPTO_URL], AssetMarket.CRYPTO, pool=pool)


def indices_scraper(pool=None) -> TradingViewScraper:
    return TradingViewScraper("indices", [INDICES_URL], AssetMarket.INDICES, pool=pool)
