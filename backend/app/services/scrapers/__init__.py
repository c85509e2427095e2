"""
Scrapers for the price sources behind each asset market.

Usage:
    from app.services.scrapers import get_market_scraper

    quotes = get_market_scraper(AssetMarket.FUND).fetch()
"""

from app.models import AssetMarket
from app.services.scrapers.base import Scraper, ScrapedQuote, filter_by_search
from app.services.scrapers.commodities import BigparaCommodityScraper
from app.services.scrapers.funds import FundScraper
from app.services.scrapers.session_pool import SessionPool, get_session_pool
from app.services.scrapers.tcmb import TcmbExchangeScraper
from app.services.scrapers.tradingview import (
    TradingViewScraper,
    crypto_scraper,
    indices_scraper,
    tr_stock_scraper,
    usa_stock_scraper,
)


def get_market_scraper(market: AssetMarket, pool: SessionPool | None = None) -> Scraper:
    """Scraper that feeds the given market."""
    factories = {
        AssetMarket.USA_STOCK: usa_stock_scraper,
        AssetMarket.TR_STOCK: tr_stock_scraper,
        AssetMarket.CRYPTO: crypto_scraper,
        AssetMarket.INDICES: indices_scraper,
        AssetMarket.COMMODITY: BigparaCommodityScraper,
        AssetMarket.EXCHANGE: TcmbExchangeScraper,
        AssetMarket.FUND: FundScraper,
    }
    return factories[AssetMarket(market)](pool=pool)


__all__ = [
    "Scraper",
    "ScrapedQuote",
    "SessionPool",
    "TradingViewScraper",
    "TcmbExchangeScraper",
    "BigparaCommodityScraper",
    "FundScraper",
    "filter_by_search",
    "get_market_scraper",
    "get_session_pool",
]
