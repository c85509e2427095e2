# backend/app/services/currency/rates.py
"""
Source of the TRY/USD/EUR rate triple, with a TTL cache.

Lookup order:
    1. Cached triple, if younger than ttl_seconds
    2. TRY price of the USD and EUR assets in the exchange market
    3. Central bank feed; USD, EUR and TRY exchange assets are upserted
       into the caller's session (flushed, never committed here) so the
       next lookup is served from the database once the caller commits

When none of them yields both rates, FXRateNotFoundError is raised rather
than pricing everything at 1:1.

Thread Safety:
    The cache is guarded by a lock; request threads and the scheduler
    thread share one provider.
"""

import logging
import threading
import time
from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models import Asset, AssetMarket, Currency
from app.services.asset_store import build_price_rows, upsert_assets
from app.services.constants import RATE_TICKERS, ZERO
from app.services.currency.converter import CurrencyRates
from app.services.exceptions import FXRateNotFoundError
from app.services.scrapers.base import Scraper
from app.services.scrapers.tcmb import TcmbExchangeScraper

logger = logging.getLogger(__name__)


class RateProvider:
    """
    Args:
        scraper: Exchange-rate scraper used when the database has no rates
        ttl_seconds: Cache lifetime (settings.fx_cache_ttl_seconds by default)
        clock: Monotonic time source (overridable in tests)
    """

    def __init__(
            self,
            scraper: Scraper | None = None,
            ttl_seconds: float | None = None,
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scraper = scraper or TcmbExchangeScraper()
        self.ttl_seconds = settings.fx_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock

        self._lock = threading.Lock()
        self._cached: CurrencyRates | None = None
        self._cached_at: float = 0.0

    def get_rates(self, db: Session) -> CurrencyRates:
        """
        Current rate triple.

        Raises:
            FXRateNotFoundError: no source could provide USD and EUR rates
        """
        with self._lock:
            if self._cached is not None and self._clock() - self._cached_at < self.ttl_seconds:
                return self._cached

        rates = self._load_from_assets(db) or self._load_from_feed(db)

        with self._lock:
            self._cached = rates
            self._cached_at = self._clock()

        logger.debug(f"Loaded exchange rates: USD={rates.usd} EUR={rates.eur} TRY")
        return rates

    def invalidate(self) -> None:
        """Drop the cached triple, e.g. after the exchange market was re-scraped."""
        with self._lock:
            self._cached = None
            self._cached_at = 0.0

    def _load_from_assets(self, db: Session) -> CurrencyRates | None:
        prices = dict(db.execute(
            select(Asset.ticker, Asset.price_try).where(
                Asset.market == AssetMarket.EXCHANGE,
                Asset.ticker.in_([Currency.USD.value, Currency.EUR.value]),
            )
        ).all())

        usd = prices.get(Currency.USD.value)
        eur = prices.get(Currency.EUR.value)
        if usd is None or eur is None or usd <= ZERO or eur <= ZERO:
            return None
        return CurrencyRates(usd=usd, eur=eur)

    def _load_from_feed(self, db: Session) -> CurrencyRates:
        logger.info("Exchange assets missing, seeding rates from the central bank feed")
        quotes = {q.ticker: q for q in self._scraper.fetch() if q.ticker in RATE_TICKERS}

        usd = quotes.get(Currency.USD.value)
        eur = quotes.get(Currency.EUR.value)
        if usd is None or eur is None or not usd.price or not eur.price:
            raise FXRateNotFoundError(
                Currency.USD.value,
                Currency.TRY.value,
                message="Exchange rates are unavailable: no stored rates and the rate feed returned nothing",
            )

        rates = CurrencyRates(usd=usd.price, eur=eur.price)
        rows = build_price_rows(AssetMarket.EXCHANGE, list(quotes.values()), rates)
        upsert_assets(db, rows, batch_size=settings.sync_batch_size, commit=False)
        return rates
