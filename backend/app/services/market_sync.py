# backend/app/services/market_sync.py
"""
Market sync: scrape every price source and write the prices onto assets.

Flow of a full run (fetch_market_data):
    1. All market scrapers run concurrently in a thread pool
    2. The exchange market is written first; its USD and EUR quotes are the
       rates every other market is converted with
    3. The rate cache is invalidated and each remaining market is upserted

Partial success:
    A market whose scraper returned nothing, or whose write failed, is
    reported in the result and the run continues with the next market.

Usage:
    service = MarketSyncService(rate_provider)
    result = service.fetch_market_data(db)
    result = service.sync_market(db, "crypto")
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models import AssetMarket, Currency
from app.services.asset_store import build_price_rows, upsert_assets
from app.services.constants import SCRAPER_MAX_WORKERS
from app.services.currency.converter import CurrencyRates
from app.services.currency.rates import RateProvider
from app.services.exceptions import FXConversionError, InvalidMarketError, ServiceError
from app.services.scrapers import Scraper, ScrapedQuote, get_market_scraper
from app.services.scrapers.session_pool import SessionPool

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class MarketSyncResult:
    market: str
    fetched: int = 0
    written: int = 0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class SyncResult:
    started_at: datetime
    completed_at: datetime | None = None
    markets: list[MarketSyncResult] = field(default_factory=list)

    @property
    def total_written(self) -> int:
        return sum(m.written for m in self.markets)

    @property
    def status(self) -> str:
        """'completed', 'partial' or 'failed'."""
        failed = sum(1 for m in self.markets if not m.success)
        if failed == 0:
            return "completed"
        return "failed" if failed == len(self.markets) else "partial"


def parse_market(value: str | None) -> AssetMarket:
    try:
        return AssetMarket((value or "").strip().lower())
    except ValueError:
        raise InvalidMarketError(value, [m.value for m in AssetMarket]) from None


def rates_from_quotes(quotes: list[ScrapedQuote]) -> CurrencyRates | None:
    """USD/EUR rates carried by exchange quotes, if both are present."""
    prices = {q.ticker: q.price for q in quotes}
    try:
        return CurrencyRates(usd=prices.get(Currency.USD.value), eur=prices.get(Currency.EUR.value))
    except FXConversionError:
        return None


# =============================================================================
# SYNC SERVICE
# =============================================================================

class MarketSyncService:
    """
    Args:
        rate_provider: Shared rate provider; invalidated after exchange writes
        scraper_factory: market -> Scraper (overridable in tests)
        pool: HTTP session pool handed to the scrapers
        batch_size: Upsert batch size (settings.sync_batch_size by default)
    """

    def __init__(
            self,
            rate_provider: RateProvider,
            scraper_factory: Callable[..., Scraper] = get_market_scraper,
            pool: SessionPool | None = None,
            batch_size: int | None = None,
            max_workers: int = SCRAPER_MAX_WORKERS,
    ) -> None:
        self._rates = rate_provider
        self._scraper_factory = scraper_factory
        self._pool = pool
        self._batch_size = batch_size or settings.sync_batch_size
        self._max_workers = max_workers

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def fetch_market_data(self, db: Session) -> SyncResult:
        """Scrape and write every market."""
        result = SyncResult(started_at=datetime.now(timezone.utc))
        markets = list(AssetMarket)

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="scrape") as executor:
            futures = {market: executor.submit(self._scrape, market) for market in markets}
            scraped = {market: future.result() for market, future in futures.items()}

        # Exchange first: its quotes define the rates of this run
        exchange_quotes = scraped.pop(AssetMarket.EXCHANGE)
        result.markets.append(self._sync_exchange(db, exchange_quotes))

        try:
            rates = self._rates.get_rates(db)
        except ServiceError as e:
            logger.error(f"Market sync aborted, no exchange rates: {e}")
            for market in scraped:
                result.markets.append(MarketSyncResult(market=market.value, error=str(e)))
            result.completed_at = datetime.now(timezone.utc)
            return result

        for market, quotes in scraped.items():
            result.markets.append(self._safe_update(db, market, quotes, rates))

        result.completed_at = datetime.now(timezone.utc)
        logger.info(
            f"Market sync {result.status}: {result.total_written} assets written "
            f"across {len(result.markets)} markets"
        )
        return result

    def sync_market(self, db: Session, market: str | AssetMarket) -> MarketSyncResult:
        """
        Scrape and write one market.

        Raises:
            InvalidMarketError: unknown market name
            FXRateNotFoundError: no rates to convert with
        """
        target = market if isinstance(market, AssetMarket) else parse_market(market)
        quotes = self._scrape(target)

        if target is AssetMarket.EXCHANGE:
            return self._sync_exchange(db, quotes)
        return self._safe_update(db, target, quotes, self._rates.get_rates(db))

    def update_market(
            self,
            db: Session,
            market: AssetMarket,
            quotes: list[ScrapedQuote],
            rates: CurrencyRates,
    ) -> int:
        """Convert quotes into all three currencies and upsert them. Returns rows written."""
        rows = build_price_rows(market, quotes, rates)
        written = upsert_assets(db, rows, batch_size=self._batch_size)
        logger.info(f"Updated {written} {market.value} assets from {len(quotes)} quotes")
        return written

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _scrape(self, market: AssetMarket) -> list[ScrapedQuote]:
        return self._scraper_factory(market, pool=self._pool).fetch()

    def _sync_exchange(self, db: Session, quotes: list[ScrapedQuote]) -> MarketSyncResult:
        rates = rates_from_quotes(quotes)
        if rates is None:
            logger.warning("Exchange quotes lack USD or EUR, keeping stored rates")
            return MarketSyncResult(
                market=AssetMarket.EXCHANGE.value,
                fetched=len(quotes),
                error="Exchange source returned no USD/EUR rates",
            )

        outcome = self._safe_update(db, AssetMarket.EXCHANGE, quotes, rates)
        self._rates.invalidate()
        return outcome

    def _safe_update(
            self,
            db: Session,
            market: AssetMarket,
            quotes: list[ScrapedQuote],
            rates: CurrencyRates,
    ) -> MarketSyncResult:
        outcome = MarketSyncResult(market=market.value, fetched=len(quotes))
        if not quotes:
            outcome.error = "Source returned no rows"
            return outcome

        try:
            outcome.written = self.update_market(db, market, quotes, rates)
        except (SQLAlchemyError, ServiceError) as e:
            db.rollback()
            logger.exception(f"Writing {market.value} assets failed")
            outcome.error = str(e)
        return outcome
