# backend/app/services/scrapers/base.py
"""
Scraper base class and result type.

Every scraper:
- downloads one or more hard-coded pages through the shared session pool
- parses them (BeautifulSoup for HTML, ElementTree for XML)
- returns a list of ScrapedQuote

Failure contract:
    fetch() never raises. Network errors are retried with exponential
    backoff (tenacity); when the retries are exhausted, or the page cannot
    be parsed, the error is logged and an empty list is returned.

Subclasses implement:
    - name: short source name used in logs
    - urls: pages to download
    - parse(text, url): turn one page into quotes
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from app.config import settings
from app.models import AssetMarket
from app.services.constants import (
    SCRAPER_BACKOFF_MAX,
    SCRAPER_BACKOFF_MIN,
    SCRAPER_MAX_ATTEMPTS,
)
from app.services.exceptions import ScraperFetchError
from app.services.scrapers.session_pool import SessionPool, get_session_pool

logger = logging.getLogger(__name__)


@dataclass
class ScrapedQuote:
    """
    One row scraped from a source.

    Loosely typed on purpose: sources disagree on which fields they have.
    price is the value the asset is marked at (sell side where a source
    publishes both buy and sell).
    """
    ticker: str
    price: Decimal | None
    name: str = ""
    icon: str | None = None
    currency: str | None = None
    buy: Decimal | None = None
    sell: Decimal | None = None
    change: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Scraper(ABC):
    """Base class for all scrapers."""

    # Retry configuration (class-level so tests can zero the backoff)
    MAX_ATTEMPTS: int = SCRAPER_MAX_ATTEMPTS
    BACKOFF_MIN: float = SCRAPER_BACKOFF_MIN
    BACKOFF_MAX: float = SCRAPER_BACKOFF_MAX

    # Market the quotes belong to when synced (None: view-only source)
    market: AssetMarket | None = None

    def __init__(self, pool: SessionPool | None = None) -> None:
        self._pool = pool

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name used in logs, e.g. 'tcmb'."""
        pass

    @property
    @abstractmethod
    def urls(self) -> list[str]:
        pass

    @abstractmethod
    def parse(self, text: str, url: str) -> list[ScrapedQuote]:
        """Parse one downloaded page. May raise on malformed input."""
        pass

    @property
    def pool(self) -> SessionPool:
        return self._pool or get_session_pool()

    def fetch(self) -> list[ScrapedQuote]:
        """Download and parse every page; [] on failure, never raises."""
        quotes: list[ScrapedQuote] = []
        for url in self.urls:
            try:
                text = self._download(url)
                quotes.extend(self.parse(text, url))
            except Exception as e:
                logger.error(f"Scraper '{self.name}' failed for {url}: {e}")
                return []

        quotes = self.postprocess(quotes)
        if not quotes:
            logger.warning(f"Scraper '{self.name}' returned no rows")
        else:
            logger.info(f"Scraper '{self.name}' returned {len(quotes)} rows")
        return quotes

    def postprocess(self, quotes: list[ScrapedQuote]) -> list[ScrapedQuote]:
        """Hook for cross-page cleanup (deduplication, filtering)."""
        return quotes

    def _download(self, url: str) -> str:
        """GET a page, retrying transient failures with exponential backoff."""

        @retry(
            stop=stop_after_attempt(self.MAX_ATTEMPTS),
            wait=wait_exponential(min=self.BACKOFF_MIN, max=self.BACKOFF_MAX),
            retry=retry_if_exception_type(ScraperFetchError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> str:
            try:
                response = self.pool.get().get(url, timeout=settings.scraper_timeout_seconds)
            except requests.RequestException as e:
                raise ScraperFetchError(self.name, str(e)) from e

            if response.status_code >= 500 or response.status_code == 429:
                raise ScraperFetchError(self.name, f"HTTP {response.status_code}")
            response.raise_for_status()
            return response.text

        return _inner()


def filter_by_search(quotes: list[ScrapedQuote], search: str | None) -> list[ScrapedQuote]:
    """Case-insensitive substring match on ticker or name."""
    if not search:
        return quotes
    needle = search.lower()
    return [
        q for q in quotes
        if needle in q.ticker.lower() or needle in (q.name or "").lower()
    ]
