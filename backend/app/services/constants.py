# backend/app/services/constants.py
"""
Centralized constants for the market and portfolio services.

Usage:
    from app.services.constants import (
        RANGE_WINDOWS,
        DEFAULT_PAGE_SIZE,
        TREND_TICKERS,
    )
"""

from datetime import timedelta
from decimal import Decimal

from app.models import AssetMarket


# =============================================================================
# DECIMAL PRECISION CONSTANTS
# =============================================================================

# Currency amounts and percentages returned to clients: 2 decimal places
DISPLAY_PRECISION: Decimal = Decimal("0.01")

# Stored prices, quantities, average costs and FX rates: 8 decimal places
PRICE_PRECISION: Decimal = Decimal("0.00000001")

ZERO: Decimal = Decimal("0")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# PROFIT / LOSS RANGES
# =============================================================================

# None = no window, start price falls back to the average cost
RANGE_WINDOWS: dict[str, timedelta | None] = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
    "yearly": timedelta(days=365),
    "all": None,
}

DEFAULT_RANGE: str = "all"
DEFAULT_TARGET_CURRENCY: str = "USD"


# =============================================================================
# ASSET CATALOGUE
# =============================================================================

# Display names of the markets users can invest in (GET /assets/types)
ASSET_TYPES: list[dict[str, str]] = [
    {"name": "TR Hisse Senetleri", "type": AssetMarket.TR_STOCK.value},
    {"name": "USA Hisse Senetleri", "type": AssetMarket.USA_STOCK.value},
    {"name": "Emtia", "type": AssetMarket.COMMODITY.value},
    {"name": "Döviz", "type": AssetMarket.EXCHANGE.value},
    {"name": "Fonlar", "type": AssetMarket.FUND.value},
    {"name": "Kripto", "type": AssetMarket.CRYPTO.value},
]

# Tickers shown on the dashboard ticker tape (GET /assets/trends)
TREND_TICKERS: list[str] = ["USD", "EUR", "SPX", "IXIC", "XU100", "BTC", "ETH"]

# Exchange-market tickers the rate provider reads and seeds
RATE_TICKERS: tuple[str, ...] = ("USD", "EUR", "TRY")


# =============================================================================
# LIST QUERY (ADVANCED RESULTS) SETTINGS
# =============================================================================

DEFAULT_PAGE_SIZE: int = 25
MAX_PAGE_SIZE: int = 100

# Query parameters consumed by the list helper, never treated as filters
RESERVED_QUERY_PARAMS: frozenset[str] = frozenset({"select", "sort", "page", "limit"})

# Supported filter operators: field[op]=value
FILTER_OPERATORS: frozenset[str] = frozenset({"gt", "gte", "lt", "lte", "in", "like"})


# =============================================================================
# SCRAPER SETTINGS
# =============================================================================

# Attempts per HTTP fetch before the scraper gives up and returns []
SCRAPER_MAX_ATTEMPTS: int = 3

# Exponential backoff bounds between attempts (seconds)
SCRAPER_BACKOFF_MIN: float = 1.0
SCRAPER_BACKOFF_MAX: float = 8.0

# Worker threads used to run all scrapers of one sync concurrently
SCRAPER_MAX_WORKERS: int = 8


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Format follows slowapi/limits syntax: "100/minute", "10/hour", etc.

# Default rate limit for read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Rate limit for write endpoints (POST, PUT, DELETE)
RATE_LIMIT_WRITE: str = "30/minute"

# Scraping triggers hit third-party sites; keep them rare
RATE_LIMIT_SCRAPE: str = "5/minute"

# Scraped read-only views (stocks, funds...) also fetch remote pages
RATE_LIMIT_MARKET_VIEW: str = "20/minute"

# Health probes are polled by monitoring
RATE_LIMIT_HEALTH: str = "300/minute"

RATE_LIMIT_AUTH_LOGIN: str = "10/minute"
RATE_LIMIT_AUTH_REGISTER: str = "5/minute"

# Each verification SMS costs money
RATE_LIMIT_SMS: str = "3/minute"
