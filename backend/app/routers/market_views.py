"""
Read-only scraped market views.

Each request scrapes its source live (through the shared session pool) and
returns the rows without touching the database, except /exchange/rates,
which is served by the cached rate provider.

- GET /stocks?market=tr-stock|usa-stock, /stocks/tr, /stocks/usa
- GET /crypto, /funds, /commodities, /indices
- GET /exchange, /exchange/rates

All views accept `search` (case-insensitive match on ticker or name).
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_rate_provider, get_scraper_factory
from app.middleware.rate_limit import limiter, RATE_LIMIT_MARKET_VIEW
from app.models import AssetMarket
from app.schemas.envelope import Envelope, ok
from app.schemas.market import ExchangeRatesResponse, QuoteResponse
from app.services.currency.rates import RateProvider
from app.services.exceptions import InvalidMarketError
from app.services.scrapers import Scraper, filter_by_search

ScraperFactory = Annotated[Callable[..., Scraper], Depends(get_scraper_factory)]
SearchQuery = Annotated[str | None, Query(max_length=100, description="Filter by ticker or name")]

STOCK_MARKETS = (AssetMarket.TR_STOCK, AssetMarket.USA_STOCK)


def _view(factory: Callable[..., Scraper], market: AssetMarket, search: str | None) -> dict:
    quotes = filter_by_search(factory(market).fetch(), search)
    return ok([QuoteResponse.model_validate(q) for q in quotes])


# =============================================================================
# STOCKS
# =============================================================================

stocks_router = APIRouter(prefix="/stocks", tags=["Market Views"])


@stocks_router.get("", response_model=Envelope[list[QuoteResponse]], summary="Stocks of one market")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_stocks(
        request: Request,
        factory: ScraperFactory,
        market: Annotated[str | None, Query(description="tr-stock or usa-stock")] = None,
        search: SearchQuery = None,
) -> dict:
    """- **400**: `market` missing or not a stock market"""
    if market not in {m.value for m in STOCK_MARKETS}:
        raise InvalidMarketError(market, [m.value for m in STOCK_MARKETS])
    return _view(factory, AssetMarket(market), search)


@stocks_router.get("/tr", response_model=Envelope[list[QuoteResponse]], summary="BIST 100 stocks")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_tr_stocks(request: Request, factory: ScraperFactory, search: SearchQuery = None) -> dict:
    return _view(factory, AssetMarket.TR_STOCK, search)


@stocks_router.get("/usa", response_model=Envelope[list[QuoteResponse]], summary="US index components")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_usa_stocks(request: Request, factory: ScraperFactory, search: SearchQuery = None) -> dict:
    """Dow Jones, Nasdaq 100 and S&P 500 components, one row per ticker."""
    return _view(factory, AssetMarket.USA_STOCK, search)


# =============================================================================
# OTHER MARKETS
# =============================================================================

crypto_router = APIRouter(prefix="/crypto", tags=["Market Views"])
funds_router = APIRouter(prefix="/funds", tags=["Market Views"])
commodities_router = APIRouter(prefix="/commodities", tags=["Market Views"])
indices_router = APIRouter(prefix="/indices", tags=["Market Views"])
exchange_router = APIRouter(prefix="/exchange", tags=["Market Views"])


@crypto_router.get("", response_model=Envelope[list[QuoteResponse]], summary="Crypto currencies")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_crypto(request: Request, factory: ScraperFactory, search: SearchQuery = None) -> dict:
    return _view(factory, AssetMarket.CRYPTO, search)


@funds_router.get("", response_model=Envelope[list[QuoteResponse]], summary="Investment funds")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_funds(request: Request, factory: ScraperFactory, search: SearchQuery = None) -> dict:
    return _view(factory, AssetMarket.FUND, search)


@commodities_router.get("", response_model=Envelope[list[QuoteResponse]], summary="Gold and commodities")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_commodities(request: Request, factory: ScraperFactory, search: SearchQuery = None) -> dict:
    return _view(factory, AssetMarket.COMMODITY, search)


@indices_router.get("", response_model=Envelope[list[QuoteResponse]], summary="Market indices")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_indices(request: Request, factory: ScraperFactory, search: SearchQuery = None) -> dict:
    return _view(factory, AssetMarket.INDICES, search)


@exchange_router.get("", response_model=Envelope[list[QuoteResponse]], summary="Central bank exchange rates")
@limiter.limit(RATE_LIMIT_MARKET_VIEW)
def get_exchange(request: Request, factory: ScraperFactory, search: SearchQuery = None) -> dict:
    return _view(factory, AssetMarket.EXCHANGE, search)


@exchange_router.get("/rates", summary="TRY value of USD and EUR")
def get_exchange_rates(
        db: Annotated[Session, Depends(get_db)],
        rates: Annotated[RateProvider, Depends(get_rate_provider)],
) -> dict:
    """`{"try": 1, "usd": ..., "eur": ..., "eur_to_usd": ...}`; **503** when no rates are available."""
    current = rates.get_rates(db)
    # keeps exchange assets seeded from the feed
    db.commit()
    body = ExchangeRatesResponse(usd=current.usd, eur=current.eur, eur_to_usd=current.eur_to_usd)
    return ok(body.model_dump(mode="json", by_alias=True))
