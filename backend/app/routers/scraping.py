"""
Scraping triggers.

- GET /scraping         scrape every market and write the prices onto assets
- GET /scraping/setter  scrape and write a single market (?market=crypto)

Both run synchronously and return what was written per market. The same
sync runs on the scheduler; these endpoints exist for manual refreshes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_market_sync_service
from app.middleware.rate_limit import limiter, RATE_LIMIT_SCRAPE
from app.schemas.envelope import Envelope, ok
from app.schemas.market import MarketSyncResponse, SyncRunResponse
from app.services.market_sync import MarketSyncResult, MarketSyncService

router = APIRouter(prefix="/scraping", tags=["Scraping"])


def _market_response(result: MarketSyncResult) -> MarketSyncResponse:
    return MarketSyncResponse(
        market=result.market,
        fetched=result.fetched,
        written=result.written,
        success=result.success,
        error=result.error,
    )


@router.get("", response_model=Envelope[SyncRunResponse], summary="Sync every market")
@limiter.limit(RATE_LIMIT_SCRAPE)
def run_full_sync(
        request: Request,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[MarketSyncService, Depends(get_market_sync_service)],
) -> dict:
    result = service.fetch_market_data(db)
    return ok(SyncRunResponse(
        status=result.status,
        started_at=result.started_at,
        completed_at=result.completed_at,
        total_written=result.total_written,
        markets=[_market_response(m) for m in result.markets],
    ))


@router.get("/setter", response_model=Envelope[MarketSyncResponse], summary="Sync one market")
@limiter.limit(RATE_LIMIT_SCRAPE)
def run_market_sync(
        request: Request,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[MarketSyncService, Depends(get_market_sync_service)],
        market: Annotated[str | None, Query(description="Market to refresh, e.g. crypto")] = None,
) -> dict:
    """- **400**: unknown or missing market"""
    return ok(_market_response(service.sync_market(db, market)))
