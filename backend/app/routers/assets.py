"""
Asset registry endpoints.

Assets are shared by all users and kept current by the market sync. Reads
are public; manual writes are limited to admins.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_rate_provider, is_admin
from app.middleware.rate_limit import limiter, RATE_LIMIT_WRITE
from app.models import Asset
from app.schemas.assets import AssetCreate, AssetResponse, AssetTypeResponse, AssetUpdate, TrendResponse
from app.schemas.envelope import Envelope, ListEnvelope, ok
from app.services.constants import ASSET_TYPES, TREND_TICKERS, ZERO
from app.services.currency.converter import PriceTriple, prices_in_all_currencies
from app.services.currency.rates import RateProvider
from app.services.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from app.utils.numbers import quantize_price
from app.utils.query import parse_list_query, run_list_query

router = APIRouter(prefix="/assets", tags=["Assets"])


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _serialize(asset: Asset) -> dict:
    return AssetResponse.model_validate(asset).model_dump(mode="json")


def get_asset_or_404(db: Session, asset_id: int) -> Asset:
    asset = db.get(Asset, asset_id)
    if asset is None:
        raise NotFoundError.for_resource("Asset", asset_id)
    return asset


def _require_admin(user) -> None:
    if not is_admin(user):
        raise PermissionDeniedError("Only admins can modify assets")


def _set_prices(db: Session, asset: Asset, price, rates: RateProvider) -> None:
    """Store `price` (in the asset's quote currency) in all three currencies."""
    if price == ZERO:
        triple = PriceTriple(try_=ZERO, usd=ZERO, eur=ZERO)
    else:
        triple = prices_in_all_currencies(price, asset.currency, rates.get_rates(db))
    asset.price_try = quantize_price(triple.try_)
    asset.price_usd = quantize_price(triple.usd)
    asset.price_eur = quantize_price(triple.eur)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=ListEnvelope, summary="List assets")
def list_assets(request: Request, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Supports field filters, `select`, `sort`, `page` and `limit`, e.g. `?market=crypto&sort=ticker`."""
    query = parse_list_query(request.query_params, Asset)
    return run_list_query(db, select(Asset), Asset, query).envelope(_serialize)


@router.get("/types", response_model=Envelope[list[AssetTypeResponse]], summary="Asset type list")
def list_asset_types() -> dict:
    return ok(ASSET_TYPES)


@router.get("/trends", response_model=Envelope[list[TrendResponse]], summary="Ticker tape assets")
def list_trends(db: Annotated[Session, Depends(get_db)]) -> dict:
    """Assets for the dashboard ticker tape, in a fixed order."""
    assets = db.scalars(select(Asset).where(Asset.ticker.in_(TREND_TICKERS))).all()
    by_ticker: dict[str, Asset] = {}
    for asset in assets:
        by_ticker.setdefault(asset.ticker, asset)
    ordered = [by_ticker[t] for t in TREND_TICKERS if t in by_ticker]
    return ok([TrendResponse.model_validate(a) for a in ordered])


@router.post(
    "",
    response_model=Envelope[AssetResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create an asset",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_asset(
        request: Request,
        data: AssetCreate,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
        rates: Annotated[RateProvider, Depends(get_rate_provider)],
) -> dict:
    _require_admin(current_user)

    existing = db.scalar(select(Asset.id).where(Asset.ticker == data.ticker, Asset.market == data.market))
    if existing is not None:
        raise ConflictError(f"Asset {data.ticker} already exists in market {data.market.value}")

    asset = Asset(
        ticker=data.ticker,
        market=data.market,
        name=data.name or data.ticker,
        icon=data.icon,
        currency=data.currency or data.market.default_currency.value,
    )
    _set_prices(db, asset, data.price, rates)

    db.add(asset)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Asset {data.ticker} already exists in market {data.market.value}") from None
    db.refresh(asset)
    return ok(AssetResponse.model_validate(asset))


@router.get("/{asset_id}", response_model=Envelope[AssetResponse], summary="Get an asset")
def get_asset(asset_id: int, db: Annotated[Session, Depends(get_db)]) -> dict:
    return ok(AssetResponse.model_validate(get_asset_or_404(db, asset_id)))


@router.put("/{asset_id}", response_model=Envelope[AssetResponse], summary="Update an asset")
def update_asset(
        asset_id: int,
        data: AssetUpdate,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
        rates: Annotated[RateProvider, Depends(get_rate_provider)],
) -> dict:
    _require_admin(current_user)
    asset = get_asset_or_404(db, asset_id)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    price = changes.pop("price", None)
    for field, value in changes.items():
        setattr(asset, field, value)

    # The price is read in the (possibly new) quote currency
    if price is not None:
        _set_prices(db, asset, price, rates)

    db.commit()
    db.refresh(asset)
    return ok(AssetResponse.model_validate(asset))


@router.delete("/{asset_id}", response_model=Envelope[dict], summary="Delete an asset")
def delete_asset(
        asset_id: int,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    """Deletes the asset's histories and the investments holding it."""
    _require_admin(current_user)
    db.delete(get_asset_or_404(db, asset_id))
    db.commit()
    return ok({})
