"""
Investment endpoints.

CRUD over (account, asset) holdings plus three valuation views, all taking
the same query parameters:

- GET /investments/prices          investments grouped by market, with totals
- GET /investments/total-balance   portfolio totals only
- GET /investments/market-balance  per-market totals

Query parameters:
    account_id  limit to one account (default: every account of the user)
    currency    try | usd | eur (default usd)
    range       daily | weekly | monthly | yearly | all (default all)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import (
    CurrentUser,
    get_owned_investment,
    get_valuation_service,
    is_admin,
    load_owned_account,
)
from app.middleware.rate_limit import limiter, RATE_LIMIT_WRITE
from app.models import Account, Asset, Investment
from app.schemas.envelope import Envelope, ListEnvelope, ok
from app.schemas.investments import (
    InvestmentCreate,
    InvestmentPricesResponse,
    InvestmentResponse,
    InvestmentUpdate,
    MarketBalanceResponse,
    TotalBalanceResponse,
)
from app.services.constants import DEFAULT_RANGE, DEFAULT_TARGET_CURRENCY
from app.services.exceptions import ConflictError, NotFoundError
from app.services.portfolio import PortfolioSummary, ValuationService
from app.utils.query import parse_list_query, run_list_query

router = APIRouter(prefix="/investments", tags=["Investments"])


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _serialize(investment: Investment) -> dict:
    return InvestmentResponse.model_validate(investment).model_dump(mode="json")


def _summarize(
        db: Session,
        user,
        service: ValuationService,
        account_id: int | None,
        currency: str,
        range_name: str,
) -> PortfolioSummary:
    if account_id is not None:
        load_owned_account(db, user, account_id)
    investments = service.load_investments(db, user, account_id)
    return service.summarize(db, investments, currency=currency, range_name=range_name)


AccountIdQuery = Annotated[int | None, Query(description="Limit to one account")]
CurrencyQuery = Annotated[str, Query(description="try, usd or eur")]
RangeQuery = Annotated[str, Query(alias="range", description="daily, weekly, monthly, yearly or all")]


# =============================================================================
# VALUATION ENDPOINTS
# =============================================================================

@router.get(
    "/prices",
    response_model=Envelope[InvestmentPricesResponse],
    summary="Investments valued in a currency over a range",
)
def get_investment_prices(
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
        service: Annotated[ValuationService, Depends(get_valuation_service)],
        account_id: AccountIdQuery = None,
        currency: CurrencyQuery = DEFAULT_TARGET_CURRENCY,
        range_name: RangeQuery = DEFAULT_RANGE,
) -> dict:
    """
    - **404**: no investments
    - **400**: unknown range or currency
    """
    summary = _summarize(db, current_user, service, account_id, currency, range_name)
    return ok(InvestmentPricesResponse.from_summary(summary))


@router.get(
    "/total-balance",
    response_model=Envelope[TotalBalanceResponse],
    summary="Portfolio balance and profit/loss",
)
def get_total_balance(
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
        service: Annotated[ValuationService, Depends(get_valuation_service)],
        account_id: AccountIdQuery = None,
        currency: CurrencyQuery = DEFAULT_TARGET_CURRENCY,
        range_name: RangeQuery = DEFAULT_RANGE,
) -> dict:
    summary = _summarize(db, current_user, service, account_id, currency, range_name)
    return ok(TotalBalanceResponse.from_summary(summary))


@router.get(
    "/market-balance",
    response_model=Envelope[MarketBalanceResponse],
    summary="Balance and profit/loss per market",
)
def get_market_balance(
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
        service: Annotated[ValuationService, Depends(get_valuation_service)],
        account_id: AccountIdQuery = None,
        currency: CurrencyQuery = DEFAULT_TARGET_CURRENCY,
        range_name: RangeQuery = DEFAULT_RANGE,
) -> dict:
    summary = _summarize(db, current_user, service, account_id, currency, range_name)
    return ok(MarketBalanceResponse.from_summary(summary))


# =============================================================================
# CRUD ENDPOINTS
# =============================================================================

@router.get("", response_model=ListEnvelope, summary="List investments")
def list_investments(
        request: Request,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    query = parse_list_query(request.query_params, Investment)
    stmt = select(Investment)
    if not is_admin(current_user):
        stmt = stmt.join(Account, Investment.account_id == Account.id).where(Account.user_id == current_user.id)
    return run_list_query(db, stmt, Investment, query).envelope(_serialize)


@router.post(
    "",
    response_model=Envelope[InvestmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create an investment",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_investment(
        request: Request,
        data: InvestmentCreate,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    """Starts empty; amount and average cost come from its transactions."""
    load_owned_account(db, current_user, data.account_id)
    if db.get(Asset, data.asset_id) is None:
        raise NotFoundError.for_resource("Asset", data.asset_id)

    duplicate = db.scalar(
        select(Investment.id).where(
            Investment.account_id == data.account_id,
            Investment.asset_id == data.asset_id,
        )
    )
    if duplicate is not None:
        raise ConflictError(f"Account {data.account_id} already holds asset {data.asset_id}")

    investment = Investment(account_id=data.account_id, asset_id=data.asset_id)
    db.add(investment)
    db.commit()
    db.refresh(investment)
    return ok(InvestmentResponse.model_validate(investment))


@router.get("/{investment_id}", response_model=Envelope[InvestmentResponse], summary="Get an investment")
def get_investment(investment: Annotated[Investment, Depends(get_owned_investment)]) -> dict:
    return ok(InvestmentResponse.model_validate(investment))


@router.put("/{investment_id}", response_model=Envelope[InvestmentResponse], summary="Move an investment")
def update_investment(
        data: InvestmentUpdate,
        investment: Annotated[Investment, Depends(get_owned_investment)],
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    if data.account_id is not None and data.account_id != investment.account_id:
        load_owned_account(db, current_user, data.account_id)
        clash = db.scalar(
            select(Investment.id).where(
                Investment.account_id == data.account_id,
                Investment.asset_id == investment.asset_id,
            )
        )
        if clash is not None:
            raise ConflictError(f"Account {data.account_id} already holds asset {investment.asset_id}")
        investment.account_id = data.account_id
        db.commit()
        db.refresh(investment)
    return ok(InvestmentResponse.model_validate(investment))


@router.delete("/{investment_id}", response_model=Envelope[dict], summary="Delete an investment")
def delete_investment(
        investment: Annotated[Investment, Depends(get_owned_investment)],
        db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Deletes the investment's transactions too."""
    db.delete(investment)
    db.commit()
    return ok({})
