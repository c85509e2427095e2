"""
Transaction endpoints.

Every write recomputes the investment's amount and average cost from its
full transaction history. A sell larger than the holding is rejected (400).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import (
    CurrentUser,
    get_owned_transaction,
    get_transaction_service,
    is_admin,
    load_owned_investment,
)
from app.middleware.rate_limit import limiter, RATE_LIMIT_WRITE
from app.models import Account, Investment, Transaction
from app.schemas.envelope import Envelope, ListEnvelope, ok
from app.schemas.transactions import TransactionCreate, TransactionResponse, TransactionUpdate
from app.services.portfolio import TransactionService
from app.utils.query import parse_list_query, run_list_query

router = APIRouter(prefix="/transactions", tags=["Transactions"])


def _serialize(txn: Transaction) -> dict:
    return TransactionResponse.model_validate(txn).model_dump(mode="json")


@router.get("", response_model=ListEnvelope, summary="List transactions")
def list_transactions(
        request: Request,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    """Own transactions (all for admins); e.g. `?investment_id=3&transaction_type=buy`."""
    query = parse_list_query(request.query_params, Transaction)
    stmt = select(Transaction)
    if not is_admin(current_user):
        stmt = (
            stmt.join(Investment, Transaction.investment_id == Investment.id)
            .join(Account, Investment.account_id == Account.id)
            .where(Account.user_id == current_user.id)
        )
    return run_list_query(db, stmt, Transaction, query).envelope(_serialize)


@router.post(
    "",
    response_model=Envelope[TransactionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Record a transaction",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_transaction(
        request: Request,
        data: TransactionCreate,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> dict:
    """
    - **price** is in **currency** (defaults to the asset's quote currency)
    - **400**: sell exceeds holding, unsupported currency
    - **503**: exchange rates unavailable
    """
    investment = load_owned_investment(db, current_user, data.investment_id)
    txn = service.create(
        db,
        investment,
        transaction_type=data.transaction_type,
        quantity=data.quantity,
        price=data.price,
        currency=data.currency,
    )
    return ok(TransactionResponse.model_validate(txn))


@router.get("/{transaction_id}", response_model=Envelope[TransactionResponse], summary="Get a transaction")
def get_transaction(txn: Annotated[Transaction, Depends(get_owned_transaction)]) -> dict:
    return ok(TransactionResponse.model_validate(txn))


@router.put("/{transaction_id}", response_model=Envelope[TransactionResponse], summary="Update a transaction")
def update_transaction(
        data: TransactionUpdate,
        txn: Annotated[Transaction, Depends(get_owned_transaction)],
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> dict:
    updated = service.update(db, txn, **data.model_dump(exclude_unset=True, exclude_none=True))
    return ok(TransactionResponse.model_validate(updated))


@router.delete("/{transaction_id}", response_model=Envelope[dict], summary="Delete a transaction")
def delete_transaction(
        txn: Annotated[Transaction, Depends(get_owned_transaction)],
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> dict:
    service.delete(db, txn)
    return ok({})
