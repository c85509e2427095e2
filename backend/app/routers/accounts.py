"""
Account management endpoints.

Users see and edit their own accounts; admins see every account. Deleting
an account deletes its investments and their transactions.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_owned_account, is_admin
from app.middleware.rate_limit import limiter, RATE_LIMIT_WRITE
from app.models import Account, User
from app.schemas.accounts import AccountCreate, AccountResponse, AccountUpdate
from app.schemas.envelope import Envelope, ListEnvelope, ok
from app.services.exceptions import NotFoundError, PermissionDeniedError
from app.utils.query import parse_list_query, run_list_query

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def _serialize(account: Account) -> dict:
    return AccountResponse.model_validate(account).model_dump(mode="json")


@router.get("", response_model=ListEnvelope, summary="List accounts")
def list_accounts(
        request: Request,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    """Supports field filters, `select`, `sort`, `page` and `limit`."""
    query = parse_list_query(request.query_params, Account)
    stmt = select(Account)
    if not is_admin(current_user):
        stmt = stmt.where(Account.user_id == current_user.id)
    return run_list_query(db, stmt, Account, query).envelope(_serialize)


@router.post(
    "",
    response_model=Envelope[AccountResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_account(
        request: Request,
        data: AccountCreate,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    owner_id = current_user.id
    if data.user_id is not None and data.user_id != current_user.id:
        if not is_admin(current_user):
            raise PermissionDeniedError("Only admins can create accounts for other users")
        if db.get(User, data.user_id) is None:
            raise NotFoundError.for_resource("User", data.user_id)
        owner_id = data.user_id

    account = Account(user_id=owner_id, name=data.name)
    db.add(account)
    db.commit()
    db.refresh(account)
    return ok(AccountResponse.model_validate(account))


@router.get("/{account_id}", response_model=Envelope[AccountResponse], summary="Get an account")
def get_account(account: Annotated[Account, Depends(get_owned_account)]) -> dict:
    return ok(AccountResponse.model_validate(account))


@router.put("/{account_id}", response_model=Envelope[AccountResponse], summary="Update an account")
def update_account(
        data: AccountUpdate,
        account: Annotated[Account, Depends(get_owned_account)],
        db: Annotated[Session, Depends(get_db)],
) -> dict:
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(account, field, value)
    db.commit()
    db.refresh(account)
    return ok(AccountResponse.model_validate(account))


@router.delete("/{account_id}", response_model=Envelope[dict], summary="Delete an account")
def delete_account(
        account: Annotated[Account, Depends(get_owned_account)],
        db: Annotated[Session, Depends(get_db)],
) -> dict:
    db.delete(account)
    db.commit()
    return ok({})
