"""
Price history endpoints.

Histories are written daily by the scheduler; reads are public, manual
writes (backfills, corrections) are limited to admins.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, is_admin
from app.middleware.rate_limit import limiter, RATE_LIMIT_WRITE
from app.models import Asset, History
from app.schemas.envelope import Envelope, ListEnvelope, ok
from app.schemas.histories import HistoryCreate, HistoryResponse, HistoryUpdate
from app.services.exceptions import NotFoundError, PermissionDeniedError
from app.utils.query import parse_list_query, run_list_query

router = APIRouter(prefix="/histories", tags=["Histories"])


def _serialize(history: History) -> dict:
    return HistoryResponse.model_validate(history).model_dump(mode="json")


def get_history_or_404(db: Session, history_id: int) -> History:
    history = db.get(History, history_id)
    if history is None:
        raise NotFoundError.for_resource("History", history_id)
    return history


def _require_admin(user) -> None:
    if not is_admin(user):
        raise PermissionDeniedError("Only admins can modify histories")


@router.get("", response_model=ListEnvelope, summary="List histories")
def list_histories(request: Request, db: Annotated[Session, Depends(get_db)]) -> dict:
    """e.g. `?asset_id=4&created_at[gte]=2026-01-01&sort=created_at`"""
    query = parse_list_query(request.query_params, History)
    return run_list_query(db, select(History), History, query).envelope(_serialize)


@router.post(
    "",
    response_model=Envelope[HistoryResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a history entry",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_history(
        request: Request,
        data: HistoryCreate,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    _require_admin(current_user)
    if db.get(Asset, data.asset_id) is None:
        raise NotFoundError.for_resource("Asset", data.asset_id)

    history = History(**data.model_dump(exclude={"created_at"}))
    history.created_at = data.created_at or datetime.now(timezone.utc)
    db.add(history)
    db.commit()
    db.refresh(history)
    return ok(HistoryResponse.model_validate(history))


@router.get("/{history_id}", response_model=Envelope[HistoryResponse], summary="Get a history entry")
def get_history(history_id: int, db: Annotated[Session, Depends(get_db)]) -> dict:
    return ok(HistoryResponse.model_validate(get_history_or_404(db, history_id)))


@router.put("/{history_id}", response_model=Envelope[HistoryResponse], summary="Update a history entry")
def update_history(
        history_id: int,
        data: HistoryUpdate,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    _require_admin(current_user)
    history = get_history_or_404(db, history_id)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(history, field, value)
    db.commit()
    db.refresh(history)
    return ok(HistoryResponse.model_validate(history))


@router.delete("/{history_id}", response_model=Envelope[dict], summary="Delete a history entry")
def delete_history(
        history_id: int,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
) -> dict:
    _require_admin(current_user)
    db.delete(get_history_or_404(db, history_id))
    db.commit()
    return ok({})
