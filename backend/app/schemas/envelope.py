# backend/app/schemas/envelope.py
"""
Success envelopes.

Single resources:  {"success": true, "data": {...}}
Lists:             {"success": true, "count": n, "total": N,
                    "pagination": {"next": {...}, "prev": {...}}, "data": [...]}

List items are plain dicts because `select=` may project any subset of
fields; the item schema is still used to serialize each row first.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageLink(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)


class PaginationLinks(BaseModel):
    next: PageLink | None = None
    prev: PageLink | None = None


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ListEnvelope(BaseModel):
    success: bool = True
    count: int = Field(..., ge=0, description="Items on this page")
    total: int = Field(..., ge=0, description="Items matching the filters")
    pagination: PaginationLinks = Field(default_factory=PaginationLinks)
    data: list[dict[str, Any]]


class MessageData(BaseModel):
    message: str


def ok(data: Any) -> dict[str, Any]:
    """Wrap a payload in the success envelope."""
    return {"success": True, "data": data}
