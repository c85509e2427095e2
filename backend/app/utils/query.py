# backend/app/utils/query.py
"""
List query language shared by the CRUD list endpoints.

Query string grammar:
    field=value                 equality
    field[gt|gte|lt|lte]=value  comparisons
    field[in]=a,b,c             membership
    field[like]=text            case-insensitive substring
    select=a,b                  projection (id is always kept)
    sort=-price_try,ticker      "-" for descending; default newest first
    page=2&limit=50             1-indexed page, limit capped at MAX_PAGE_SIZE

Sorting on `ticker` puts tickers starting with a digit after the others.

Usage:
    query = parse_list_query(request.query_params, Asset)
    page = run_list_query(db, select(Asset), Asset, query)
    return page.envelope(lambda a: AssetResponse.model_validate(a).model_dump(mode="json"))
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
import re

from sqlalchemy import Select, case, func, select
from sqlalchemy.orm import Session

from app.services.constants import (
    DEFAULT_PAGE_SIZE,
    FILTER_OPERATORS,
    MAX_PAGE_SIZE,
    RESERVED_QUERY_PARAMS,
)
from app.services.exceptions import ValidationError

_FILTER_KEY = re.compile(r"^(?P<field>\w+)(\[(?P<op>\w+)\])?$")


def escape_like_pattern(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally (escape char: backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: str
    value: str


@dataclass
class ListQuery:
    filters: list[FieldFilter] = field(default_factory=list)
    select: list[str] | None = None
    sort: list[tuple[str, bool]] = field(default_factory=list)  # (field, descending)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass
class Page:
    """One page of results plus what the envelope needs."""
    rows: list[Any]
    total: int
    page: int
    limit: int
    fields: list[str] | None = None

    @property
    def pagination(self) -> dict[str, dict[str, int]]:
        links: dict[str, dict[str, int]] = {}
        if self.page * self.limit < self.total:
            links["next"] = {"page": self.page + 1, "limit": self.limit}
        if self.page > 1:
            links["prev"] = {"page": self.page - 1, "limit": self.limit}
        return links

    def envelope(self, serialize: Callable[[Any], dict[str, Any]]) -> dict[str, Any]:
        data = [self._project(serialize(row)) for row in self.rows]
        return {
            "success": True,
            "count": len(data),
            "total": self.total,
            "pagination": self.pagination,
            "data": data,
        }

    def _project(self, item: dict[str, Any]) -> dict[str, Any]:
        if not self.fields:
            return item
        keep = {"id", *self.fields}
        return {k: v for k, v in item.items() if k in keep}


# =============================================================================
# PARSING
# =============================================================================

def _columns(model: type) -> set[str]:
    return set(model.__table__.columns.keys())


def _positive_int(raw: str, name: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be an integer", field=name) from None
    if value < 1:
        raise ValidationError(f"'{name}' must be at least 1", field=name)
    return value


def _split(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_list_query(
        params: Mapping[str, str] | Iterable[tuple[str, str]],
        model: type,
        ignore: Iterable[str] = (),
) -> ListQuery:
    """
    Parse query parameters against the columns of `model`.

    Args:
        params: request.query_params or any (key, value) pairs
        model: SQLAlchemy model the list endpoint returns
        ignore: Extra parameter names the endpoint handles itself

    Raises:
        ValidationError: unknown field or operator, bad page/limit
    """
    pairs = params.multi_items() if hasattr(params, "multi_items") else (
        params.items() if isinstance(params, Mapping) else params
    )
    columns = _columns(model)
    skip = set(ignore)
    query = ListQuery()

    for key, raw in pairs:
        if key in skip:
            continue
        if key == "select":
            fields = _split(raw)
            _check_fields(fields, columns)
            query.select = fields
        elif key == "sort":
            for part in _split(raw):
                name = part.lstrip("-")
                _check_fields([name], columns)
                query.sort.append((name, part.startswith("-")))
        elif key == "page":
            query.page = _positive_int(raw, "page")
        elif key == "limit":
            query.limit = min(_positive_int(raw, "limit"), MAX_PAGE_SIZE)
        elif key not in RESERVED_QUERY_PARAMS:
            match = _FILTER_KEY.match(key)
            if match is None:
                raise ValidationError(f"Invalid filter '{key}'", field=key)
            name, op = match.group("field"), match.group("op") or "eq"
            _check_fields([name], columns)
            if op != "eq" and op not in FILTER_OPERATORS:
                raise ValidationError(
                    f"Unknown operator '{op}'. Use one of: {', '.join(sorted(FILTER_OPERATORS))}",
                    field=key,
                )
            query.filters.append(FieldFilter(field=name, op=op, value=raw))

    return query


def _check_fields(fields: list[str], columns: set[str]) -> None:
    unknown = [f for f in fields if f not in columns]
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}", field=unknown[0])


# =============================================================================
# EXECUTION
# =============================================================================

def _coerce(column: Any, raw: str) -> Any:
    """Turn a query-string value into the column's Python type."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw

    try:
        if issubclass(python_type, Enum):
            return python_type(raw.lower())
        if python_type is bool:
            return raw.strip().lower() in {"1", "true", "yes"}
        if python_type is int:
            return int(raw)
        if python_type is Decimal:
            return Decimal(raw)
        if python_type is datetime:
            return datetime.fromisoformat(raw)
    except (ValueError, InvalidOperation):
        raise ValidationError(f"Invalid value '{raw}' for '{column.key}'", field=column.key) from None
    return raw


def _condition(column: Any, flt: FieldFilter) -> Any:
    if flt.op == "like":
        return column.ilike(f"%{escape_like_pattern(flt.value)}%", escape="\\")
    if flt.op == "in":
        return column.in_([_coerce(column, v) for v in _split(flt.value)])

    value = _coerce(column, flt.value)
    return {
        "eq": column.__eq__,
        "gt": column.__gt__,
        "gte": column.__ge__,
        "lt": column.__lt__,
        "lte": column.__le__,
    }[flt.op](value)


def _order_by(model: type, query: ListQuery) -> list[Any]:
    if not query.sort:
        default = model.created_at if "created_at" in _columns(model) else model.id
        return [default.desc(), model.id.desc()]

    clauses: list[Any] = []
    for name, descending in query.sort:
        column = getattr(model, name)
        if name == "ticker":
            starts_with_digit = func.substr(column, 1, 1).between("0", "9")
            clauses.append(case((starts_with_digit, 1), else_=0))
        clauses.append(column.desc() if descending else column.asc())
    clauses.append(model.id.asc())
    return clauses


def run_list_query(db: Session, stmt: Select, model: type, query: ListQuery) -> Page:
    """Apply filters, sorting and paging to `stmt` and execute it."""
    for flt in query.filters:
        stmt = stmt.where(_condition(getattr(model, flt.field), flt))

    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0

    rows = db.scalars(
        stmt.order_by(*_order_by(model, query))
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
    ).all()

    return Page(rows=list(rows), total=total, page=query.page, limit=query.limit, fields=query.select)
