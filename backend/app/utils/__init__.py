# backend/app/utils/__init__.py
"""
Cross-cutting helpers.

- logging: setup_logging() with correlation ID support
- context: correlation IDs for requests and scheduler jobs
- numbers: locale-tolerant number parsing and rounding
- query: list query language (filters, select, sort, paging)

Usage:
    from app.utils import setup_logging, convert_to_number
    from app.utils.query import parse_list_query, run_list_query
"""

from app.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    job_context,
)
from app.utils.logging import setup_logging
from app.utils.numbers import convert_to_number, round_to_two, quantize_price

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "job_context",
    "convert_to_number",
    "round_to_two",
    "quantize_price",
]
