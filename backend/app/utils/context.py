# backend/app/utils/context.py
"""
Correlation ID storage shared by HTTP requests and background jobs.

Backed by contextvars, so each request (and each scheduler job run inside
job_context()) sees its own value.

Usage:
    from app.utils.context import get_correlation_id, job_context

    with job_context("scrape"):
        logger.info("...")  # logged with "scrape-1a2b3c4d"
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


@contextmanager
def job_context(job_name: str) -> Iterator[str]:
    """
    Tag every log line emitted inside the block with a fresh job ID.

    Scheduler threads have no request, so without this their logs would be
    impossible to tell apart when two runs overlap in the output.
    """
    job_id = f"{job_name}-{uuid.uuid4().hex[:8]}"
    token = _correlation_id_var.set(job_id)
    try:
        yield job_id
    finally:
        _correlation_id_var.reset(token)
