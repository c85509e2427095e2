# backend/app/utils/logging.py
"""
Logging configuration.

- Level from LOG_LEVEL, formatter from LOG_FORMAT (text or json)
- Every record carries the request / job correlation ID
- Chatty HTTP and parser libraries are lowered to WARNING

Usage:
    from app.utils import setup_logging

    setup_logging()  # once, before the FastAPI app is created

Log Levels:
    DEBUG   - Per-row scraper detail, cache hits
    INFO    - Sync results, job start/finish, resources created
    WARNING - Empty scrapes, retries, skipped overlapping jobs
    ERROR   - Failed jobs, provider outages, unexpected exceptions
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from app.config import settings
from app.utils.context import get_correlation_id

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

NOISY_LOGGERS = [
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "httpx",
    "httpcore",
    "charset_normalizer",
    "bs4",
    "passlib",
    "asyncio",
]

# LogRecord attributes that are not user-supplied "extra" fields
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
})


class CorrelationIdFilter(logging.Filter):
    """Expose the current correlation ID as %(correlation_id)s."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, for log aggregation in production.

    {"timestamp": ..., "level": "INFO", "logger": "app.services.market_sync",
     "correlation_id": "scrape-1a2b3c4d", "message": "...", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Overrides settings.log_level
        log_format: 'text' or 'json', overrides settings.log_format
    """
    level_name = (level or settings.log_level).upper().strip()
    if level_name == "WARN":
        level_name = "WARNING"
    if level_name not in logging.getLevelNamesMapping():
        raise ValueError(f"Invalid log level: '{level_name}'")

    format_type = (log_format or settings.log_format).lower()
    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}"
    )
