# tests/test_correlation_id.py
"""
Tests for correlation ID middleware, context management and the log
records that carry the ID.
"""

import json
import logging

import pytest

from app.utils.context import clear_correlation_id, get_correlation_id, job_context, set_correlation_id
from app.utils.logging import NO_CORRELATION_ID, CorrelationIdFilter, JsonFormatter, setup_logging


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_job_context_sets_and_restores(self):
        set_correlation_id("outer")

        with job_context("scrape") as job_id:
            assert job_id.startswith("scrape-")
            assert get_correlation_id() == job_id

        assert get_correlation_id() == "outer"
        clear_correlation_id()

    def test_job_ids_unique(self):
        with job_context("history") as first:
            pass
        with job_context("history") as second:
            pass

        assert first != second


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    def test_generates_correlation_id_when_not_provided(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        correlation_id = response.headers["X-Correlation-ID"]
        assert len(correlation_id) == 36  # UUID length
        assert correlation_id.count("-") == 4

    def test_uses_provided_correlation_id(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "my-custom-trace-id-123"})

        assert response.headers["X-Correlation-ID"] == "my-custom-trace-id-123"

    def test_uses_request_id_header_as_fallback(self, client):
        response = client.get("/health", headers={"X-Request-ID": "my-request-id-456"})

        assert response.headers["X-Correlation-ID"] == "my-request-id-456"

    def test_prefers_correlation_id_over_request_id(self, client):
        response = client.get(
            "/health",
            headers={"X-Correlation-ID": "correlation-123", "X-Request-ID": "request-456"},
        )

        assert response.headers["X-Correlation-ID"] == "correlation-123"

    def test_present_on_api_errors(self, client):
        response = client.get("/api/v1/assets/999999")

        assert response.status_code == 404
        assert "X-Correlation-ID" in response.headers

    def test_different_requests_get_different_ids(self, client):
        id1 = client.get("/health").headers["X-Correlation-ID"]
        id2 = client.get("/health").headers["X-Correlation-ID"]

        assert id1 != id2


class TestLogRecords:

    def _record(self, message: str = "hello", **extra) -> logging.LogRecord:
        record = logging.LogRecord("app.test", logging.INFO, __file__, 1, message, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_filter_adds_correlation_id(self):
        record = self._record()
        with job_context("scrape") as job_id:
            CorrelationIdFilter().filter(record)

        assert record.correlation_id == job_id

    def test_filter_placeholder_outside_context(self):
        clear_correlation_id()
        record = self._record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == NO_CORRELATION_ID

    def test_json_formatter(self):
        record = self._record("synced", market="crypto")
        CorrelationIdFilter().filter(record)

        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == "synced"
        assert entry["level"] == "INFO"
        assert entry["extra"] == {"market": "crypto"}

    def test_invalid_level_rejected(self):
        with pytest.raises(ValueError):
            setup_logging(level="LOUD")
