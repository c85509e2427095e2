# backend/app/middleware/rate_limit.py
"""
Rate limiting middleware for API protection.

Uses slowapi to:
- Protect third-party sites from scrape floods (scraping triggers, market views)
- Cap SMS spend and brute force on auth endpoints
- Keep per-client usage fair

Key by: Client IP address (X-Forwarded-For only from trusted proxies)
Storage: In-memory

Usage:
    from app.middleware.rate_limit import limiter, RATE_LIMIT_SCRAPE

    @router.get("/scraping")
    @limiter.limit(RATE_LIMIT_SCRAPE)
    def run_scrape(request: Request):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.config import settings
from app.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
    RATE_LIMIT_SCRAPE,
    RATE_LIMIT_MARKET_VIEW,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_AUTH_LOGIN,
    RATE_LIMIT_AUTH_REGISTER,
    RATE_LIMIT_SMS,
)

logger = logging.getLogger(__name__)


def _is_trusted_proxy(request: Request) -> bool:
    """Whether X-Forwarded-For from this client can be believed."""
    if settings.trust_proxy_headers:
        return True

    return get_remote_address(request) in settings.trusted_proxy_ips


def _get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Forwarded headers are only honoured when the immediate client is a
    trusted proxy, otherwise any client could spoof its key.
    """
    if _is_trusted_proxy(request):
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # First entry is the original client
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return get_remote_address(request)


# =============================================================================
# LIMITER INSTANCE
# =============================================================================

limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=not settings.is_test,
)


# =============================================================================
# RATE LIMIT EXCEEDED HANDLER
# =============================================================================

async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Return 429 in the same shape as every other API error."""
    retry_after = 60
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(
        f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {
                "retry_after": retry_after,
            },
        },
        headers={
            "Retry-After": str(retry_after),
        },
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_SCRAPE",
    "RATE_LIMIT_MARKET_VIEW",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_AUTH_LOGIN",
    "RATE_LIMIT_AUTH_REGISTER",
    "RATE_LIMIT_SMS",
]
