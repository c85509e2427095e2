# backend/app/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application and starts/stops the scheduler
- Registers global exception handlers
- Registers all routers under /api/v1
- Defines global endpoints (health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from app.config import settings
from app.database import check_database_health, init_db
from app.dependencies import get_market_sync_service, get_rate_provider
from app.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from app.routers import (
    accounts_router,
    assets_router,
    auth_router,
    commodities_router,
    crypto_router,
    exchange_router,
    funds_router,
    histories_router,
    indices_router,
    investments_router,
    scraping_router,
    sms_router,
    stocks_router,
    transactions_router,
)
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.services.exceptions import (
    ServiceError,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    PermissionDeniedError,
    ConflictError,
    ScraperError,
    FXRateNotFoundError,
    FXConversionError,
    SMSError,
)
from app.services.scheduler import build_scheduler
from app.services.scrapers import get_session_pool
from app.utils import setup_logging

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(get_rate_provider(), sync=get_market_sync_service())
        scheduler.start()
    else:
        logger.info("Scheduler disabled")

    yield

    if scheduler is not None:
        scheduler.stop()
    get_session_pool().cleanup()


# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Market data aggregation and portfolio tracking API",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions carry no HTTP knowledge; each family is mapped
# to a status code here. Starlette picks the most specific handler along
# the exception's MRO, so subclasses fall through to their family.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def _error_response(
        status_code: int,
        exc: Exception,
        details: dict | None = None,
        headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=details,
        ).model_dump(),
        headers=headers,
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle business-rule validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(400, exc, {"field": exc.field} if exc.field else None)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle missing resources (404)."""
    logger.warning(f"Not found: {exc}")
    details = None
    if exc.resource_type:
        details = {"resource_type": exc.resource_type, "resource_id": exc.resource_id}
    return _error_response(404, exc, details)


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handle authentication errors (401)."""
    logger.warning(f"Authentication error: {exc}")
    return _error_response(401, exc, headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    """Handle permission denied errors (403)."""
    logger.warning(f"Permission denied: {exc}")
    return _error_response(403, exc)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Handle duplicates (409)."""
    logger.warning(f"Conflict: {exc}")
    return _error_response(409, exc)


@app.exception_handler(FXRateNotFoundError)
async def fx_rate_not_found_handler(request: Request, exc: FXRateNotFoundError) -> JSONResponse:
    """Handle missing exchange rates (503); nothing is converted at a made-up rate."""
    logger.error(f"FX rate unavailable: {exc}")
    return _error_response(
        503,
        exc,
        {"base_currency": exc.base_currency, "quote_currency": exc.quote_currency},
    )


@app.exception_handler(FXConversionError)
async def fx_conversion_error_handler(request: Request, exc: FXConversionError) -> JSONResponse:
    """Handle FX conversion errors (400)."""
    logger.warning(f"FX conversion error: {exc}")
    details = None
    if exc.base_currency:
        details = {"base_currency": exc.base_currency, "quote_currency": exc.quote_currency}
    return _error_response(400, exc, details)


@app.exception_handler(SMSError)
async def sms_error_handler(request: Request, exc: SMSError) -> JSONResponse:
    """Handle SMS provider problems (503)."""
    logger.error(f"SMS error: {exc}")
    status_code = getattr(exc, "status_code", None)
    return _error_response(503, exc, {"provider_status": status_code} if status_code else None)


@app.exception_handler(ScraperError)
async def scraper_error_handler(request: Request, exc: ScraperError) -> JSONResponse:
    """Handle scraper failures that escaped a scraper (502)."""
    logger.error(f"Scraper error: {exc}")
    return _error_response(502, exc, {"source": exc.source} if exc.source else None)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return _error_response(500, exc)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to our standard
    ErrorDetail format for API consistency.
    """
    error_types = {
        400: "BadRequestError",
        401: "UnauthorizedError",
        403: "ForbiddenError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        409: "ConflictError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI's 422 body into ValidationErrorDetail."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            error="ValidationError",
            message="Request validation failed",
            details=errors,
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="InternalServerError",
            message="An unexpected error occurred",
            details=None,
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

for router in (
    auth_router,  # /auth/*
    accounts_router,  # /accounts/*
    assets_router,  # /assets/*
    transactions_router,  # /transactions/*
    investments_router,  # /investments/*
    histories_router,  # /histories/*
    stocks_router,  # /stocks/*
    crypto_router,  # /crypto
    exchange_router,  # /exchange/*
    funds_router,  # /funds
    commodities_router,  # /commodities
    indices_router,  # /indices
    scraping_router,  # /scraping/*
    sms_router,  # /sms/*
):
    app.include_router(router, prefix=API_PREFIX)


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "api": API_PREFIX,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health of the API and its dependencies.

    - 200: database reachable (the scheduler and scrapers are non-critical)
    - 503: database unreachable
    """
    database = check_database_health()
    body = {
        "status": database["status"],
        "checks": {
            "database": {**database, "critical": True},
            "scheduler": {"enabled": settings.scheduler_enabled, "critical": False},
            "sms": {"configured": settings.is_twilio_configured, "critical": False},
        },
    }
    if database["status"] != "healthy":
        return JSONResponse(status_code=503, content=body)
    return body


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Liveness probe; never checks dependencies."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request):
    """Readiness probe; 503 while the database is unavailable."""
    if check_database_health()["status"] != "healthy":
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
