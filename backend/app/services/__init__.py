# backend/app/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions (exceptions.py)
- Receive database sessions as parameters (not via Depends)

Architecture:
    services/
    ├── __init__.py           # This file
    ├── exceptions.py         # Domain exceptions
    ├── constants.py          # Business constants and limits
    ├── asset_store.py        # Scraped quote -> Asset upserts
    ├── market_sync.py        # Full / per-market price sync
    ├── history.py            # Daily close-price snapshots
    ├── scheduler.py          # In-process periodic jobs
    ├── sms.py                # Phone verification (Twilio Verify)
    ├── auth/                 # Passwords, JWT, registration
    ├── currency/             # Conversion matrix and rate provider
    ├── portfolio/            # Average cost and profit/loss valuation
    └── scrapers/             # One scraper per price source
"""

from app.services.exceptions import (
    ServiceError,
    ValidationError,
    NotFoundError,
    FXRateNotFoundError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "FXRateNotFoundError",
]
