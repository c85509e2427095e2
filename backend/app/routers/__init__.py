# backend/app/routers/__init__.py
"""
API routers, all mounted under /api/v1.

- auth: registration, login, current user
- accounts, assets, transactions, investments, histories: CRUD
- market_views: live scraped views (stocks, crypto, exchange, funds, ...)
- scraping: manual market sync triggers
- sms: phone verification
"""

from app.routers.accounts import router as accounts_router
from app.routers.assets import router as assets_router
from app.routers.auth import router as auth_router
from app.routers.histories import router as histories_router
from app.routers.investments import router as investments_router
from app.routers.market_views import (
    commodities_router,
    crypto_router,
    exchange_router,
    funds_router,
    indices_router,
    stocks_router,
)
from app.routers.scraping import router as scraping_router
from app.routers.sms import router as sms_router
from app.routers.transactions import router as transactions_router

__all__ = [
    "auth_router",
    "accounts_router",
    "assets_router",
    "transactions_router",
    "investments_router",
    "histories_router",
    "stocks_router",
    "crypto_router",
    "exchange_router",
    "funds_router",
    "commodities_router",
    "indices_router",
    "scraping_router",
    "sms_router",
]
