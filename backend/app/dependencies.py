# backend/app/dependencies.py
"""
Dependency injection module for FastAPI services.

Services holding shared state (rate cache, session pool, scheduler jobs)
are created once and reused by every request. They are lazily initialized
on first use to avoid import-time side effects.

Usage in routers:
    from app.dependencies import get_current_user, get_owned_account

    @router.get("/{account_id}")
    def get_account(account: Account = Depends(get_owned_account)):
        ...
"""

import logging
from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import Account, Investment, Transaction, User, UserRole
from app.services.auth import AuthService, JWTHandler
from app.services.currency.rates import RateProvider
from app.services.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from app.services.market_sync import MarketSyncService
from app.services.portfolio import TransactionService, ValuationService
from app.services.scrapers import Scraper, get_market_scraper
from app.services.sms import SMSService

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for JWT authentication
_bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_rate_provider (no deps)
# 2. get_transaction_service, get_market_sync_service (depend on rate provider)


@lru_cache(maxsize=1)
def get_rate_provider() -> RateProvider:
    """Shared rate provider; its TTL cache only works as a singleton."""
    logger.debug("Initializing singleton RateProvider")
    return RateProvider()


@lru_cache(maxsize=1)
def get_transaction_service() -> TransactionService:
    logger.debug("Initializing singleton TransactionService")
    return TransactionService(rate_provider=get_rate_provider())


@lru_cache(maxsize=1)
def get_valuation_service() -> ValuationService:
    logger.debug("Initializing singleton ValuationService")
    return ValuationService()


@lru_cache(maxsize=1)
def get_market_sync_service() -> MarketSyncService:
    logger.debug("Initializing singleton MarketSyncService")
    return MarketSyncService(rate_provider=get_rate_provider())


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    logger.debug("Initializing singleton AuthService")
    return AuthService()


def get_scraper_factory() -> Callable[..., Scraper]:
    """market -> Scraper; overridden in tests so views never hit the network."""
    return get_market_scraper


@lru_cache(maxsize=1)
def get_sms_service() -> SMSService:
    logger.debug("Initializing singleton SMSService")
    return SMSService()


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Extract and validate the current user from the bearer token.

    Raises:
        AuthenticationError (401): missing, invalid or expired token, unknown user
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = JWTHandler.validate_access_token(credentials.credentials)
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token subject") from None

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def ensure_owner(user: User, owner_id: int, resource: str) -> None:
    """
    Raises:
        PermissionDeniedError (403): user neither owns the resource nor is an admin
    """
    if owner_id != user.id and not is_admin(user):
        raise PermissionDeniedError(f"Not authorized to access this {resource}")


# =============================================================================
# OWNERSHIP-CHECKED LOOKUPS
# =============================================================================

def load_owned_account(db: Session, user: User, account_id: int) -> Account:
    account = db.get(Account, account_id)
    if account is None:
        raise NotFoundError.for_resource("Account", account_id)
    ensure_owner(user, account.user_id, "account")
    return account


def load_owned_investment(db: Session, user: User, investment_id: int) -> Investment:
    investment = db.get(Investment, investment_id)
    if investment is None:
        raise NotFoundError.for_resource("Investment", investment_id)
    ensure_owner(user, investment.account.user_id, "investment")
    return investment


def get_owned_account(
    account_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
) -> Account:
    return load_owned_account(db, current_user, account_id)


def get_owned_investment(
    investment_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
) -> Investment:
    return load_owned_investment(db, current_user, investment_id)


def get_owned_transaction(
    transaction_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
) -> Transaction:
    txn = db.get(Transaction, transaction_id)
    if txn is None:
        raise NotFoundError.for_resource("Transaction", transaction_id)
    ensure_owner(current_user, txn.investment.account.user_id, "transaction")
    return txn


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """Drop every singleton so the next call builds a fresh one (tests)."""
    get_rate_provider.cache_clear()
    get_transaction_service.cache_clear()
    get_valuation_service.cache_clear()
    get_market_sync_service.cache_clear()
    get_auth_service.cache_clear()
    get_sms_service.cache_clear()
    logger.info("Cleared all service singleton caches")
