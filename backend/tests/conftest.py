# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Fake scrapers and a rate provider that never touch the network
- An API client with every external dependency overridden
- Sample data factories
"""

import os

# Must happen before any app import: settings are read at import time
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("APP_NAME", "Test App")

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import get_db
from app.dependencies import (
    clear_service_caches,
    get_market_sync_service,
    get_rate_provider,
    get_scraper_factory,
    get_transaction_service,
)
from app.main import app
from app.models import (
    Account,
    Asset,
    AssetMarket,
    Base,
    Currency,
    History,
    Investment,
    Transaction,
    TransactionType,
    User,
    UserRole,
)
from app.services.auth import JWTHandler, PasswordService
from app.services.currency.converter import CurrencyRates
from app.services.currency.rates import RateProvider
from app.services.market_sync import MarketSyncService
from app.services.portfolio import TransactionService
from app.services.scrapers import ScrapedQuote

# TRY value of one USD / one EUR used throughout the tests
USD_TRY = Decimal("30")
EUR_TRY = Decimal("33")
TEST_RATES = CurrencyRates(usd=USD_TRY, eur=EUR_TRY)

TEST_PASSWORD = "s3cret-password"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Iterator[Session]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# FAKE SCRAPERS
# =============================================================================

class FakeScraper:
    """Stands in for a Scraper: returns canned quotes and counts calls."""

    def __init__(self, quotes: list[ScrapedQuote] | None = None, name: str = "fake") -> None:
        self.quotes = list(quotes or [])
        self.name = name
        self.calls = 0

    def fetch(self) -> list[ScrapedQuote]:
        self.calls += 1
        return list(self.quotes)


class FakeScraperFactory:
    """market -> FakeScraper, with the same signature as get_market_scraper."""

    def __init__(self, quotes_by_market: dict[AssetMarket, list[ScrapedQuote]] | None = None) -> None:
        self.quotes_by_market = dict(quotes_by_market or {})
        self.requested: list[AssetMarket] = []

    def set_quotes(self, market: AssetMarket, quotes: list[ScrapedQuote]) -> None:
        self.quotes_by_market[market] = quotes

    def __call__(self, market, pool=None) -> FakeScraper:
        market = AssetMarket(market)
        self.requested.append(market)
        return FakeScraper(self.quotes_by_market.get(market, []), name=market.value)


def exchange_quotes(usd: Decimal = USD_TRY, eur: Decimal = EUR_TRY) -> list[ScrapedQuote]:
    return [
        ScrapedQuote(ticker="USD", price=usd, name="ABD DOLARI", currency="TRY"),
        ScrapedQuote(ticker="EUR", price=eur, name="EURO", currency="TRY"),
        ScrapedQuote(ticker="TRY", price=Decimal("1"), name="TÜRK LİRASI", currency="TRY"),
    ]


@pytest.fixture
def scraper_factory() -> FakeScraperFactory:
    return FakeScraperFactory({AssetMarket.EXCHANGE: exchange_quotes()})


@pytest.fixture
def rate_provider() -> RateProvider:
    """Rate provider whose fallback feed is a fake exchange scraper."""
    return RateProvider(scraper=FakeScraper(exchange_quotes(), name="tcmb"), ttl_seconds=600)


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture(scope="function")
def client(db: Session, rate_provider: RateProvider, scraper_factory: FakeScraperFactory) -> Iterator[TestClient]:
    """TestClient with the database, rate provider and scrapers overridden."""
    clear_service_caches()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_provider] = lambda: rate_provider
    app.dependency_overrides[get_scraper_factory] = lambda: scraper_factory
    app.dependency_overrides[get_transaction_service] = lambda: TransactionService(rate_provider)
    app.dependency_overrides[get_market_sync_service] = lambda: MarketSyncService(
        rate_provider, scraper_factory=scraper_factory, max_workers=2
    )

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    clear_service_caches()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_user(
        db: Session,
        email: str = "user@example.com",
        role: UserRole = UserRole.USER,
        fullname: str = "Test User",
        phone: str | None = None,
        password: str = TEST_PASSWORD,
) -> User:
    """Factory function for creating a user with one default account."""
    user = User(
        fullname=fullname,
        email=email,
        phone=phone,
        role=role,
        hashed_password=PasswordService.hash_password(password),
    )
    user.accounts.append(Account(name="Account"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_account(db: Session, user: User, name: str = "Second Account") -> Account:
    account = Account(user_id=user.id, name=name)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def create_asset(
        db: Session,
        ticker: str = "AAPL",
        market: AssetMarket = AssetMarket.USA_STOCK,
        price: Decimal = Decimal("100"),
        currency: Currency = Currency.USD,
        name: str | None = None,
        rates: CurrencyRates = TEST_RATES,
) -> Asset:
    """Asset priced at `price` in `currency`, converted with the test rates."""
    price_try = {
        Currency.TRY: price,
        Currency.USD: price * rates.usd,
        Currency.EUR: price * rates.eur,
    }[currency]
    asset = Asset(
        ticker=ticker,
        market=market,
        name=name or ticker,
        currency=currency.value,
        price_try=price_try,
        price_usd=price_try / rates.usd,
        price_eur=price_try / rates.eur,
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def seed_rates(db: Session, usd: Decimal = USD_TRY, eur: Decimal = EUR_TRY) -> None:
    """Exchange-market USD and EUR assets, the rate provider's first source."""
    rates = CurrencyRates(usd=usd, eur=eur)
    create_asset(db, "USD", AssetMarket.EXCHANGE, usd, Currency.TRY, rates=rates)
    create_asset(db, "EUR", AssetMarket.EXCHANGE, eur, Currency.TRY, rates=rates)


def create_investment(db: Session, account: Account, asset: Asset) -> Investment:
    investment = Investment(account_id=account.id, asset_id=asset.id)
    db.add(investment)
    db.commit()
    db.refresh(investment)
    return investment


def create_transaction(
        db: Session,
        investment: Investment,
        transaction_type: TransactionType = TransactionType.BUY,
        quantity: Decimal = Decimal("10"),
        price_usd: Decimal = Decimal("100"),
        rates: CurrencyRates = TEST_RATES,
) -> Transaction:
    """Raw transaction row priced in USD; does not touch the investment's cost basis."""
    txn = Transaction(
        investment_id=investment.id,
        transaction_type=transaction_type,
        quantity=quantity,
        price=price_usd,
        currency=Currency.USD.value,
        price_try=price_usd * rates.usd,
        price_usd=price_usd,
        price_eur=price_usd * rates.usd / rates.eur,
    )
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


def create_history(
        db: Session,
        asset: Asset,
        created_at: datetime,
        price_usd: Decimal,
        rates: CurrencyRates = TEST_RATES,
) -> History:
    history = History(
        asset_id=asset.id,
        close_price_try=price_usd * rates.usd,
        close_price_usd=price_usd,
        close_price_eur=price_usd * rates.usd / rates.eur,
        created_at=created_at,
    )
    db.add(history)
    db.commit()
    db.refresh(history)
    return history


def auth_headers(user: User) -> dict[str, str]:
    token = JWTHandler.create_access_token(user_id=user.id, email=user.email, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# COMMON FIXTURES
# =============================================================================

@pytest.fixture
def sample_user(db: Session) -> User:
    return create_user(db)


@pytest.fixture
def other_user(db: Session) -> User:
    return create_user(db, email="other@example.com", fullname="Other User")


@pytest.fixture
def admin_user(db: Session) -> User:
    return create_user(db, email="admin@example.com", role=UserRole.ADMIN, fullname="Admin")


@pytest.fixture
def user_headers(sample_user: User) -> dict[str, str]:
    return auth_headers(sample_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)
