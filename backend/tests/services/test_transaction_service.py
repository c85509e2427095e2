# tests/services/test_transaction_service.py
"""
Tests for transaction writes: price fixing in three currencies and cost
basis recomputation with rollback on insufficient holdings.
"""

from decimal import Decimal

import pytest
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.models import Asset, AssetMarket, Currency, Transaction, TransactionType
from app.services.exceptions import (
    FXConversionError,
    FXRateNotFoundError,
    InsufficientHoldingsError,
    ValidationError,
)
from app.services.currency.rates import RateProvider
from app.services.portfolio import TransactionService
from tests.conftest import FakeScraper, create_asset, create_investment, create_user, seed_rates


@pytest.fixture
def service(rate_provider) -> TransactionService:
    return TransactionService(rate_provider)


@pytest.fixture
def investment(db: Session):
    seed_rates(db)
    user = create_user(db)
    asset = create_asset(db, "AAPL", AssetMarket.USA_STOCK, Decimal("200"))
    return create_investment(db, user.accounts[0], asset)


class TestCreate:

    def test_price_fixed_in_all_currencies(self, db, service, investment):
        txn = service.create(db, investment, TransactionType.BUY, Decimal("2"), Decimal("100"), "USD")

        assert txn.price == Decimal("100")
        assert txn.currency == "USD"
        assert txn.price_try == Decimal("3000")
        assert txn.price_usd == Decimal("100")
        assert txn.price_eur == Decimal("90.90909091")

    def test_currency_defaults_to_asset_currency(self, db, service, investment):
        txn = service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("150"))

        assert txn.currency == "USD"
        assert txn.price_usd == Decimal("150")

    def test_price_in_try(self, db, service, investment):
        txn = service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("3000"), "try")

        assert txn.currency == Currency.TRY.value
        assert txn.price_usd == Decimal("100")

    def test_recomputes_investment(self, db, service, investment):
        service.create(db, investment, TransactionType.BUY, Decimal("10"), Decimal("100"), "USD")
        service.create(db, investment, TransactionType.BUY, Decimal("10"), Decimal("200"), "USD")
        service.create(db, investment, TransactionType.SELL, Decimal("5"), Decimal("250"), "USD")

        db.refresh(investment)
        assert investment.amount == Decimal("15")
        assert investment.avg_price_usd == Decimal("150")

    def test_oversell_rolled_back(self, db, service, investment):
        service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("100"), "USD")

        with pytest.raises(InsufficientHoldingsError):
            service.create(db, investment, TransactionType.SELL, Decimal("2"), Decimal("100"), "USD")

        db.refresh(investment)
        assert investment.amount == Decimal("1")
        count = len(db.scalars(select(Transaction).where(Transaction.investment_id == investment.id)).all())
        assert count == 1

    def test_unsupported_currency(self, db, service, investment):
        with pytest.raises(FXConversionError):
            service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("1"), "GBP")

    @pytest.mark.parametrize("qty,price", [(Decimal("0"), Decimal("1")), (Decimal("1"), Decimal("-1"))])
    def test_invalid_quantity_or_price(self, db, service, investment, qty, price):
        with pytest.raises(ValidationError):
            service.create(db, investment, TransactionType.BUY, qty, price, "USD")

    def test_no_rates_available(self, db):
        user = create_user(db)
        asset = create_asset(db)
        investment = create_investment(db, user.accounts[0], asset)
        service = TransactionService(RateProvider(scraper=FakeScraper([])))

        with pytest.raises(FXRateNotFoundError):
            service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("1"), "USD")


class TestUpdateAndDelete:

    def test_update_quantity_recomputes(self, db, service, investment):
        txn = service.create(db, investment, TransactionType.BUY, Decimal("10"), Decimal("100"), "USD")

        service.update(db, txn, quantity=Decimal("4"))

        db.refresh(investment)
        assert investment.amount == Decimal("4")

    def test_update_price_refixes_triple(self, db, service, investment):
        txn = service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("100"), "USD")

        updated = service.update(db, txn, price=Decimal("600"), currency="TRY")

        assert updated.currency == "TRY"
        assert updated.price_usd == Decimal("20")
        db.refresh(investment)
        assert investment.avg_price_usd == Decimal("20")

    def test_update_to_sell_exceeding_holding_rejected(self, db, service, investment):
        service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("100"), "USD")
        txn = service.create(db, investment, TransactionType.BUY, Decimal("1"), Decimal("100"), "USD")

        with pytest.raises(InsufficientHoldingsError):
            service.update(db, txn, transaction_type=TransactionType.SELL, quantity=Decimal("5"))

        db.refresh(txn)
        assert txn.transaction_type == TransactionType.BUY

    def test_delete_recomputes(self, db, service, investment):
        first = service.create(db, investment, TransactionType.BUY, Decimal("10"), Decimal("100"), "USD")
        service.create(db, investment, TransactionType.BUY, Decimal("10"), Decimal("300"), "USD")

        service.delete(db, first)

        db.refresh(investment)
        assert investment.amount == Decimal("10")
        assert investment.avg_price_usd == Decimal("300")

    def test_delete_buy_leaving_negative_rejected(self, db, service, investment):
        buy = service.create(db, investment, TransactionType.BUY, Decimal("10"), Decimal("100"), "USD")
        service.create(db, investment, TransactionType.SELL, Decimal("5"), Decimal("100"), "USD")

        with pytest.raises(InsufficientHoldingsError):
            service.delete(db, buy)

        assert db.get(Transaction, buy.id) is not None


# =============================================================================
# COLD RATE CACHE
# =============================================================================
# No exchange assets and an empty cache: every priced write falls back to
# the feed, which seeds exchange assets into the same session.


def _cool_down(db: Session, provider: RateProvider) -> None:
    provider.invalidate()
    db.execute(delete(Asset).where(Asset.market == AssetMarket.EXCHANGE))
    db.commit()


def _exchange_asset_count(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(Asset).where(Asset.market == AssetMarket.EXCHANGE))


def _stored_amount(db: Session, investment) -> Decimal:
    """Buys minus sells as stored, independent of investment.amount."""
    total = Decimal("0")
    for txn in db.scalars(select(Transaction).where(Transaction.investment_id == investment.id)):
        total += txn.quantity if txn.transaction_type == TransactionType.BUY else -txn.quantity
    return total


@pytest.fixture
def cold_investment(db: Session):
    user = create_user(db)
    asset = create_asset(db, "MSFT", AssetMarket.USA_STOCK, Decimal("400"))
    return create_investment(db, user.accounts[0], asset)


class TestColdRateCache:

    def test_accepted_write_keeps_seeded_rates(self, db, service, rate_provider, cold_investment):
        txn = service.create(db, cold_investment, TransactionType.BUY, Decimal("1"), Decimal("100"), "USD")

        assert txn.price_try == Decimal("3000")
        assert rate_provider._scraper.calls == 1
        assert _exchange_asset_count(db) == 3

    def test_rejected_update_leaves_row_unchanged(self, db, service, rate_provider, cold_investment):
        txn = service.create(db, cold_investment, TransactionType.BUY, Decimal("1"), Decimal("100"), "USD")
        _cool_down(db, rate_provider)

        with pytest.raises(InsufficientHoldingsError):
            service.update(
                db, txn, transaction_type=TransactionType.SELL, quantity=Decimal("5"), price=Decimal("100")
            )

        db.expire_all()
        db.refresh(txn)
        db.refresh(cold_investment)
        assert rate_provider._scraper.calls == 2
        assert txn.transaction_type == TransactionType.BUY
        assert txn.quantity == Decimal("1")
        assert cold_investment.amount == Decimal("1")
        assert cold_investment.amount == _stored_amount(db, cold_investment)
        assert _exchange_asset_count(db) == 0

    def test_rejected_create_adds_nothing(self, db, service, rate_provider, cold_investment):
        service.create(db, cold_investment, TransactionType.BUY, Decimal("2"), Decimal("100"), "USD")
        _cool_down(db, rate_provider)

        with pytest.raises(InsufficientHoldingsError):
            service.create(db, cold_investment, TransactionType.SELL, Decimal("3"), Decimal("100"), "USD")

        db.expire_all()
        count = db.scalar(
            select(func.count()).select_from(Transaction).where(Transaction.investment_id == cold_investment.id)
        )
        assert count == 1
        assert cold_investment.amount == Decimal("2")
        assert cold_investment.amount == _stored_amount(db, cold_investment)

    def test_rejected_delete_keeps_row(self, db, service, rate_provider, cold_investment):
        buy = service.create(db, cold_investment, TransactionType.BUY, Decimal("10"), Decimal("100"), "USD")
        service.create(db, cold_investment, TransactionType.SELL, Decimal("4"), Decimal("100"), "USD")
        _cool_down(db, rate_provider)

        with pytest.raises(InsufficientHoldingsError):
            service.delete(db, buy)

        db.expire_all()
        assert db.get(Transaction, buy.id) is not None
        assert cold_investment.amount == Decimal("6")
        assert cold_investment.amount == _stored_amount(db, cold_investment)
