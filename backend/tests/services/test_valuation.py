# tests/services/test_valuation.py
"""
Tests for ranged balance and profit/loss valuation.

Rates: 1 USD = 30 TRY, 1 EUR = 33 TRY.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app.models import Account, Asset, AssetMarket, Investment
from app.services.exceptions import InvalidRangeError, NoInvestmentsFoundError, ValidationError
from app.services.portfolio import ValuationService, parse_currency, parse_range
from app.services.portfolio.types import percentage
from tests.conftest import create_asset, create_history, create_user

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _hold(db: Session, account: Account, asset: Asset, amount: str, avg_usd: str) -> Investment:
    avg = Decimal(avg_usd)
    investment = Investment(
        account_id=account.id,
        asset_id=asset.id,
        amount=Decimal(amount),
        avg_price_usd=avg,
        avg_price_try=avg * 30,
        avg_price_eur=avg * 30 / 33,
    )
    db.add(investment)
    db.commit()
    db.refresh(investment)
    return investment


@pytest.fixture
def service() -> ValuationService:
    return ValuationService(clock=lambda: NOW)


@pytest.fixture
def portfolio(db: Session):
    user = create_user(db)
    account = user.accounts[0]
    aapl = create_asset(db, "AAPL", AssetMarket.USA_STOCK, Decimal("200"))
    btc = create_asset(db, "BTC", AssetMarket.CRYPTO, Decimal("60000"))
    _hold(db, account, aapl, "10", "100")
    _hold(db, account, btc, "0.5", "40000")
    return user, aapl, btc


class TestParsing:

    def test_parse_range_default_and_case(self):
        assert parse_range(None) == "all"
        assert parse_range("Weekly") == "weekly"

    def test_parse_range_unknown(self):
        with pytest.raises(InvalidRangeError):
            parse_range("hourly")

    def test_parse_currency(self):
        assert parse_currency(None).value == "USD"
        assert parse_currency("eur").value == "EUR"

    def test_parse_currency_unknown(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_currency("GBP")
        assert exc_info.value.field == "currency"


class TestPercentage:

    def test_zero_base(self):
        assert percentage(Decimal("5"), Decimal("0")) == Decimal("0")

    def test_regular(self):
        assert percentage(Decimal("25"), Decimal("200")) == Decimal("12.5")


class TestSummarize:

    def test_all_range_uses_average_cost(self, db, service, portfolio):
        user, aapl, _ = portfolio
        summary = service.summarize(db, service.load_investments(db, user), "usd", "all")

        stocks = summary.markets["usa-stock"]
        [valuation] = stocks.investments
        assert valuation.start_price == Decimal("100")
        assert valuation.balance == Decimal("2000")
        assert valuation.profit_loss == Decimal("1000")
        assert valuation.profit_loss_percentage == Decimal("100")

    def test_totals_weighted_on_start_value(self, db, service, portfolio):
        user, _, _ = portfolio
        summary = service.summarize(db, service.load_investments(db, user), "USD", "all")

        assert summary.general_balance == Decimal("32000")
        assert summary.total_profit_loss == Decimal("11000")
        assert summary.total_start_value == Decimal("21000")
        assert summary.profit_loss_percentage.quantize(Decimal("0.01")) == Decimal("52.38")
        assert set(summary.markets) == {"usa-stock", "crypto"}

    def test_range_uses_earliest_history_in_window(self, db, service, portfolio):
        user, aapl, _ = portfolio
        create_history(db, aapl, NOW - timedelta(days=10), Decimal("120"))
        create_history(db, aapl, NOW - timedelta(days=3), Decimal("150"))
        create_history(db, aapl, NOW - timedelta(days=1, hours=-1), Decimal("180"))

        summary = service.summarize(db, service.load_investments(db, user), "USD", "weekly")

        [valuation] = summary.markets["usa-stock"].investments
        assert valuation.start_price == Decimal("150")
        assert valuation.profit_loss == Decimal("500")

    def test_range_without_history_falls_back_to_average(self, db, service, portfolio):
        user, aapl, _ = portfolio
        create_history(db, aapl, NOW - timedelta(days=3), Decimal("150"))

        summary = service.summarize(db, service.load_investments(db, user), "USD", "daily")

        [valuation] = summary.markets["usa-stock"].investments
        assert valuation.start_price == Decimal("100")

    def test_target_currency(self, db, service, portfolio):
        user, _, _ = portfolio
        summary = service.summarize(db, service.load_investments(db, user), "TRY", "all")

        [valuation] = summary.markets["usa-stock"].investments
        assert valuation.current_price == Decimal("6000")
        assert valuation.balance == Decimal("60000")
        assert summary.currency == "TRY"

    def test_closed_positions_excluded(self, db, service, portfolio):
        user, _, _ = portfolio
        eth = create_asset(db, "ETH", AssetMarket.CRYPTO, Decimal("3000"))
        _hold(db, user.accounts[0], eth, "0", "2000")

        summary = service.summarize(db, service.load_investments(db, user), "USD", "all")

        assert [v.ticker for v in summary.markets["crypto"].investments] == ["BTC"]

    def test_unknown_range(self, db, service, portfolio):
        user, _, _ = portfolio
        with pytest.raises(InvalidRangeError):
            service.summarize(db, service.load_investments(db, user), "USD", "decade")


class TestLoadInvestments:

    def test_other_users_investments_hidden(self, db, service, portfolio):
        stranger = create_user(db, email="stranger@example.com")

        with pytest.raises(NoInvestmentsFoundError):
            service.load_investments(db, stranger)

    def test_admin_sees_everything(self, db, service, portfolio, admin_user):
        assert len(service.load_investments(db, admin_user)) == 2

    def test_filter_by_account(self, db, service, portfolio):
        user, aapl, _ = portfolio
        second = Account(user_id=user.id, name="Second")
        db.add(second)
        db.commit()

        with pytest.raises(NoInvestmentsFoundError):
            service.load_investments(db, user, account_id=second.id)

        _hold(db, second, aapl, "1", "100")
        assert len(service.load_investments(db, user, account_id=second.id)) == 1
