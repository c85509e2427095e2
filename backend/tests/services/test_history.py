# tests/services/test_history.py
"""Tests for the daily history snapshot job."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select

from app.models import AssetMarket, Currency, History
from app.services.history import snapshot_histories
from tests.conftest import create_asset, create_history

NOW = datetime(2026, 10, 17, 21, 0, tzinfo=timezone.utc)


def history_count(db) -> int:
    return db.scalar(select(func.count()).select_from(History))


class TestSnapshotHistories:

    def test_one_row_per_asset(self, db):
        aapl = create_asset(db, "AAPL", price=Decimal("200"))
        create_asset(db, "THYAO", AssetMarket.TR_STOCK, Decimal("300"), Currency.TRY)

        assert snapshot_histories(db, now=NOW) == 2

        row = db.scalar(select(History).where(History.asset_id == aapl.id))
        assert row.close_price_usd == Decimal("200")
        assert row.close_price_try == Decimal("6000")

    def test_second_run_same_day_is_noop(self, db):
        create_asset(db)
        snapshot_histories(db, now=NOW)

        assert snapshot_histories(db, now=NOW + timedelta(hours=1)) == 0
        assert history_count(db) == 1

    def test_next_day_records_again(self, db):
        create_asset(db)
        snapshot_histories(db, now=NOW)

        assert snapshot_histories(db, now=NOW + timedelta(days=1)) == 1
        assert history_count(db) == 2

    def test_only_missing_assets_filled(self, db):
        aapl = create_asset(db, "AAPL")
        create_asset(db, "MSFT")
        create_history(db, aapl, NOW.replace(hour=1), Decimal("90"))

        assert snapshot_histories(db, now=NOW) == 1

    def test_no_assets(self, db):
        assert snapshot_histories(db, now=NOW) == 0
