# tests/routers/test_histories_api.py
"""Tests for /api/v1/histories."""

from datetime import datetime, timezone
from decimal import Decimal

from tests.conftest import create_asset, create_history

URL = "/api/v1/histories"


def history_payload(asset_id: int, **overrides) -> dict:
    payload = {
        "asset_id": asset_id,
        "close_price_try": "3000",
        "close_price_usd": "100",
        "close_price_eur": "90.90909091",
    }
    payload.update(overrides)
    return payload


class TestListHistories:

    def test_filter_by_asset_and_date(self, client, db):
        aapl = create_asset(db, "AAPL")
        msft = create_asset(db, "MSFT")
        create_history(db, aapl, datetime(2026, 10, 1, tzinfo=timezone.utc), Decimal("90"))
        create_history(db, aapl, datetime(2026, 10, 10, tzinfo=timezone.utc), Decimal("95"))
        create_history(db, msft, datetime(2026, 10, 10, tzinfo=timezone.utc), Decimal("300"))

        body = client.get(f"{URL}?asset_id={aapl.id}&created_at[gte]=2026-10-05").json()

        assert body["total"] == 1
        assert Decimal(body["data"][0]["close_price_usd"]) == Decimal("95")

    def test_newest_first_by_default(self, client, db):
        asset = create_asset(db)
        create_history(db, asset, datetime(2026, 10, 1, tzinfo=timezone.utc), Decimal("90"))
        create_history(db, asset, datetime(2026, 10, 2, tzinfo=timezone.utc), Decimal("91"))

        data = client.get(URL).json()["data"]

        assert [Decimal(h["close_price_usd"]) for h in data] == [Decimal("91"), Decimal("90")]


class TestWriteHistories:

    def test_admin_creates(self, client, db, admin_headers):
        asset = create_asset(db)

        response = client.post(URL, json=history_payload(asset.id), headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["data"]["asset_id"] == asset.id

    def test_explicit_timestamp(self, client, db, admin_headers):
        asset = create_asset(db)

        data = client.post(
            URL,
            json=history_payload(asset.id, created_at="2026-01-02T00:00:00Z"),
            headers=admin_headers,
        ).json()["data"]

        assert data["created_at"].startswith("2026-01-02")

    def test_unknown_asset(self, client, admin_headers):
        response = client.post(URL, json=history_payload(9999), headers=admin_headers)

        assert response.status_code == 404

    def test_user_forbidden(self, client, db, user_headers):
        asset = create_asset(db)

        assert client.post(URL, json=history_payload(asset.id), headers=user_headers).status_code == 403

    def test_update_and_delete(self, client, db, admin_headers):
        history = create_history(db, create_asset(db), datetime(2026, 10, 1, tzinfo=timezone.utc), Decimal("90"))

        updated = client.put(f"{URL}/{history.id}", json={"close_price_usd": "92"}, headers=admin_headers)
        assert Decimal(updated.json()["data"]["close_price_usd"]) == Decimal("92")

        assert client.delete(f"{URL}/{history.id}", headers=admin_headers).status_code == 200
        assert client.get(f"{URL}/{history.id}").status_code == 404
