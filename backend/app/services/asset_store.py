# backend/app/services/asset_store.py
"""
Writing scraped prices onto Asset rows.

build_price_rows() turns scraped quotes into rows priced in all three
currencies; upsert_assets() writes them keyed by (ticker, market).

Batches:
    Rows are written in batches of `batch_size`. Each batch is one SELECT
    for the existing assets plus one commit, so a failing batch leaves the
    earlier ones in place (no atomicity across batches).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Asset, AssetMarket, Currency
from app.services.constants import ZERO
from app.services.currency.converter import CurrencyRates, PriceTriple, prices_in_all_currencies
from app.services.scrapers.base import ScrapedQuote
from app.utils.numbers import quantize_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetPriceRow:
    ticker: str
    market: AssetMarket
    name: str
    icon: str | None
    currency: Currency
    prices: PriceTriple


def _quote_currency(quote: ScrapedQuote, market: AssetMarket) -> Currency:
    if quote.currency:
        try:
            return Currency.parse(quote.currency)
        except ValueError:
            pass
    return market.default_currency


def build_price_rows(
    market: AssetMarket,
    quotes: list[ScrapedQuote],
    rates: CurrencyRates,
) -> list[AssetPriceRow]:
    """Convert quotes into price rows, skipping rows without a ticker or a positive price."""
    rows: list[AssetPriceRow] = []
    skipped = 0

    for quote in quotes:
        ticker = (quote.ticker or "").strip()
        if not ticker or quote.price is None or quote.price <= ZERO:
            skipped += 1
            continue

        currency = _quote_currency(quote, market)
        rows.append(AssetPriceRow(
            ticker=ticker,
            market=market,
            name=quote.name or ticker,
            icon=quote.icon,
            currency=currency,
            prices=prices_in_all_currencies(quote.price, currency, rates),
        ))

    if skipped:
        logger.debug(f"Skipped {skipped} {market.value} quotes without ticker or price")
    return rows


def upsert_assets(
        db: Session,
        rows: list[AssetPriceRow],
        batch_size: int = 500,
        commit: bool = True,
) -> int:
    """
    Insert or update assets by (ticker, market).

    With commit=False each batch is only flushed and the caller owns the
    transaction.

    Returns:
        Number of rows written
    """
    written = 0
    scraped_at = datetime.now(timezone.utc)

    for start in range(0, len(rows), batch_size):
        batch = rows[start:start + batch_size]
        markets = {row.market for row in batch}
        tickers = {row.ticker for row in batch}

        existing = {
            (asset.ticker, asset.market): asset
            for asset in db.scalars(
                select(Asset).where(Asset.market.in_(markets), Asset.ticker.in_(tickers))
            )
        }

        for row in batch:
            asset = existing.get((row.ticker, row.market))
            if asset is None:
                asset = Asset(ticker=row.ticker, market=row.market)
                db.add(asset)
                existing[(row.ticker, row.market)] = asset

            asset.name = row.name
            if row.icon:
                asset.icon = row.icon
            asset.currency = row.currency.value
            asset.price_try = quantize_price(row.prices.try_)
            asset.price_usd = quantize_price(row.prices.usd)
            asset.price_eur = quantize_price(row.prices.eur)
            asset.scraped_at = scraped_at

        if commit:
            db.commit()
        else:
            db.flush()
        written += len(batch)

    return written
