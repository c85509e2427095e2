# backend/app/services/history.py
"""
Daily close-price snapshots.

snapshot_histories() records each asset's current three prices as a
History row, at most once per asset per UTC day, so running the job twice
on the same day is harmless.
"""

import logging
from datetime import datetime, time, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Asset, History

logger = logging.getLogger(__name__)


def snapshot_histories(db: Session, now: datetime | None = None) -> int:
    """
    Insert one History row per asset without a snapshot today.

    Returns:
        Number of rows inserted
    """
    now = now or datetime.now(timezone.utc)
    day_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)

    already_done = select(History.asset_id).where(History.created_at >= day_start)
    assets = db.scalars(
        select(Asset).where(Asset.id.not_in(already_done)).order_by(Asset.id)
    ).all()

    for asset in assets:
        db.add(History(
            asset_id=asset.id,
            close_price_try=asset.price_try,
            close_price_usd=asset.price_usd,
            close_price_eur=asset.price_eur,
            created_at=now,
        ))
    db.commit()

    logger.info(f"Recorded {len(assets)} history snapshots for {now.date().isoformat()}")
    return len(assets)
