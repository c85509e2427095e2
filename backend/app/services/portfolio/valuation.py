# backend/app/services/portfolio/valuation.py
"""
Ranged balance and profit/loss of a user's investments.

For each investment, in the target currency:

    current_price = asset price
    start_price   = earliest history close inside [now - window, now],
                    else the investment's average cost
    balance       = amount × current_price
    profit_loss   = balance - amount × start_price
    percentage    = profit_loss / (amount × start_price) × 100

Markets and the whole portfolio aggregate on the same starting value, so a
market's percentage is its weighted P/L, not an average of percentages.

Closed positions (amount 0) carry no balance and are left out.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.models import Account, History, Investment, User, UserRole, Currency
from app.services.constants import DEFAULT_RANGE, DEFAULT_TARGET_CURRENCY, RANGE_WINDOWS, ZERO
from app.services.exceptions import InvalidRangeError, NoInvestmentsFoundError, ValidationError
from app.services.portfolio.types import InvestmentValuation, MarketSummary, PortfolioSummary

logger = logging.getLogger(__name__)


def parse_range(value: str | None) -> str:
    """Normalize a range name, raising InvalidRangeError for unknown ones."""
    name = (value or DEFAULT_RANGE).strip().lower()
    if name not in RANGE_WINDOWS:
        raise InvalidRangeError(name, list(RANGE_WINDOWS))
    return name


def parse_currency(value: str | None) -> Currency:
    try:
        return Currency.parse(value or DEFAULT_TARGET_CURRENCY)
    except ValueError:
        raise ValidationError(
            f"Unsupported currency '{value}'. Use one of: {', '.join(c.value for c in Currency)}",
            field="currency",
        ) from None


class ValuationService:
    """
    Args:
        clock: Returns "now" as an aware UTC datetime (overridable in tests)
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def load_investments(
            self,
            db: Session,
            user: User,
            account_id: int | None = None,
    ) -> list[Investment]:
        """
        Investments visible to `user`, optionally limited to one account.

        Admins see every account. Raises NoInvestmentsFoundError when the
        result is empty.
        """
        stmt = (
            select(Investment)
            .join(Account, Investment.account_id == Account.id)
            .options(selectinload(Investment.asset))
            .order_by(Investment.id)
        )
        if user.role != UserRole.ADMIN:
            stmt = stmt.where(Account.user_id == user.id)
        if account_id is not None:
            stmt = stmt.where(Investment.account_id == account_id)

        investments = list(db.scalars(stmt).all())
        if not investments:
            raise NoInvestmentsFoundError()
        return investments

    def summarize(
            self,
            db: Session,
            investments: Sequence[Investment],
            currency: str | None = None,
            range_name: str | None = None,
    ) -> PortfolioSummary:
        """
        Value the investments and group them by market.

        Raises:
            InvalidRangeError: unknown range name
            ValidationError: unsupported currency
        """
        code = parse_currency(currency)
        name = parse_range(range_name)

        open_positions = [inv for inv in investments if inv.amount and inv.amount > ZERO]
        start_prices = self._start_prices(db, [inv.asset_id for inv in open_positions], code, name)

        summary = PortfolioSummary(currency=code.value, range=name)
        for inv in open_positions:
            valuation = self.value_investment(inv, code, start_prices.get(inv.asset_id))
            market = summary.markets.setdefault(valuation.market, MarketSummary(market=valuation.market))
            market.investments.append(valuation)

        logger.debug(
            f"Valued {len(open_positions)} open positions in {code.value} over '{name}': "
            f"balance={summary.general_balance}"
        )
        return summary

    def value_investment(
            self,
            investment: Investment,
            currency: Currency,
            history_start: Decimal | None,
    ) -> InvestmentValuation:
        asset = investment.asset
        avg_price = investment.avg_price_in(currency)
        return InvestmentValuation(
            investment_id=investment.id,
            account_id=investment.account_id,
            asset_id=asset.id,
            ticker=asset.ticker,
            name=asset.name,
            icon=asset.icon,
            market=asset.market.value,
            amount=investment.amount,
            avg_price=avg_price,
            start_price=history_start if history_start is not None else avg_price,
            current_price=asset.price_in(currency),
        )

    # =========================================================================
    # HISTORY LOOKUP
    # =========================================================================

    def _start_prices(
            self,
            db: Session,
            asset_ids: list[int],
            currency: Currency,
            range_name: str,
    ) -> dict[int, Decimal]:
        """Earliest close per asset inside the range window."""
        window = RANGE_WINDOWS[range_name]
        if window is None or not asset_ids:
            return {}

        since = self._clock() - window
        earliest = (
            select(History.asset_id, func.min(History.created_at).label("first_at"))
            .where(History.asset_id.in_(asset_ids), History.created_at >= since)
            .group_by(History.asset_id)
            .subquery()
        )
        rows = db.scalars(
            select(History)
            .join(
                earliest,
                (History.asset_id == earliest.c.asset_id)
                & (History.created_at == earliest.c.first_at),
            )
            .order_by(History.id)
        ).all()

        prices: dict[int, Decimal] = {}
        for row in rows:
            # Two snapshots sharing the same timestamp: keep the first one
            prices.setdefault(row.asset_id, row.close_price_in(currency))
        return prices
