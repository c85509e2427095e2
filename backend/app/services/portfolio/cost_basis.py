# backend/app/services/portfolio/cost_basis.py
"""
Average cost recomputation.

An investment's amount and average prices are never edited directly: every
transaction create, update or delete recomputes them from the investment's
full transaction history.

    avg_price_C = Σ(buy price_C × buy qty) / Σ(buy qty)     for C in TRY, USD, EUR
    amount      = Σ(buy qty) - Σ(sell qty)

Sells do not move the average cost. An investment without buys has an
average price of 0.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Investment, Transaction, TransactionType
from app.services.constants import ZERO
from app.services.currency.converter import PriceTriple
from app.services.exceptions import InsufficientHoldingsError
from app.services.portfolio.types import CostBasis
from app.utils.numbers import quantize_price

logger = logging.getLogger(__name__)


class AverageCostCalculator:
    """Pure weighted-average computation over transactions."""

    def calculate(self, transactions: Iterable[Transaction]) -> CostBasis:
        bought_qty = ZERO
        sold_qty = ZERO
        cost_try = ZERO
        cost_usd = ZERO
        cost_eur = ZERO

        for txn in transactions:
            if txn.transaction_type == TransactionType.BUY:
                bought_qty += txn.quantity
                cost_try += txn.price_try * txn.quantity
                cost_usd += txn.price_usd * txn.quantity
                cost_eur += txn.price_eur * txn.quantity
            else:
                sold_qty += txn.quantity

        if bought_qty == ZERO:
            avg = PriceTriple(try_=ZERO, usd=ZERO, eur=ZERO)
        else:
            avg = PriceTriple(
                try_=cost_try / bought_qty,
                usd=cost_usd / bought_qty,
                eur=cost_eur / bought_qty,
            )

        return CostBasis(
            amount=bought_qty - sold_qty,
            avg_price=avg,
            bought_qty=bought_qty,
            sold_qty=sold_qty,
        )


class CostBasisService:
    """Writes recomputed cost basis back onto investments."""

    def __init__(self, calculator: AverageCostCalculator | None = None) -> None:
        self._calculator = calculator or AverageCostCalculator()

    def recompute(self, db: Session, investment: Investment, allow_negative: bool = False) -> CostBasis:
        """
        Recompute and assign amount / avg_price_* from the stored transactions.

        Pending changes are flushed first so the query sees them. Nothing is
        committed; the caller owns the unit of work.

        Raises:
            InsufficientHoldingsError: the result would hold a negative amount
        """
        db.flush()
        transactions = db.scalars(
            select(Transaction)
            .where(Transaction.investment_id == investment.id)
            .order_by(Transaction.id)
        ).all()

        basis = self._calculator.calculate(transactions)
        if basis.amount < ZERO and not allow_negative:
            raise InsufficientHoldingsError(investment.id, basis.amount)

        investment.amount = quantize_price(basis.amount)
        investment.avg_price_try = quantize_price(basis.avg_price.try_)
        investment.avg_price_usd = quantize_price(basis.avg_price.usd)
        investment.avg_price_eur = quantize_price(basis.avg_price.eur)

        logger.debug(
            f"Recomputed investment {investment.id}: amount={investment.amount} "
            f"avg_try={investment.avg_price_try} from {len(transactions)} transactions"
        )
        return basis
