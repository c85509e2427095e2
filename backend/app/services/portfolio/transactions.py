# backend/app/services/portfolio/transactions.py
"""
Transaction writes with cost basis recomputation.

Every create, update and delete:
    1. fixes the transaction price in TRY, USD and EUR with the current rates
    2. recomputes the investment's amount and average cost
    3. rolls back when the investment would end with a negative amount

Usage:
    service = TransactionService(rate_provider)
    txn = service.create(db, investment, TransactionType.BUY, qty, price, "USD")
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models import Investment, Transaction, TransactionType, Currency
from app.services.currency.converter import CurrencyRates, prices_in_all_currencies
from app.services.currency.rates import RateProvider
from app.services.exceptions import FXConversionError, ServiceError, ValidationError
from app.services.portfolio.cost_basis import CostBasisService
from app.utils.numbers import quantize_price

logger = logging.getLogger(__name__)


class TransactionService:

    def __init__(
            self,
            rate_provider: RateProvider,
            cost_basis: CostBasisService | None = None,
    ) -> None:
        self._rates = rate_provider
        self._cost_basis = cost_basis or CostBasisService()

    def create(
            self,
            db: Session,
            investment: Investment,
            transaction_type: TransactionType,
            quantity: Decimal,
            price: Decimal,
            currency: str | None = None,
    ) -> Transaction:
        """
        Record a transaction. currency defaults to the asset's quote currency.

        Raises:
            ValidationError: non-positive quantity or negative price
            InsufficientHoldingsError: a sell larger than the holding
            FXRateNotFoundError: rates unavailable
        """
        code = self._resolve_currency(currency or investment.asset.currency)
        self._validate(quantity, price)
        rates = self._rates.get_rates(db)

        txn = Transaction(
            investment_id=investment.id,
            transaction_type=transaction_type,
            quantity=quantity,
        )
        self._apply_price(txn, price, code, rates)
        db.add(txn)

        self._commit_with_recompute(db, investment)
        db.refresh(txn)
        logger.info(
            f"Recorded {transaction_type.value} of {quantity} on investment {investment.id} "
            f"at {price} {code.value}"
        )
        return txn

    def update(
            self,
            db: Session,
            txn: Transaction,
            transaction_type: TransactionType | None = None,
            quantity: Decimal | None = None,
            price: Decimal | None = None,
            currency: str | None = None,
    ) -> Transaction:
        """Update a transaction; the price triple is re-fixed when price or currency changes."""
        new_quantity = quantity if quantity is not None else txn.quantity
        new_price = price if price is not None else txn.price
        self._validate(new_quantity, new_price)

        # Resolve rates before touching txn so a feed fallback never flushes a half-edited row
        reprice = price is not None or currency is not None
        if reprice:
            code = self._resolve_currency(currency or txn.currency)
            rates = self._rates.get_rates(db)

        if transaction_type is not None:
            txn.transaction_type = transaction_type
        txn.quantity = new_quantity
        if reprice:
            self._apply_price(txn, new_price, code, rates)

        self._commit_with_recompute(db, txn.investment)
        db.refresh(txn)
        logger.info(f"Updated transaction {txn.id} on investment {txn.investment_id}")
        return txn

    def delete(self, db: Session, txn: Transaction) -> None:
        investment = txn.investment
        txn_id = txn.id
        db.delete(txn)
        self._commit_with_recompute(db, investment)
        logger.info(f"Deleted transaction {txn_id} from investment {investment.id}")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _commit_with_recompute(self, db: Session, investment: Investment) -> None:
        try:
            self._cost_basis.recompute(db, investment)
            db.commit()
        except ServiceError:
            db.rollback()
            raise

    @staticmethod
    def _apply_price(txn: Transaction, price: Decimal, currency: Currency, rates: CurrencyRates) -> None:
        triple = prices_in_all_currencies(price, currency, rates)
        txn.price = quantize_price(price)
        txn.currency = currency.value
        txn.price_try = quantize_price(triple.try_)
        txn.price_usd = quantize_price(triple.usd)
        txn.price_eur = quantize_price(triple.eur)

    @staticmethod
    def _resolve_currency(value: str) -> Currency:
        try:
            return Currency.parse(value)
        except ValueError:
            raise FXConversionError(f"Unsupported transaction currency '{value}'") from None

    @staticmethod
    def _validate(quantity: Decimal, price: Decimal) -> None:
        if quantity is None or quantity <= 0:
            raise ValidationError("Quantity must be greater than zero", field="quantity")
        if price is None or price < 0:
            raise ValidationError("Price must not be negative", field="price")
