"""
Portfolio math: average cost and ranged profit/loss.

Usage:
    from app.services.portfolio import TransactionService, ValuationService

    txn = TransactionService(rate_provider).create(db, investment, TransactionType.BUY, qty, price)
    summary = ValuationService().summarize(db, investments, currency="usd", range_name="weekly")
"""

from app.services.portfolio.cost_basis import AverageCostCalculator, CostBasisService
from app.services.portfolio.transactions import TransactionService
from app.services.portfolio.types import (
    CostBasis,
    InvestmentValuation,
    MarketSummary,
    PortfolioSummary,
)
from app.services.portfolio.valuation import ValuationService, parse_currency, parse_range

__all__ = [
    "AverageCostCalculator",
    "CostBasisService",
    "TransactionService",
    "ValuationService",
    "CostBasis",
    "InvestmentValuation",
    "MarketSummary",
    "PortfolioSummary",
    "parse_currency",
    "parse_range",
]
