# backend/app/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

This package contains all Pydantic schemas organized by domain:
- accounts, assets, histories, investments, transactions: CRUD
- auth: registration, login, tokens
- envelope: the {success, data} wrapper and list pagination
- errors: Error response formats
- market: scraped quotes, exchange rates, sync results
- sms: phone verification
- validators: Reusable validation functions (ticker, market, currency)

Usage:
    from app.schemas import AssetCreate, AssetResponse
    from app.schemas import Envelope, ok
"""

from app.schemas.accounts import AccountCreate, AccountResponse, AccountUpdate
from app.schemas.assets import (
    AssetCreate,
    AssetResponse,
    AssetTypeResponse,
    AssetUpdate,
    TrendResponse,
)
from app.schemas.auth import TokenResponse, UserLoginRequest, UserRegisterRequest, UserResponse
from app.schemas.envelope import Envelope, ListEnvelope, MessageData, PageLink, PaginationLinks, ok
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.schemas.histories import HistoryCreate, HistoryResponse, HistoryUpdate
from app.schemas.investments import (
    InvestmentCreate,
    InvestmentPrice,
    InvestmentPricesResponse,
    InvestmentResponse,
    InvestmentUpdate,
    MarketBalance,
    MarketBalanceResponse,
    MarketPrices,
    TotalBalanceResponse,
)
from app.schemas.market import (
    ExchangeRatesResponse,
    MarketSyncResponse,
    QuoteResponse,
    SyncRunResponse,
)
from app.schemas.sms import (
    SendVerificationRequest,
    VerificationCheckResponse,
    VerificationStatusResponse,
    VerifyCodeRequest,
)
from app.schemas.transactions import TransactionCreate, TransactionResponse, TransactionUpdate

__all__ = [
    # Accounts
    "AccountCreate",
    "AccountUpdate",
    "AccountResponse",
    # Assets
    "AssetCreate",
    "AssetUpdate",
    "AssetResponse",
    "AssetTypeResponse",
    "TrendResponse",
    # Auth
    "UserRegisterRequest",
    "UserLoginRequest",
    "TokenResponse",
    "UserResponse",
    # Envelope
    "Envelope",
    "ListEnvelope",
    "MessageData",
    "PageLink",
    "PaginationLinks",
    "ok",
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Histories
    "HistoryCreate",
    "HistoryUpdate",
    "HistoryResponse",
    # Investments
    "InvestmentCreate",
    "InvestmentUpdate",
    "InvestmentResponse",
    "InvestmentPrice",
    "MarketBalance",
    "MarketPrices",
    "TotalBalanceResponse",
    "MarketBalanceResponse",
    "InvestmentPricesResponse",
    # Market
    "QuoteResponse",
    "ExchangeRatesResponse",
    "MarketSyncResponse",
    "SyncRunResponse",
    # SMS
    "SendVerificationRequest",
    "VerifyCodeRequest",
    "VerificationStatusResponse",
    "VerificationCheckResponse",
    # Transactions
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
]
