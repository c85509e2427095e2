# backend/app/models.py
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Enum, Numeric, UniqueConstraint, Boolean, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    # Persist the lowercase values ("tr-stock"), not the member names
    return [member.value for member in enum_cls]


class Currency(str, enum.Enum):
    TRY = "TRY"
    USD = "USD"
    EUR = "EUR"

    @classmethod
    def parse(cls, value: "str | Currency") -> "Currency":
        """Case-insensitive lookup ("usd", "USD" and Currency.USD all work)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported currency: {value!r}") from None


class AssetMarket(str, enum.Enum):
    TR_STOCK = "tr-stock"
    USA_STOCK = "usa-stock"
    EXCHANGE = "exchange"
    FUND = "fund"
    COMMODITY = "commodity"
    CRYPTO = "crypto"
    INDICES = "indices"

    @property
    def default_currency(self) -> Currency:
        """Quote currency of prices scraped for this market."""
        if self in (AssetMarket.USA_STOCK, AssetMarket.CRYPTO, AssetMarket.INDICES):
            return Currency.USD
        return Currency.TRY


class TransactionType(str, enum.Enum):
    BUY = "buy"
    SELL = "sell"


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    fullname: Mapped[str] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(16), unique=True, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=_enum_values, native_enum=False), default=UserRole.USER
    )
    hashed_password: Mapped[str] = mapped_column(String)
    is_phone_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    accounts: Mapped[list["Account"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
    )


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(120), default="Account")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner: Mapped["User"] = relationship(back_populates="accounts")
    investments: Mapped[list["Investment"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
    )


class Asset(Base):
    """
    Global table of scraped instruments shared by all users.

    An asset is identified by ticker AND market: "USD" in the exchange market
    is a different row than a "USD" ticker anywhere else. Prices are always
    stored in all three currencies, derived from one rate triple per sync.
    """
    __tablename__ = "assets"
    __table_args__ = (
        UniqueConstraint("ticker", "market", name="uq_ticker_market"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    ticker: Mapped[str] = mapped_column(String(32), index=True)
    market: Mapped[AssetMarket] = mapped_column(
        Enum(AssetMarket, values_callable=_enum_values, native_enum=False), index=True
    )
    name: Mapped[str | None] = mapped_column(String)
    icon: Mapped[str | None] = mapped_column(String)
    currency: Mapped[str] = mapped_column(String(3), default=Currency.TRY.value)  # native quote currency

    # Numeric(18, 8) supports values up to 9,999,999,999.99999999
    price_try: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    price_usd: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    price_eur: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))

    scraped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    histories: Mapped[list["History"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan",
    )
    investments: Mapped[list["Investment"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan",
    )

    def price_in(self, currency: "Currency | str") -> Decimal:
        return getattr(self, f"price_{Currency.parse(currency).value.lower()}")


class Investment(Base):
    """
    A holding of one asset inside one account.

    amount and avg_price_* are derived from the investment's transactions and
    rewritten by the cost basis service on every transaction change.
    """
    __tablename__ = "investments"
    __table_args__ = (
        UniqueConstraint("account_id", "asset_id", name="uq_account_asset"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), index=True)
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    avg_price_try: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    avg_price_usd: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    avg_price_eur: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    account: Mapped["Account"] = relationship(back_populates="investments")
    asset: Mapped["Asset"] = relationship(back_populates="investments")
    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="investment",
        cascade="all, delete-orphan",
        order_by="Transaction.id",
    )

    def avg_price_in(self, currency: "Currency | str") -> Decimal:
        return getattr(self, f"avg_price_{Currency.parse(currency).value.lower()}")


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transaction_investment_type", "investment_id", "transaction_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    investment_id: Mapped[int] = mapped_column(ForeignKey("investments.id", ondelete="CASCADE"), index=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, values_callable=_enum_values, native_enum=False)
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))

    # Price as entered, plus the triple fixed with the rates at write time
    price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    currency: Mapped[str] = mapped_column(String(3))
    price_try: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    price_usd: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    price_eur: Mapped[Decimal] = mapped_column(Numeric(18, 8))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    investment: Mapped["Investment"] = relationship(back_populates="transactions")

    def price_in(self, currency: "Currency | str") -> Decimal:
        return getattr(self, f"price_{Currency.parse(currency).value.lower()}")


class History(Base):
    """Daily close-price snapshot of an asset, used for ranged profit/loss."""
    __tablename__ = "histories"
    __table_args__ = (
        # "Earliest close for asset X since date Y" is the valuation query
        Index("ix_history_asset_created", "asset_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    close_price_try: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    close_price_usd: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    close_price_eur: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)

    asset: Mapped["Asset"] = relationship(back_populates="histories")

    def close_price_in(self, currency: "Currency | str") -> Decimal:
        return getattr(self, f"close_price_{Currency.parse(currency).value.lower()}")
