# backend/app/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
main.py maps each family onto an HTTP response.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError                 -> 400
    │   ├── InvalidRangeError
    │   ├── InvalidMarketError
    │   └── InsufficientHoldingsError
    ├── NotFoundError                   -> 404
    │   └── NoInvestmentsFoundError
    ├── AuthenticationError             -> 401
    ├── PermissionDeniedError           -> 403
    ├── ConflictError                   -> 409
    ├── ScraperError                    (logged, never reaches clients)
    │   └── ScraperFetchError
    ├── FXRateError
    │   ├── FXRateNotFoundError         -> 503
    │   └── FXConversionError           -> 400
    └── SMSError
        ├── SMSNotConfiguredError       -> 503
        └── SMSProviderError            -> 503
"""

from decimal import Decimal


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a request is well-formed but violates a business rule.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidRangeError(ValidationError):
    """Raised for an unknown profit/loss range."""

    def __init__(self, value: str, valid: list[str]) -> None:
        self.value = value
        super().__init__(
            f"Invalid range: '{value}'. Valid options: {', '.join(valid)}",
            field="range",
        )


class InvalidMarketError(ValidationError):
    """Raised for an unknown asset market."""

    def __init__(self, value: str | None, valid: list[str]) -> None:
        self.value = value
        super().__init__(
            f"Invalid market: '{value}'. Valid options: {', '.join(valid)}",
            field="market",
        )


class InsufficientHoldingsError(ValidationError):
    """Raised when sells would exceed the bought quantity of an investment."""

    def __init__(self, investment_id: int, resulting_amount: Decimal) -> None:
        self.investment_id = investment_id
        self.resulting_amount = resulting_amount
        super().__init__(
            f"Investment {investment_id} would hold {resulting_amount} units; "
            "sold quantity cannot exceed bought quantity",
            field="quantity",
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Account", "Asset")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)

    @classmethod
    def for_resource(cls, resource_type: str, resource_id: int | str) -> "NotFoundError":
        return cls(
            f"{resource_type} not found with id of {resource_id}",
            resource_type=resource_type,
            resource_id=resource_id,
        )


class NoInvestmentsFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("No investments found", resource_type="Investment")


# =============================================================================
# AUTH ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """Invalid credentials or token."""
    pass


class PermissionDeniedError(ServiceError):
    """The caller is authenticated but does not own the resource."""
    pass


class ConflictError(ServiceError):
    """Unique constraint violation (duplicate email, duplicate holding...)."""
    pass


# =============================================================================
# SCRAPER ERRORS
# =============================================================================


class ScraperError(ServiceError):
    """
    Base exception for scraper failures.

    Scrapers catch these themselves and return an empty result; they are
    part of the hierarchy so retry policies and logs can name them.

    Attributes:
        source: Name of the scraped source
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        super().__init__(message)


class ScraperFetchError(ScraperError):
    """
    Raised when a page could not be downloaded.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)

    This is a retryable error.
    """

    def __init__(self, source: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Source '{source}' could not be fetched: {reason}", source=source)


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for FX rate errors.

    Attributes:
        base_currency: The base currency code
        quote_currency: The quote currency code
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXRateNotFoundError(FXRateError):
    """
    Raised when no usable rate exists for a currency pair.

    This can happen when:
    - The pair is not one of TRY/USD/EUR
    - Neither the stored exchange assets nor the central bank feed supply a rate
    """

    def __init__(
            self,
            base_currency: str,
            quote_currency: str,
            message: str | None = None,
    ) -> None:
        msg = message or f"No FX rate found for {base_currency}/{quote_currency}"
        super().__init__(msg, base_currency=base_currency, quote_currency=quote_currency)


class FXConversionError(FXRateError):
    """
    Raised when conversion parameters are invalid.

    Examples:
    - Unknown currency code in a request
    - Non-positive rate value

    Attributes:
        reason: Specific reason for conversion failure
    """

    def __init__(
            self,
            reason: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            f"FX conversion error: {reason}",
            base_currency=base_currency,
            quote_currency=quote_currency,
        )


# =============================================================================
# SMS ERRORS
# =============================================================================


class SMSError(ServiceError):
    pass


class SMSNotConfiguredError(SMSError):
    def __init__(self) -> None:
        super().__init__("SMS verification is not configured")


class SMSProviderError(SMSError):
    """
    Raised when the SMS provider rejects a request or is unreachable.

    Attributes:
        status_code: HTTP status returned by the provider (None on network errors)
    """

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"SMS provider error: {reason}")


__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidRangeError",
    "InvalidMarketError",
    "InsufficientHoldingsError",
    "NotFoundError",
    "NoInvestmentsFoundError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ConflictError",
    "ScraperError",
    "ScraperFetchError",
    "FXRateError",
    "FXRateNotFoundError",
    "FXConversionError",
    "SMSError",
    "SMSNotConfiguredError",
    "SMSProviderError",
]
