# backend/app/schemas/errors.py
"""
Pydantic schemas for error responses.

Every error body shares the success envelope's flag, so clients can branch
on `success` alone. Used by the exception handlers in main.py.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error response format."""

    success: bool = Field(default=False)
    error: str = Field(
        ...,
        description="Error type/code (e.g., 'NotFoundError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context (optional)"
    )


class ValidationErrorDetail(BaseModel):
    """Used for Pydantic request validation errors (422 responses)."""

    success: bool = Field(default=False)
    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="List of validation errors"
    )
