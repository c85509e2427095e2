"""
Authentication request/response schemas.

- Registration and login bodies
- Access token response
- Current user profile
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models import UserRole
from app.services.sms import E164_PATTERN


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class UserRegisterRequest(BaseModel):
    """Request body for user registration."""

    fullname: str = Field(
        ...,
        min_length=1,
        max_length=120,
        description="User's full name",
        examples=["Ayşe Yılmaz"],
    )
    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["user@example.com"],
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 characters)",
    )
    phone: str | None = Field(
        None,
        description="Phone number in E.164 format",
        examples=["+905551234567"],
    )

    @field_validator("fullname")
    @classmethod
    def strip_fullname(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name cannot be blank")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not E164_PATTERN.match(v):
            raise ValueError("Phone number must be in E.164 format, e.g. +905551234567")
        return v


class UserLoginRequest(BaseModel):
    """Request body for user login."""

    email: EmailStr = Field(..., examples=["user@example.com"])
    password: str = Field(..., min_length=1)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fullname: str
    email: str
    phone: str | None
    role: UserRole
    is_phone_verified: bool
    created_at: datetime
