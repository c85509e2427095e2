"""Pydantic schemas for Account validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AccountCreate(BaseModel):
    name: str = Field(
        default="Account",
        min_length=1,
        max_length=120,
        description="Display name of the account",
        examples=["Retirement", "Trading"],
    )
    user_id: int | None = Field(
        default=None,
        description="Owner; admins only, everyone else creates accounts for themselves",
    )


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    created_at: datetime
    updated_at: datetime
