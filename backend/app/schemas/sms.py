"""SMS verification request/response schemas."""

from pydantic import BaseModel, Field


class SendVerificationRequest(BaseModel):
    phone: str = Field(..., description="E.164 phone number", examples=["+905551234567"])


class VerifyCodeRequest(BaseModel):
    phone: str = Field(..., examples=["+905551234567"])
    code: str = Field(..., min_length=1, max_length=10, examples=["123456"])


class VerificationStatusResponse(BaseModel):
    phone: str
    status: str


class VerificationCheckResponse(BaseModel):
    phone: str
    valid: bool
    status: str
