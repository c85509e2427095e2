"""
Phone verification endpoints (Twilio Verify).

- POST /sms/send-verification-code     {phone}
- POST /sms/verify-verification-code   {phone, code}

503 when Twilio is not configured or unreachable.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_sms_service
from app.middleware.rate_limit import limiter, RATE_LIMIT_SMS
from app.schemas.envelope import Envelope, ok
from app.schemas.sms import (
    SendVerificationRequest,
    VerificationCheckResponse,
    VerificationStatusResponse,
    VerifyCodeRequest,
)
from app.services.sms import SMSService

router = APIRouter(prefix="/sms", tags=["SMS"])


@router.post(
    "/send-verification-code",
    response_model=Envelope[VerificationStatusResponse],
    summary="Send a verification code",
)
@limiter.limit(RATE_LIMIT_SMS)
def send_verification_code(
        request: Request,
        data: SendVerificationRequest,
        service: Annotated[SMSService, Depends(get_sms_service)],
) -> dict:
    result = service.send_verification_code(data.phone)
    return ok(VerificationStatusResponse(phone=result.phone, status=result.status))


@router.post(
    "/verify-verification-code",
    response_model=Envelope[VerificationCheckResponse],
    summary="Check a verification code",
)
@limiter.limit(RATE_LIMIT_SMS)
def verify_verification_code(
        request: Request,
        data: VerifyCodeRequest,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[SMSService, Depends(get_sms_service)],
) -> dict:
    """A valid code marks the user registered with this phone as verified."""
    result = service.verify_verification_code(db, data.phone, data.code)
    return ok(VerificationCheckResponse(phone=result.phone, valid=result.valid, status=result.status))
