# backend/app/services/sms.py
"""
Phone verification through Twilio Verify v2.

Two calls against settings.twilio_base_url with HTTP basic auth:
    POST /Services/{sid}/Verifications        send a code to a phone
    POST /Services/{sid}/VerificationCheck    check a code

A successful check marks the user owning that phone as verified.

Uses httpx's sync client (routes run in the thread pool). Tests pass an
httpx.MockTransport instead of reaching Twilio.
"""

import logging
import re
from dataclasses import dataclass

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models import User
from app.services.exceptions import SMSNotConfiguredError, SMSProviderError, ValidationError

logger = logging.getLogger(__name__)

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


def validate_phone(phone: str) -> str:
    """Return the trimmed phone number, raising ValidationError unless it is E.164."""
    value = (phone or "").strip()
    if not E164_PATTERN.match(value):
        raise ValidationError(
            "Phone number must be in E.164 format, e.g. +905551234567",
            field="phone",
        )
    return value


@dataclass(frozen=True)
class VerificationStatus:
    phone: str
    status: str


@dataclass(frozen=True)
class VerificationCheck:
    phone: str
    valid: bool
    status: str


class SMSService:
    """
    Args:
        transport: httpx transport override (tests use httpx.MockTransport)
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._transport = transport

    def send_verification_code(self, phone: str) -> VerificationStatus:
        """
        Raises:
            ValidationError: phone is not E.164
            SMSNotConfiguredError: Twilio credentials missing
            SMSProviderError: Twilio unreachable or rejected the request
        """
        number = validate_phone(phone)
        data = self._post("Verifications", {"To": number, "Channel": "sms"})
        status = data.get("status", "pending")
        logger.info(f"Verification code sent, status={status}")
        return VerificationStatus(phone=number, status=status)

    def verify_verification_code(self, db: Session, phone: str, code: str) -> VerificationCheck:
        """Check a code; a valid one marks the phone's owner verified."""
        number = validate_phone(phone)
        if not code or not code.strip():
            raise ValidationError("Verification code is required", field="code")

        try:
            data = self._post("VerificationCheck", {"To": number, "Code": code.strip()})
        except SMSProviderError as e:
            # Twilio answers 404 once a verification expired or was used
            if e.status_code == 404:
                return VerificationCheck(phone=number, valid=False, status="expired")
            raise

        valid = bool(data.get("valid")) or data.get("status") == "approved"
        if valid:
            user = db.scalars(select(User).where(User.phone == number)).first()
            if user is not None:
                user.is_phone_verified = True
                db.commit()
                logger.info(f"Phone verified for user {user.id}")

        return VerificationCheck(phone=number, valid=valid, status=data.get("status", "unknown"))

    def _post(self, resource: str, form: dict[str, str]) -> dict:
        if not settings.is_twilio_configured:
            raise SMSNotConfiguredError()

        url = f"{settings.twilio_base_url.rstrip('/')}/Services/{settings.twilio_verify_service_sid}/{resource}"
        with httpx.Client(
                auth=(settings.twilio_account_sid, settings.twilio_auth_token),
                timeout=settings.twilio_timeout_seconds,
                transport=self._transport,
        ) as client:
            try:
                response = client.post(url, data=form)
            except httpx.RequestError as e:
                raise SMSProviderError(f"Network error: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message", response.text)
            except ValueError:
                detail = response.text
            raise SMSProviderError(detail, status_code=response.status_code)

        return response.json()
