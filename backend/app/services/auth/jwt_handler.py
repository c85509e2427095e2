"""
JWT access token creation and validation.

Tokens are stateless and never stored. Payload:
- sub: User ID (string)
- email: User's email
- role: "user" or "admin"
- exp / iat: Expiry and issue timestamps
- type: "access"
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.services.exceptions import AuthenticationError


class JWTHandler:

    @staticmethod
    def create_access_token(
        user_id: int,
        email: str,
        role: str = "user",
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a signed access token.

        Example:
            token = JWTHandler.create_access_token(user_id=1, email="user@example.com")
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "exp": now + expires_delta,
            "iat": now,
            "type": "access",
        }

        return jwt.encode(
            payload,
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

    @staticmethod
    def validate_access_token(token: str) -> dict[str, Any]:
        """
        Validate an access token and return its payload.

        Raises:
            AuthenticationError: expired, malformed, wrongly signed, or not an access token
        """
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
            )
        except ExpiredSignatureError:
            raise AuthenticationError("Access token has expired")
        except JWTError as e:
            raise AuthenticationError(f"Invalid token: {e}")

        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type")

        return payload
