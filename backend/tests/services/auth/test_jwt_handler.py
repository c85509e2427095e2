# tests/services/auth/test_jwt_handler.py
"""
Tests for JWT token handling.

Tests:
- Access token creation with correct claims
- Token validation (valid, expired, tampered, wrong type)
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.config import settings
from app.services.auth.jwt_handler import JWTHandler
from app.services.exceptions import AuthenticationError


# =============================================================================
# TEST: ACCESS TOKEN CREATION
# =============================================================================


class TestCreateAccessToken:
    """Tests for access token creation."""

    def test_create_token_is_valid_jwt(self):
        """Created token should be a valid JWT (3 dot-separated parts)."""
        token = JWTHandler.create_access_token(user_id=1, email="test@example.com")

        assert len(token.split(".")) == 3

    def test_token_contains_correct_claims(self):
        token = JWTHandler.create_access_token(user_id=123, email="user@example.com", role="admin")

        payload = JWTHandler.validate_access_token(token)

        assert payload["sub"] == "123"
        assert payload["email"] == "user@example.com"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_default_role_is_user(self):
        token = JWTHandler.create_access_token(user_id=1, email="u@example.com")

        assert JWTHandler.validate_access_token(token)["role"] == "user"

    def test_custom_expiry(self):
        token = JWTHandler.create_access_token(
            user_id=1, email="u@example.com", expires_delta=timedelta(minutes=5)
        )
        payload = JWTHandler.validate_access_token(token)

        lifetime = payload["exp"] - payload["iat"]
        assert 290 <= lifetime <= 310


# =============================================================================
# TEST: TOKEN VALIDATION
# =============================================================================


class TestValidateAccessToken:
    """Tests for token validation failures."""

    def test_expired_token_rejected(self):
        token = JWTHandler.create_access_token(
            user_id=1, email="u@example.com", expires_delta=timedelta(seconds=-10)
        )

        with pytest.raises(AuthenticationError, match="expired"):
            JWTHandler.validate_access_token(token)

    def test_tampered_token_rejected(self):
        token = JWTHandler.create_access_token(user_id=1, email="u@example.com")
        tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")

        with pytest.raises(AuthenticationError):
            JWTHandler.validate_access_token(tampered)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            JWTHandler.validate_access_token("not-a-token")

    def test_wrong_type_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "type": "refresh", "exp": now + timedelta(minutes=5), "iat": now},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError, match="token type"):
            JWTHandler.validate_access_token(token)

    def test_wrong_secret_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "type": "access", "exp": now + timedelta(minutes=5), "iat": now},
            "another-secret-key-that-is-long-enough",
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError):
            JWTHandler.validate_access_token(token)
