"""
Authentication services.

- Password hashing and verification (bcrypt)
- JWT access token creation and validation
- Registration and login (AuthService)

Usage:
    from app.services.auth import AuthService, PasswordService, JWTHandler

    token = JWTHandler.create_access_token(user_id=1, email="user@example.com")
    payload = JWTHandler.validate_access_token(token)
"""

from app.services.auth.password import PasswordService
from app.services.auth.jwt_handler import JWTHandler
from app.services.auth.service import AccessToken, AuthService

__all__ = [
    "PasswordService",
    "JWTHandler",
    "AccessToken",
    "AuthService",
]
