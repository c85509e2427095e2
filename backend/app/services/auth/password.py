"""
Password hashing and verification using bcrypt (passlib).

Production uses cost factor 12 (~250ms per hash). The test environment
drops to the bcrypt minimum so fixtures that register users stay fast.
"""

from passlib.context import CryptContext

from app.config import settings


_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=4 if settings.is_test else 12,
)


class PasswordService:
    """Stateless bcrypt helpers."""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a plaintext password.

        Example:
            >>> PasswordService.hash_password("mypassword123").startswith("$2b$")
            True
        """
        return _pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Timing-safe comparison of a plaintext password against a stored hash."""
        return _pwd_context.verify(plain_password, hashed_password)
