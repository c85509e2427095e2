"""
Core authentication service.

Handles:
- User registration (every new user gets a default "Account")
- Login with email/password
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models import Account, User, UserRole
from app.services.auth.jwt_handler import JWTHandler
from app.services.auth.password import PasswordService
from app.services.exceptions import AuthenticationError, ConflictError

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NAME = "Account"


@dataclass(frozen=True)
class AccessToken:
    access_token: str
    token_type: str = "bearer"
    expires_in: int = settings.jwt_access_token_expire_minutes * 60


class AuthService:
    """Registration and credential checks."""

    def register(
        self,
        db: Session,
        fullname: str,
        email: str,
        password: str,
        phone: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Create a user together with its default account.

        Raises:
            ConflictError: email or phone already registered
        """
        email = email.lower()
        if db.scalar(select(User.id).where(User.email == email)) is not None:
            raise ConflictError(f"Email '{email}' is already registered")
        if phone and db.scalar(select(User.id).where(User.phone == phone)) is not None:
            raise ConflictError(f"Phone '{phone}' is already registered")

        user = User(
            fullname=fullname,
            email=email,
            phone=phone,
            role=role,
            hashed_password=PasswordService.hash_password(password),
        )
        user.accounts.append(Account(name=DEFAULT_ACCOUNT_NAME))
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"User registered: {user.email} (id={user.id})")
        return user

    def authenticate(self, db: Session, email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: unknown email or wrong password (same message for both)
        """
        user = db.scalar(select(User).where(User.email == email.lower()))
        if user is None or not PasswordService.verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for {email.lower()}")
            raise AuthenticationError("Invalid email or password")
        return user

    def issue_token(self, user: User) -> AccessToken:
        return AccessToken(
            access_token=JWTHandler.create_access_token(
                user_id=user.id,
                email=user.email,
                role=user.role.value,
            )
        )

    def login(self, db: Session, email: str, password: str) -> AccessToken:
        user = self.authenticate(db, email, password)
        logger.info(f"User logged in: {user.email}")
        return self.issue_token(user)
