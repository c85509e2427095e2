"""
Authentication endpoints.

Provides:
- POST /auth/register - Register a user (with a default account), returns a token
- POST /auth/login - Login with email/password
- GET /auth/me - Current user profile

Access tokens are bearer JWTs returned in the response body.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_auth_service
from app.middleware.rate_limit import limiter, RATE_LIMIT_AUTH_LOGIN, RATE_LIMIT_AUTH_REGISTER
from app.schemas.auth import TokenResponse, UserLoginRequest, UserRegisterRequest, UserResponse
from app.schemas.envelope import Envelope, ok
from app.services.auth import AccessToken, AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(token: AccessToken) -> TokenResponse:
    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        expires_in=token.expires_in,
    )


@router.post(
    "/register",
    response_model=Envelope[TokenResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
@limiter.limit(RATE_LIMIT_AUTH_REGISTER)
def register(
    request: Request,  # Required for rate limiter
    data: UserRegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> dict:
    """
    Create a user and its default "Account".

    - **409**: email or phone already registered
    """
    user = auth_service.register(
        db,
        fullname=data.fullname,
        email=data.email,
        password=data.password,
        phone=data.phone,
    )
    return ok(_token_response(auth_service.issue_token(user)))


@router.post(
    "/login",
    response_model=Envelope[TokenResponse],
    summary="Login with email and password",
)
@limiter.limit(RATE_LIMIT_AUTH_LOGIN)
def login(
    request: Request,
    data: UserLoginRequest,
    db: Annotated[Session, Depends(get_db)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> dict:
    return ok(_token_response(auth_service.login(db, data.email, data.password)))


@router.get(
    "/me",
    response_model=Envelope[UserResponse],
    summary="Current user profile",
)
def me(current_user: CurrentUser) -> dict:
    return ok(UserResponse.model_validate(current_user))
