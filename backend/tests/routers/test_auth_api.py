# tests/routers/test_auth_api.py
"""
Tests for authentication API endpoints.

Tests:
- POST /api/v1/auth/register
- POST /api/v1/auth/login
- GET /api/v1/auth/me
"""

from sqlalchemy import select

from app.models import Account, User
from app.services.auth import JWTHandler
from tests.conftest import TEST_PASSWORD, create_user

REGISTER_URL = "/api/v1/auth/register"
LOGIN_URL = "/api/v1/auth/login"
ME_URL = "/api/v1/auth/me"


def register_payload(**overrides) -> dict:
    payload = {
        "fullname": "Ayşe Yılmaz",
        "email": "ayse@example.com",
        "password": "long-enough-password",
    }
    payload.update(overrides)
    return payload


# =============================================================================
# REGISTER
# =============================================================================


class TestRegister:

    def test_register_returns_token(self, client, db):
        response = client.post(REGISTER_URL, json=register_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["token_type"] == "bearer"
        payload = JWTHandler.validate_access_token(body["data"]["access_token"])
        assert payload["email"] == "ayse@example.com"

    def test_register_creates_default_account(self, client, db):
        client.post(REGISTER_URL, json=register_payload())

        user = db.scalar(select(User).where(User.email == "ayse@example.com"))
        accounts = db.scalars(select(Account).where(Account.user_id == user.id)).all()
        assert [a.name for a in accounts] == ["Account"]

    def test_email_is_lowercased(self, client, db):
        client.post(REGISTER_URL, json=register_payload(email="Ayse@Example.COM"))

        assert db.scalar(select(User).where(User.email == "ayse@example.com")) is not None

    def test_duplicate_email(self, client, sample_user):
        response = client.post(REGISTER_URL, json=register_payload(email=sample_user.email))

        assert response.status_code == 409
        assert response.json()["error"] == "ConflictError"

    def test_duplicate_phone(self, client, db):
        create_user(db, email="first@example.com", phone="+905551234567")

        response = client.post(REGISTER_URL, json=register_payload(phone="+905551234567"))

        assert response.status_code == 409

    def test_short_password(self, client):
        response = client.post(REGISTER_URL, json=register_payload(password="short"))

        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_invalid_phone(self, client):
        response = client.post(REGISTER_URL, json=register_payload(phone="0555 123 45 67"))

        assert response.status_code == 422

    def test_invalid_email(self, client):
        response = client.post(REGISTER_URL, json=register_payload(email="not-an-email"))

        assert response.status_code == 422


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    def test_login_success(self, client, sample_user):
        response = client.post(LOGIN_URL, json={"email": sample_user.email, "password": TEST_PASSWORD})

        assert response.status_code == 200
        token = response.json()["data"]["access_token"]
        assert JWTHandler.validate_access_token(token)["sub"] == str(sample_user.id)

    def test_login_case_insensitive_email(self, client, sample_user):
        response = client.post(LOGIN_URL, json={"email": sample_user.email.upper(), "password": TEST_PASSWORD})

        assert response.status_code == 200

    def test_wrong_password(self, client, sample_user):
        response = client.post(LOGIN_URL, json={"email": sample_user.email, "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_unknown_email(self, client):
        response = client.post(LOGIN_URL, json={"email": "ghost@example.com", "password": TEST_PASSWORD})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


# =============================================================================
# ME
# =============================================================================


class TestMe:

    def test_me(self, client, sample_user, user_headers):
        response = client.get(ME_URL, headers=user_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == sample_user.id
        assert data["email"] == sample_user.email
        assert data["role"] == "user"
        assert data["is_phone_verified"] is False
        assert "hashed_password" not in data

    def test_no_token(self, client):
        response = client.get(ME_URL)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client):
        response = client.get(ME_URL, headers={"Authorization": "Bearer not.a.token"})

        assert response.status_code == 401

    def test_token_for_deleted_user(self, client, db, sample_user, user_headers):
        db.delete(sample_user)
        db.commit()

        response = client.get(ME_URL, headers=user_headers)

        assert response.status_code == 401
