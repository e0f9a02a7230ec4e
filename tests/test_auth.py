"""
Tests for User Authentication

Tests the authentication system:
- Registration (email/password)
- Login (JWT access token)
- Protected endpoints (/me)
- Security helpers (hashing, token types)
"""

from datetime import timedelta

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreview.models.user import User
from bookreview.services.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
    verify_token_type,
)
from tests.conftest import TEST_PASSWORD, get_auth_header


class TestUserRegistration:
    """Tests for POST /api/v1/auth/register"""

    def test_register_success(self, client: TestClient, db_session: Session):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "email": "NewUser@Example.com",
                "name": "New User",
                "password": "SecurePass123",
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "newuser@example.com"
        assert data["name"] == "New User"
        assert data["role"] == "user"
        assert data["is_active"] is True
        assert "password" not in data
        assert "hashed_password" not in data

        user = db_session.execute(
            select(User).where(User.email == "newuser@example.com")
        ).scalar_one()
        assert verify_password("SecurePass123", user.hashed_password)

    def test_register_duplicate_email(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "email": sample_user.email,
                "name": "Copycat",
                "password": "SecurePass123",
            },
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_register_cannot_choose_admin_role(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "email": "sneaky@example.com",
                "name": "Sneaky",
                "password": "SecurePass123",
                "role": "admin",
            },
        )

        assert response.json()["role"] == "user"

    def test_register_weak_password(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "weak@example.com", "name": "Weak", "password": "password"},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_register_invalid_email(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "not-an-email", "name": "Bad", "password": "SecurePass123"},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestUserLogin:
    """Tests for POST /api/v1/auth/login"""

    def test_login_success(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": sample_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0
        assert data["user"]["id"] == sample_user.id

        payload = decode_token(data["access_token"])
        assert payload["sub"] == str(sample_user.id)
        assert payload["type"] == "access"

    def test_login_wrong_password(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": sample_user.email, "password": "WrongPass123"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_unknown_email(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "nobody@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive_user(
        self, client: TestClient, db_session: Session, sample_user: User
    ):
        sample_user.is_active = False
        db_session.commit()

        response = client.post(
            "/api/v1/auth/login",
            data={"username": sample_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestCurrentUser:
    """Tests for GET /api/v1/auth/me"""

    def test_get_me(self, client: TestClient, sample_user: User, auth_headers: dict):
        response = client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["email"] == sample_user.email

    def test_get_me_no_token(self, client: TestClient):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_get_me_invalid_token(self, client: TestClient):
        response = client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_get_me_expired_token(self, client: TestClient, sample_user: User):
        token = create_access_token(
            {"sub": str(sample_user.id)}, expires_delta=timedelta(minutes=-1)
        )

        response = client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_get_me_deleted_user(
        self, client: TestClient, db_session: Session, sample_user: User
    ):
        headers = get_auth_header(sample_user)
        db_session.delete(sample_user)
        db_session.commit()

        response = client.get("/api/v1/auth/me", headers=headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_get_me_inactive_user(
        self, client: TestClient, db_session: Session, sample_user: User, auth_headers: dict
    ):
        sample_user.is_active = False
        db_session.commit()

        response = client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestSecurityHelpers:

    def test_hash_and_verify(self):
        hashed = hash_password("SecurePass123")

        assert hashed != "SecurePass123"
        assert verify_password("SecurePass123", hashed)
        assert not verify_password("WrongPass123", hashed)

    def test_verify_token_type_mismatch(self):
        token = create_access_token({"sub": "1"})

        assert verify_token_type(token, "access")["sub"] == "1"
        assert verify_token_type(token, "refresh") is None

    def test_decode_garbage(self):
        assert decode_token("garbage") is None
