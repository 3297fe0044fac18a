"""
Tests for resolving the caller from bearer tokens and cookies.
"""

from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.core.auth import CurrentSuperuser, CurrentUser, principal_from_claims
from tests.fixtures.auth import DEFAULT_ADMIN_ID, DEFAULT_USER_ID, create_test_jwt


@pytest.fixture
def client():
    app = FastAPI()

    @app.get("/me")
    async def me(user: CurrentUser):
        return {"user_id": str(user.user_id), "platform_admin": user.is_platform_admin}

    @app.get("/ops")
    async def ops(user: CurrentSuperuser):
        return {"ok": True}

    return TestClient(app)


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestPrincipalFromClaims:
    def test_regular_user(self):
        principal = principal_from_claims({"sub": DEFAULT_USER_ID, "email": "a@b.c"})

        assert principal.user_id == UUID(DEFAULT_USER_ID)
        assert principal.is_platform_admin is False

    @pytest.mark.parametrize(
        "claims",
        [{"is_superuser": True}, {"user_type": "PLATFORM"}],
    )
    def test_platform_admin_claims(self, claims):
        principal = principal_from_claims({"sub": DEFAULT_ADMIN_ID, "email": "a@b.c", **claims})

        assert principal.is_platform_admin is True

    @pytest.mark.parametrize(
        "claims",
        [
            {"email": "a@b.c"},
            {"sub": "not-a-uuid", "email": "a@b.c"},
            {"sub": DEFAULT_USER_ID},
        ],
    )
    def test_unusable_claims(self, claims):
        assert principal_from_claims(claims) is None


class TestCurrentUser:
    def test_bearer_token(self, client):
        response = client.get("/me", headers=bearer(create_test_jwt()))

        assert response.status_code == 200
        assert response.json() == {"user_id": DEFAULT_USER_ID, "platform_admin": False}

    def test_cookie_token(self, client):
        client.cookies.set("access_token", create_test_jwt())

        response = client.get("/me")

        assert response.status_code == 200

    def test_anonymous(self, client):
        assert client.get("/me").status_code == 401

    def test_refresh_token_rejected(self, client):
        response = client.get("/me", headers=bearer(create_test_jwt(token_type="refresh")))

        assert response.status_code == 401


class TestCurrentSuperuser:
    def test_platform_admin(self, client):
        response = client.get("/ops", headers=bearer(create_test_jwt(platform_admin=True)))

        assert response.status_code == 200

    def test_regular_user_forbidden(self, client):
        response = client.get("/ops", headers=bearer(create_test_jwt()))

        assert response.status_code == 403
