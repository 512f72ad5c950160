"""Tests for auth API routes."""

from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from greenreceipt.api.app import create_app
from greenreceipt.auth.dependencies import get_auth_service, get_jwt_handler
from greenreceipt.auth.schemas import RefreshResponse, SessionResponse, TokenResponse
from greenreceipt.auth.service import AuthService, IssuedTokens

PASSWORD = "Password123!"


@pytest.fixture
def mock_auth_service():
    """Create a mock AuthService."""
    return AsyncMock(spec=AuthService)


@pytest.fixture
def app(mock_auth_service, jwt_handler):
    """Create the API with the auth service mocked out."""
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_auth_service] = lambda: mock_auth_service
    app.dependency_overrides[get_jwt_handler] = lambda: jwt_handler
    return app


@pytest.fixture
def client(app):
    """Create a test client."""
    return TestClient(app)


def _issued(role: str = "customer") -> IssuedTokens:
    body = TokenResponse(
        access_token="access-token",
        expires_in=900,
        refresh_expires_in=21 * 24 * 3600,
        role=role,
        user={"id": "abc", "email": "asha@example.com"},
    )
    return IssuedTokens(body, "refresh-token")


class TestSignupEndpoints:
    """Tests for POST /api/auth/signup/*."""

    def test_signup_invalid_email(self, client):
        response = client.post(
            "/api/auth/signup/customer",
            json={"name": "Asha", "email": "not-an-email", "password": PASSWORD},
        )
        assert response.status_code == 422

    def test_signup_short_password(self, client):
        response = client.post(
            "/api/auth/signup/customer",
            json={"name": "Asha", "email": "asha@example.com", "password": "12345"},
        )
        assert response.status_code == 422

    def test_signup_customer_sets_refresh_cookie(self, client, mock_auth_service):
        """Signup returns the access token and puts the refresh token in a cookie."""
        mock_auth_service.signup_customer.return_value = _issued()

        response = client.post(
            "/api/auth/signup/customer",
            json={"name": "Asha", "email": "asha@example.com", "password": PASSWORD, "confirmPassword": PASSWORD},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["accessToken"] == "access-token"
        assert data["tokenType"] == "bearer"
        assert "refreshToken" not in data
        cookie = response.headers["set-cookie"]
        assert "refreshToken=refresh-token" in cookie
        assert "httponly" in cookie.lower()

    def test_signup_merchant_requires_shop_name(self, client):
        response = client.post(
            "/api/auth/signup/merchant",
            json={"email": "shop@example.com", "password": PASSWORD},
        )
        assert response.status_code == 422

    def test_signup_rate_limited(self, client, mock_auth_service):
        """The sixth signup from one client inside a minute is refused."""
        mock_auth_service.signup_customer.side_effect = HTTPException(status_code=409, detail="Email already in use")
        body = {"name": "Asha", "email": "asha@example.com", "password": PASSWORD}

        statuses = [client.post("/api/auth/signup/customer", json=body).status_code for _ in range(6)]

        assert statuses[:5] == [409] * 5
        assert statuses[5] == 429


class TestLoginEndpoint:
    """Tests for POST /api/auth/login."""

    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={})
        assert response.status_code == 422

    def test_login_unknown_role(self, client):
        response = client.post(
            "/api/auth/login",
            json={"email": "asha@example.com", "password": PASSWORD, "role": "admin"},
        )
        assert response.status_code == 422

    def test_login_success(self, client, mock_auth_service):
        mock_auth_service.login.return_value = _issued("merchant")

        response = client.post(
            "/api/auth/login",
            json={"email": "shop@example.com", "password": PASSWORD, "role": "merchant"},
        )

        assert response.status_code == 200
        assert response.json()["role"] == "merchant"
        request = mock_auth_service.login.call_args.args[0]
        assert request.role == "merchant"

    def test_login_rate_limited(self, client, mock_auth_service):
        mock_auth_service.login.side_effect = HTTPException(status_code=401, detail="Invalid credentials")
        body = {"email": "asha@example.com", "password": "wrong"}

        for _ in range(10):
            assert client.post("/api/auth/login", json=body).status_code == 401

        response = client.post("/api/auth/login", json=body)
        assert response.status_code == 429
        assert "Retry-After" in response.headers


class TestRefreshEndpoint:
    """Tests for POST /api/auth/refresh."""

    def test_refresh_from_cookie(self, client, mock_auth_service):
        mock_auth_service.refresh.return_value = IssuedTokens(
            RefreshResponse(access_token="new-access", expires_in=900, refresh_expires_in=100, role="customer"),
            "new-refresh",
        )
        client.cookies.set("refreshToken", "old-refresh")

        response = client.post("/api/auth/refresh")

        assert response.status_code == 200
        assert response.json()["accessToken"] == "new-access"
        mock_auth_service.refresh.assert_called_once_with("old-refresh")
        assert "refreshToken=new-refresh" in response.headers["set-cookie"]

    def test_refresh_from_body(self, client, mock_auth_service):
        mock_auth_service.refresh.return_value = IssuedTokens(
            RefreshResponse(access_token="new-access", expires_in=900, refresh_expires_in=100, role="customer"),
            "new-refresh",
        )

        response = client.post("/api/auth/refresh", json={"refreshToken": "body-token"})

        assert response.status_code == 200
        mock_auth_service.refresh.assert_called_once_with("body-token")

    def test_refresh_rejected_clears_cookie(self, client, mock_auth_service):
        mock_auth_service.refresh.side_effect = HTTPException(
            status_code=401, detail={"message": "Invalid session", "code": "INVALID_SESSION"}
        )
        client.cookies.set("refreshToken", "stolen")

        response = client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_SESSION"
        assert "refreshToken=" in response.headers["set-cookie"]
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_refresh_foreign_origin(self, client, mock_auth_service):
        response = client.post("/api/auth/refresh", headers={"Origin": "https://evil.example"})

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "FORBIDDEN_ORIGIN"
        mock_auth_service.refresh.assert_not_called()


class TestProtectedEndpoints:
    """Tests for endpoints that need an access token."""

    def test_session_without_token(self, client):
        response = client.get("/api/auth/session")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "TOKEN_MISSING"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_session_with_invalid_token(self, client):
        response = client.get("/api/auth/session", headers={"Authorization": "Bearer nonsense"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "TOKEN_INVALID"

    def test_session_message_follows_accept_language(self, client):
        response = client.get("/api/auth/session", headers={"Accept-Language": "hi-IN,hi;q=0.9,en;q=0.8"})

        assert response.json()["detail"]["message"] == "प्राधिकरण टोकन नहीं मिला"

    def test_session_with_token(self, client, mock_auth_service, bearer, customer_id):
        mock_auth_service.get_session.return_value = SessionResponse(
            valid=True, role="customer", user={"id": customer_id}
        )

        response = client.get("/api/auth/session", headers=bearer(customer_id, "customer"))

        assert response.status_code == 200
        assert response.json()["valid"] is True
        mock_auth_service.get_session.assert_called_once_with("customer", customer_id)

    def test_update_me_validates_by_role(self, client, mock_auth_service, bearer, merchant_id):
        """Merchant profile fields are validated with the merchant model."""
        response = client.patch(
            "/api/auth/me",
            json={"brandColor": "green"},
            headers=bearer(merchant_id, "merchant"),
        )

        assert response.status_code == 422
        mock_auth_service.update_profile.assert_not_called()

    def test_update_me_merchant(self, client, mock_auth_service, bearer, merchant_id):
        mock_auth_service.update_profile.return_value = {"id": merchant_id, "shopName": "Chai Point"}

        response = client.patch(
            "/api/auth/me",
            json={"shopName": "Chai Point", "currency": "inr"},
            headers=bearer(merchant_id, "merchant"),
        )

        assert response.status_code == 200
        role, account_id, update = mock_auth_service.update_profile.call_args.args
        assert (role, account_id) == ("merchant", merchant_id)
        assert update.currency == "INR"

    def test_change_password_clears_cookie(self, client, mock_auth_service, bearer, customer_id):
        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "NewPass123!"},
            headers=bearer(customer_id, "customer"),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_logout_is_idempotent(self, client, mock_auth_service):
        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        mock_auth_service.logout.assert_called_once_with(None)
