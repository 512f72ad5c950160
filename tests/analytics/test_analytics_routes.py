"""Tests for analytics routes."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from greenreceipt.analytics.dependencies import get_analytics_service
from greenreceipt.analytics.service import AnalyticsService
from greenreceipt.api.app import create_app
from greenreceipt.auth.dependencies import get_jwt_handler


@pytest.fixture
def mock_analytics_service():
    service = AsyncMock(spec=AnalyticsService)
    service.customer.return_value = {"summary": {}}
    service.merchant.return_value = {"summary": {}}
    return service


@pytest.fixture
def client(mock_analytics_service, jwt_handler):
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_analytics_service] = lambda: mock_analytics_service
    app.dependency_overrides[get_jwt_handler] = lambda: jwt_handler
    return TestClient(app)


class TestAnalyticsEndpoints:
    def test_customer_analytics(self, client, bearer, customer_id, mock_analytics_service):
        response = client.get("/api/analytics/customer", headers=bearer(customer_id, "customer"))

        assert response.status_code == 200
        mock_analytics_service.customer.assert_called_once_with(customer_id, refresh=False)

    def test_refresh_flag(self, client, bearer, merchant_id, mock_analytics_service):
        response = client.get(
            "/api/analytics/merchant", params={"refresh": "true"}, headers=bearer(merchant_id, "merchant")
        )

        assert response.status_code == 200
        mock_analytics_service.merchant.assert_called_once_with(merchant_id, refresh=True)

    def test_role_guard(self, client, bearer, customer_id, mock_analytics_service):
        response = client.get("/api/analytics/merchant", headers=bearer(customer_id, "customer"))

        assert response.status_code == 403
        mock_analytics_service.merchant.assert_not_called()

    def test_requires_token(self, client):
        assert client.get("/api/analytics/customer").status_code == 401
