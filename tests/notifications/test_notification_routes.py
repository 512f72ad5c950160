"""Tests for notification routes."""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from greenreceipt.api.app import create_app
from greenreceipt.auth.dependencies import get_jwt_handler
from greenreceipt.notifications.dependencies import get_notification_service
from greenreceipt.notifications.service import NotificationService


@pytest.fixture
def mock_notification_service():
    return AsyncMock(spec=NotificationService)


@pytest.fixture
def client(mock_notification_service, jwt_handler):
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_notification_service] = lambda: mock_notification_service
    app.dependency_overrides[get_jwt_handler] = lambda: jwt_handler
    return TestClient(app)


class TestNotificationAccess:
    def test_requires_token(self, client):
        assert client.get("/api/notifications/count").status_code == 401

    def test_merchant_forbidden(self, client, bearer, merchant_id, mock_notification_service):
        response = client.get("/api/notifications", headers=bearer(merchant_id, "merchant"))

        assert response.status_code == 403
        mock_notification_service.list_notifications.assert_not_called()


class TestNotificationEndpoints:
    def test_list_notifications(self, client, bearer, customer_id, mock_notification_service):
        mock_notification_service.list_notifications.return_value = {
            "notifications": [{"id": "n1", "timeAgo": "Just now"}],
            "page": 1,
            "limit": 10,
            "total": 1,
            "hasMore": False,
            "unreadCount": 1,
        }

        response = client.get(
            "/api/notifications",
            params={"limit": 10, "type": "bill_overdue", "unreadOnly": "true"},
            headers=bearer(customer_id, "customer"),
        )

        assert response.status_code == 200
        assert response.json()["unreadCount"] == 1
        mock_notification_service.list_notifications.assert_called_once_with(
            customer_id, 1, 10, notification_type="bill_overdue", unread_only=True
        )

    def test_list_unknown_type(self, client, bearer, customer_id):
        response = client.get(
            "/api/notifications", params={"type": "news"}, headers=bearer(customer_id, "customer")
        )
        assert response.status_code == 422

    def test_count(self, client, bearer, customer_id, mock_notification_service):
        mock_notification_service.unread_count.return_value = 7

        response = client.get("/api/notifications/count", headers=bearer(customer_id, "customer"))

        assert response.json() == {"count": 7}

    def test_preferences(self, client, bearer, customer_id, mock_notification_service):
        mock_notification_service.preferences.return_value = {"inApp": True}

        response = client.get("/api/notifications/preferences", headers=bearer(customer_id, "customer"))

        assert response.json() == {"preferences": {"inApp": True}}

    def test_mark_all_read_without_body(self, client, bearer, customer_id, mock_notification_service):
        mock_notification_service.mark_all_read.return_value = 3

        response = client.post("/api/notifications/mark-all-read", headers=bearer(customer_id, "customer"))

        assert response.json() == {"message": "All notifications marked as read", "count": 3}
        mock_notification_service.mark_all_read.assert_called_once_with(customer_id, None)

    def test_mark_all_read_by_type(self, client, bearer, customer_id, mock_notification_service):
        mock_notification_service.mark_all_read.return_value = 1

        client.post(
            "/api/notifications/mark-all-read", json={"type": "budget"}, headers=bearer(customer_id, "customer")
        )

        mock_notification_service.mark_all_read.assert_called_once_with(customer_id, "budget")

    def test_dismiss_all(self, client, bearer, customer_id, mock_notification_service):
        mock_notification_service.dismiss_all.return_value = 2

        response = client.post(
            "/api/notifications/dismiss-all", json={"type": "promo"}, headers=bearer(customer_id, "customer")
        )

        assert response.json() == {"message": "All notifications dismissed", "count": 2}
        mock_notification_service.dismiss_all.assert_called_once_with(customer_id, "promo")

    def test_mark_read(self, client, bearer, customer_id, mock_notification_service):
        notification_id = str(ObjectId())
        mock_notification_service.mark_read.return_value = {"id": notification_id, "isRead": True}

        response = client.patch(
            f"/api/notifications/{notification_id}/read", headers=bearer(customer_id, "customer")
        )

        assert response.json() == {
            "message": "Notification marked as read",
            "notification": {"id": notification_id, "isRead": True},
        }
        mock_notification_service.mark_read.assert_called_once_with(customer_id, notification_id)

    def test_dismiss(self, client, bearer, customer_id, mock_notification_service):
        notification_id = str(ObjectId())

        response = client.delete(f"/api/notifications/{notification_id}", headers=bearer(customer_id, "customer"))

        assert response.json() == {"message": "Notification dismissed"}
        mock_notification_service.dismiss.assert_called_once_with(customer_id, notification_id)
