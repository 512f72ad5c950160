"""Tests for NotificationService."""

from unittest.mock import ANY, AsyncMock

import pytest
from bson import ObjectId
from fastapi import HTTPException

from greenreceipt.notifications.repository import NotificationRepository
from greenreceipt.notifications.service import NotificationService

pytestmark = pytest.mark.asyncio


class TestNotificationService:
    """Tests for NotificationService class."""

    @pytest.fixture
    def repository(self):
        return AsyncMock(spec=NotificationRepository)

    @pytest.fixture
    def service(self, repository):
        return NotificationService(repository)

    async def test_list_notifications(self, service, repository, customer_id):
        repository.list_for_user.return_value = ([{"_id": ObjectId(), "title": "Rent due"}], 21)
        repository.count_unread.return_value = 4

        page = await service.list_notifications(customer_id, page=2, limit=20, notification_type="bill_reminder")

        repository.list_for_user.assert_called_once_with(
            ObjectId(customer_id), skip=20, limit=20, notification_type="bill_reminder", unread_only=False
        )
        assert page["total"] == 21
        assert page["hasMore"] is False
        assert page["unreadCount"] == 4
        assert "timeAgo" in page["notifications"][0]

    async def test_unread_count(self, service, repository, customer_id):
        repository.count_unread.return_value = 3

        assert await service.unread_count(customer_id) == 3

    async def test_mark_read(self, service, repository, customer_id):
        notification = {"_id": ObjectId(), "userId": ObjectId(customer_id), "isRead": False}
        repository.get.return_value = notification
        repository.update.return_value = {**notification, "isRead": True}

        view = await service.mark_read(customer_id, str(notification["_id"]))

        repository.update.assert_called_once_with(
            notification["userId"], notification["_id"], {"isRead": True, "readAt": ANY}
        )
        assert view["isRead"] is True

    async def test_mark_read_twice_keeps_read_at(self, service, repository, customer_id):
        repository.get.return_value = {"_id": ObjectId(), "userId": ObjectId(customer_id), "isRead": True}

        await service.mark_read(customer_id, str(ObjectId()))

        repository.update.assert_not_called()

    async def test_mark_read_unknown(self, service, repository, customer_id):
        repository.get.return_value = None

        with pytest.raises(HTTPException) as exc_info:
            await service.mark_read(customer_id, str(ObjectId()))

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Notification not found"

    async def test_mark_all_read_by_type(self, service, repository, customer_id):
        repository.update_many.return_value = 5

        count = await service.mark_all_read(customer_id, "budget")

        query, fields = repository.update_many.call_args.args
        assert query == {"userId": ObjectId(customer_id), "isRead": False, "type": "budget"}
        assert fields["isRead"] is True
        assert count == 5

    async def test_dismiss(self, service, repository, customer_id):
        notification = {"_id": ObjectId(), "userId": ObjectId(customer_id)}
        repository.get.return_value = notification

        await service.dismiss(customer_id, str(notification["_id"]))

        repository.update.assert_called_once_with(
            notification["userId"], notification["_id"], {"isDismissed": True, "dismissedAt": ANY}
        )

    async def test_dismiss_all(self, service, repository, customer_id):
        repository.update_many.return_value = 2

        assert await service.dismiss_all(customer_id) == 2
        query = repository.update_many.call_args.args[0]
        assert query == {"userId": ObjectId(customer_id), "isDismissed": False}

    async def test_preferences_are_a_copy(self, service):
        service.preferences()["promos"] = True

        assert service.preferences()["promos"] is False
