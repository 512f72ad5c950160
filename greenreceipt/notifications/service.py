"""Notification service - a customer's in-app inbox."""

from typing import Optional

from fastapi import HTTPException, status

from greenreceipt.db import to_object_id
from greenreceipt.i18n import Language, translate
from greenreceipt.utils.timezone import now_utc

from .models import DEFAULT_PREFERENCES, notification_view
from .repository import NotificationRepository


class NotificationService:
    """Service class for notification operations."""

    def __init__(self, repository: NotificationRepository, language: Language = Language.ENGLISH):
        self.repo = repository
        self.language = language

    def _view(self, notification: dict) -> dict:
        return notification_view(notification, language=self.language)

    async def _require_notification(self, user_id: str, notification_id: str) -> dict:
        notification = await self.repo.get(to_object_id(user_id), to_object_id(notification_id))
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=translate("notification_not_found", self.language),
            )
        return notification

    async def list_notifications(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        notification_type: Optional[str] = None,
        unread_only: bool = False,
    ) -> dict:
        """One page of undismissed notifications plus the unread badge count."""
        owner = to_object_id(user_id)
        skip = (page - 1) * limit
        notifications, total = await self.repo.list_for_user(
            owner, skip=skip, limit=limit, notification_type=notification_type, unread_only=unread_only
        )
        return {
            "notifications": [self._view(notification) for notification in notifications],
            "page": page,
            "limit": limit,
            "total": total,
            "hasMore": skip + len(notifications) < total,
            "unreadCount": await self.repo.count_unread(owner),
        }

    async def unread_count(self, user_id: str) -> int:
        return await self.repo.count_unread(to_object_id(user_id))

    async def mark_read(self, user_id: str, notification_id: str) -> dict:
        notification = await self._require_notification(user_id, notification_id)
        if not notification.get("isRead"):
            notification = await self.repo.update(
                notification["userId"], notification["_id"], {"isRead": True, "readAt": now_utc()}
            ) or notification
        return self._view(notification)

    async def mark_all_read(self, user_id: str, notification_type: Optional[str] = None) -> int:
        query: dict = {"userId": to_object_id(user_id), "isRead": False}
        if notification_type:
            query["type"] = notification_type
        return await self.repo.update_many(query, {"isRead": True, "readAt": now_utc()})

    async def dismiss(self, user_id: str, notification_id: str) -> None:
        notification = await self._require_notification(user_id, notification_id)
        await self.repo.update(
            notification["userId"], notification["_id"], {"isDismissed": True, "dismissedAt": now_utc()}
        )

    async def dismiss_all(self, user_id: str, notification_type: Optional[str] = None) -> int:
        query: dict = {"userId": to_object_id(user_id), "isDismissed": False}
        if notification_type:
            query["type"] = notification_type
        return await self.repo.update_many(query, {"isDismissed": True, "dismissedAt": now_utc()})

    @staticmethod
    def preferences() -> dict:
        return dict(DEFAULT_PREFERENCES)
