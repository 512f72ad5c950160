"""Notification repository."""

from datetime import datetime, timezone
from typing import Optional

import anyio
from bson import ObjectId
from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

NEWEST_FIRST = [("createdAt", DESCENDING)]


class NotificationRepository:
    """Repository for the ``notifications`` collection.

    Notifications belong to a customer (``userId``). Dismissed ones stay in
    the collection until their ``expiresAt`` TTL removes them.
    """

    def __init__(self, db: Database):
        self.db = db
        self.notifications = db["notifications"]

    async def list_for_user(
        self,
        user_id: ObjectId,
        skip: int = 0,
        limit: int = 20,
        notification_type: Optional[str] = None,
        unread_only: bool = False,
    ) -> tuple[list[dict], int]:
        query: dict = {"userId": user_id, "isDismissed": False}
        if notification_type:
            query["type"] = notification_type
        if unread_only:
            query["isRead"] = False

        def _page() -> tuple[list[dict], int]:
            notifications = list(self.notifications.find(query).sort(NEWEST_FIRST).skip(skip).limit(limit))
            return notifications, self.notifications.count_documents(query)

        return await anyio.to_thread.run_sync(_page)

    async def count_unread(self, user_id: ObjectId) -> int:
        return await anyio.to_thread.run_sync(
            lambda: self.notifications.count_documents({"userId": user_id, "isRead": False, "isDismissed": False})
        )

    async def get(self, user_id: ObjectId, notification_id: ObjectId) -> Optional[dict]:
        return await anyio.to_thread.run_sync(
            lambda: self.notifications.find_one({"_id": notification_id, "userId": user_id})
        )

    async def update(self, user_id: ObjectId, notification_id: ObjectId, fields: dict) -> Optional[dict]:
        update = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        return await anyio.to_thread.run_sync(
            lambda: self.notifications.find_one_and_update(
                {"_id": notification_id, "userId": user_id},
                update,
                return_document=ReturnDocument.AFTER,
            )
        )

    async def update_many(self, query: dict, fields: dict) -> int:
        """Set ``fields`` on every match; returns the number changed."""
        now = datetime.now(timezone.utc)
        result = await anyio.to_thread.run_sync(
            lambda: self.notifications.update_many(query, {"$set": {**fields, "updatedAt": now}})
        )
        return result.modified_count

    async def delete_for_source(self, source_type: str, source_id: ObjectId) -> int:
        result = await anyio.to_thread.run_sync(
            lambda: self.notifications.delete_many({"sourceType": source_type, "sourceId": source_id})
        )
        if result.deleted_count:
            logger.info(f"Deleted {result.deleted_count} notifications for {source_type} {source_id}")
        return result.deleted_count
