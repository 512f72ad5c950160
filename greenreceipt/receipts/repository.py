"""Receipt repository."""

from datetime import datetime, timezone
from typing import Optional

import anyio
from bson import ObjectId
from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

NEWEST_FIRST = [("transactionDate", DESCENDING), ("_id", DESCENDING)]

# Receipts that count towards analytics.
STATS_FILTER = {"excludeFromStats": {"$ne": True}, "status": {"$ne": "void"}}


class ReceiptRepository:
    """Repository for the ``receipts`` collection.

    Owner filters use ``userId`` for customers and ``merchantId`` for
    merchants; callers pass ObjectIds.
    """

    def __init__(self, db: Database):
        self.db = db
        self.receipts = db["receipts"]

    async def create(self, document: dict) -> dict:
        now = datetime.now(timezone.utc)
        document = {**document, "createdAt": now, "updatedAt": now}
        result = await anyio.to_thread.run_sync(lambda: self.receipts.insert_one(document))
        document["_id"] = result.inserted_id
        logger.info(
            f"Receipt created: {result.inserted_id} "
            f"merchant={document.get('merchantId')} user={document.get('userId')}"
        )
        return document

    async def get(self, receipt_id: ObjectId) -> Optional[dict]:
        return await anyio.to_thread.run_sync(lambda: self.receipts.find_one({"_id": receipt_id}))

    async def list_for_owner(
        self, owner_field: str, owner_id: ObjectId, skip: int = 0, limit: int = 50
    ) -> tuple[list[dict], int]:
        """One page of an owner's receipts, newest first, with the total count."""
        query = {owner_field: owner_id}

        def _page() -> tuple[list[dict], int]:
            receipts = list(self.receipts.find(query).sort(NEWEST_FIRST).skip(skip).limit(limit))
            return receipts, self.receipts.count_documents(query)

        return await anyio.to_thread.run_sync(_page)

    async def list_for_stats(self, owner_field: str, owner_id: ObjectId) -> list[dict]:
        query = {owner_field: owner_id, **STATS_FILTER}
        return await anyio.to_thread.run_sync(
            lambda: list(self.receipts.find(query).sort(NEWEST_FIRST))
        )

    async def update(self, receipt_id: ObjectId, fields: dict) -> Optional[dict]:
        update = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        return await anyio.to_thread.run_sync(
            lambda: self.receipts.find_one_and_update(
                {"_id": receipt_id}, update, return_document=ReturnDocument.AFTER
            )
        )

    async def claim(self, receipt_id: ObjectId, user_id: ObjectId, customer_snapshot: dict) -> Optional[dict]:
        """Assign an unclaimed receipt; None if someone got there first."""
        update = {
            "$set": {
                "userId": user_id,
                "customerSnapshot": customer_snapshot,
                "updatedAt": datetime.now(timezone.utc),
            }
        }
        return await anyio.to_thread.run_sync(
            lambda: self.receipts.find_one_and_update(
                {"_id": receipt_id, "userId": None},
                update,
                return_document=ReturnDocument.AFTER,
            )
        )

    async def delete(self, receipt_id: ObjectId) -> bool:
        result = await anyio.to_thread.run_sync(lambda: self.receipts.delete_one({"_id": receipt_id}))
        return result.deleted_count > 0
