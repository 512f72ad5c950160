"""Recurring bill repository."""

from datetime import datetime, timezone
from typing import Optional

import anyio
from bson import ObjectId
from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

NEWEST_FIRST = [("createdAt", DESCENDING)]
NOT_DELETED = {"$ne": "deleted"}


class BillRepository:
    """Repository for the ``recurringbills`` collection, scoped by ``userId``."""

    def __init__(self, db: Database):
        self.db = db
        self.bills = db["recurringbills"]

    async def create(self, document: dict) -> dict:
        now = datetime.now(timezone.utc)
        document = {**document, "createdAt": now, "updatedAt": now}
        result = await anyio.to_thread.run_sync(lambda: self.bills.insert_one(document))
        document["_id"] = result.inserted_id
        logger.info(f"Bill created: {result.inserted_id} user={document['userId']}")
        return document

    async def get(self, user_id: ObjectId, bill_id: ObjectId) -> Optional[dict]:
        return await anyio.to_thread.run_sync(lambda: self.bills.find_one({"_id": bill_id, "userId": user_id}))

    async def list_page(
        self, query: dict, skip: int = 0, limit: int = 50
    ) -> tuple[list[dict], int]:
        def _page() -> tuple[list[dict], int]:
            bills = list(self.bills.find(query).sort(NEWEST_FIRST).skip(skip).limit(limit))
            return bills, self.bills.count_documents(query)

        return await anyio.to_thread.run_sync(_page)

    async def list_active(self, user_id: ObjectId) -> list[dict]:
        return await anyio.to_thread.run_sync(
            lambda: list(self.bills.find({"userId": user_id, "status": "active"}))
        )

    async def update(
        self, user_id: ObjectId, bill_id: ObjectId, fields: dict, include_deleted: bool = True
    ) -> Optional[dict]:
        """Set ``fields``; with ``include_deleted=False`` a deleted bill is not matched."""
        query: dict = {"_id": bill_id, "userId": user_id}
        if not include_deleted:
            query["status"] = NOT_DELETED
        update = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        return await anyio.to_thread.run_sync(
            lambda: self.bills.find_one_and_update(query, update, return_document=ReturnDocument.AFTER)
        )

    async def delete(self, user_id: ObjectId, bill_id: ObjectId) -> bool:
        result = await anyio.to_thread.run_sync(lambda: self.bills.delete_one({"_id": bill_id, "userId": user_id}))
        return result.deleted_count > 0

    async def category_totals(self, user_id: ObjectId) -> list[dict]:
        """Bill count and amount per category, most used first."""
        pipeline = [
            {"$match": {"userId": user_id, "status": NOT_DELETED}},
            {"$group": {"_id": "$category", "count": {"$sum": 1}, "totalAmount": {"$sum": "$amount"}}},
            {"$sort": {"count": -1}},
        ]
        rows = await anyio.to_thread.run_sync(lambda: list(self.bills.aggregate(pipeline)))
        return [
            {"name": row["_id"], "count": row["count"], "totalAmount": round(row.get("totalAmount") or 0, 2)}
            for row in rows
        ]
