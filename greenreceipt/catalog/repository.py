"""Category and item repository."""

import re
from datetime import datetime, timezone
from typing import Optional

import anyio
from bson import ObjectId
from loguru import logger
from pymongo import ASCENDING, ReturnDocument, UpdateOne
from pymongo.database import Database

SORT_BY_DISPLAY_ORDER = [("displayOrder", ASCENDING), ("name", ASCENDING)]


def _exact_name(name: str) -> dict:
    return {"$regex": f"^{re.escape(name)}$", "$options": "i"}


class CatalogRepository:
    """Repository for a merchant's categories and items.

    Every query is scoped by ``merchantId``; callers pass ObjectIds.
    """

    def __init__(self, db: Database):
        self.db = db
        self.categories = db["categories"]
        self.items = db["items"]

    # =========================================================================
    # Categories
    # =========================================================================

    async def list_categories(self, merchant_id: ObjectId) -> list[dict]:
        """Categories ordered for display, each with its ``itemCount``."""

        def _list() -> list[dict]:
            categories = list(self.categories.find({"merchantId": merchant_id}).sort(SORT_BY_DISPLAY_ORDER))
            counts = {
                row["_id"]: row["count"]
                for row in self.items.aggregate([
                    {"$match": {"merchantId": merchant_id}},
                    {"$group": {"_id": "$categoryId", "count": {"$sum": 1}}},
                ])
            }
            for category in categories:
                category["itemCount"] = counts.get(category["_id"], 0)
            return categories

        return await anyio.to_thread.run_sync(_list)

    async def get_category(self, merchant_id: ObjectId, category_id: ObjectId) -> Optional[dict]:
        return await anyio.to_thread.run_sync(
            lambda: self.categories.find_one({"_id": category_id, "merchantId": merchant_id})
        )

    async def find_category_by_name(
        self, merchant_id: ObjectId, name: str, exclude_id: Optional[ObjectId] = None
    ) -> Optional[dict]:
        query: dict = {"merchantId": merchant_id, "name": _exact_name(name)}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await anyio.to_thread.run_sync(lambda: self.categories.find_one(query))

    async def create_category(self, document: dict) -> dict:
        now = datetime.now(timezone.utc)
        document = {**document, "createdAt": now, "updatedAt": now}
        result = await anyio.to_thread.run_sync(lambda: self.categories.insert_one(document))
        document["_id"] = result.inserted_id
        logger.info(f"Category created: {result.inserted_id} merchant={document['merchantId']}")
        return document

    async def update_category(self, merchant_id: ObjectId, category_id: ObjectId, fields: dict) -> Optional[dict]:
        update = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        return await anyio.to_thread.run_sync(
            lambda: self.categories.find_one_and_update(
                {"_id": category_id, "merchantId": merchant_id},
                update,
                return_document=ReturnDocument.AFTER,
            )
        )

    async def delete_category(self, merchant_id: ObjectId, category_id: ObjectId) -> bool:
        result = await anyio.to_thread.run_sync(
            lambda: self.categories.delete_one({"_id": category_id, "merchantId": merchant_id})
        )
        return result.deleted_count > 0

    async def count_owned_categories(self, merchant_id: ObjectId, category_ids: list[ObjectId]) -> int:
        return await anyio.to_thread.run_sync(
            lambda: self.categories.count_documents({"merchantId": merchant_id, "_id": {"$in": category_ids}})
        )

    async def count_items_in_category(self, merchant_id: ObjectId, category_id: ObjectId) -> int:
        return await anyio.to_thread.run_sync(
            lambda: self.items.count_documents({"merchantId": merchant_id, "categoryId": category_id})
        )

    async def move_items(self, merchant_id: ObjectId, from_category: ObjectId, to_category: ObjectId) -> int:
        result = await anyio.to_thread.run_sync(
            lambda: self.items.update_many(
                {"merchantId": merchant_id, "categoryId": from_category},
                {"$set": {"categoryId": to_category, "updatedAt": datetime.now(timezone.utc)}},
            )
        )
        logger.info(f"Moved {result.modified_count} items {from_category} -> {to_category}")
        return result.modified_count

    # =========================================================================
    # Items
    # =========================================================================

    async def list_items(
        self,
        merchant_id: ObjectId,
        category_id: Optional[ObjectId] = None,
        search: Optional[str] = None,
        is_available: Optional[bool] = None,
        is_active: Optional[bool] = True,
        tag: Optional[str] = None,
    ) -> list[dict]:
        query: dict = {"merchantId": merchant_id}
        if category_id is not None:
            query["categoryId"] = category_id
        if search:
            query["name"] = {"$regex": re.escape(search), "$options": "i"}
        if is_available is not None:
            query["isAvailable"] = is_available
        if is_active is not None:
            query["isActive"] = is_active
        if tag:
            query["tags"] = tag.strip().lower()

        return await anyio.to_thread.run_sync(
            lambda: list(self.items.find(query).sort(SORT_BY_DISPLAY_ORDER))
        )

    async def get_item(self, merchant_id: ObjectId, item_id: ObjectId) -> Optional[dict]:
        return await anyio.to_thread.run_sync(
            lambda: self.items.find_one({"_id": item_id, "merchantId": merchant_id})
        )

    async def list_active_items(self, merchant_id: ObjectId) -> list[dict]:
        """Items eligible for matching against receipt lines."""
        return await anyio.to_thread.run_sync(
            lambda: list(self.items.find({"merchantId": merchant_id, "isActive": True}))
        )

    async def create_items(self, documents: list[dict]) -> list[dict]:
        """Insert one or many items in a single ordered write."""
        now = datetime.now(timezone.utc)
        documents = [{**doc, "createdAt": now, "updatedAt": now} for doc in documents]
        result = await anyio.to_thread.run_sync(lambda: self.items.insert_many(documents))
        for doc, inserted_id in zip(documents, result.inserted_ids):
            doc["_id"] = inserted_id
        logger.info(f"Items created: count={len(documents)}")
        return documents

    async def update_item(self, merchant_id: ObjectId, item_id: ObjectId, fields: dict) -> Optional[dict]:
        update = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        return await anyio.to_thread.run_sync(
            lambda: self.items.find_one_and_update(
                {"_id": item_id, "merchantId": merchant_id},
                update,
                return_document=ReturnDocument.AFTER,
            )
        )

    async def delete_item(self, merchant_id: ObjectId, item_id: ObjectId) -> bool:
        result = await anyio.to_thread.run_sync(
            lambda: self.items.delete_one({"_id": item_id, "merchantId": merchant_id})
        )
        return result.deleted_count > 0

    async def count_owned_items(self, merchant_id: ObjectId, item_ids: list[ObjectId]) -> int:
        return await anyio.to_thread.run_sync(
            lambda: self.items.count_documents({"merchantId": merchant_id, "_id": {"$in": item_ids}})
        )

    # =========================================================================
    # Ordering
    # =========================================================================

    async def set_display_order(self, collection: str, merchant_id: ObjectId, ordered_ids: list[ObjectId]) -> None:
        """Write ``displayOrder`` = list position for each id."""
        target = self.categories if collection == "categories" else self.items
        now = datetime.now(timezone.utc)
        operations = [
            UpdateOne(
                {"_id": doc_id, "merchantId": merchant_id},
                {"$set": {"displayOrder": position, "updatedAt": now}},
            )
            for position, doc_id in enumerate(ordered_ids)
        ]
        await anyio.to_thread.run_sync(lambda: target.bulk_write(operations, ordered=False))
