"""Index declarations, applied idempotently at startup."""

from loguru import logger
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.database import Database

INDEXES: dict[str, list[IndexModel]] = {
    "users": [
        IndexModel([("email", ASCENDING)], unique=True),
    ],
    "merchants": [
        IndexModel([("email", ASCENDING)], unique=True),
        IndexModel([("merchantCode", ASCENDING)], unique=True, sparse=True),
    ],
    "categories": [
        IndexModel([("merchantId", ASCENDING), ("name", ASCENDING)], unique=True),
        IndexModel([("merchantId", ASCENDING), ("displayOrder", ASCENDING)]),
    ],
    "items": [
        IndexModel([("merchantId", ASCENDING), ("categoryId", ASCENDING)]),
        IndexModel([("merchantId", ASCENDING), ("isActive", ASCENDING)]),
        IndexModel([("merchantId", ASCENDING), ("displayOrder", ASCENDING)]),
        IndexModel([("merchantId", ASCENDING), ("sku", ASCENDING)], sparse=True),
        IndexModel([("merchantId", ASCENDING), ("barcode", ASCENDING)], sparse=True),
        IndexModel([("merchantId", ASCENDING), ("tags", ASCENDING)]),
    ],
    "receipts": [
        IndexModel([("userId", ASCENDING), ("transactionDate", DESCENDING)]),
        IndexModel([("merchantId", ASCENDING), ("transactionDate", DESCENDING)]),
    ],
    "recurringbills": [
        IndexModel([("userId", ASCENDING), ("status", ASCENDING)]),
        IndexModel([("status", ASCENDING), ("startDate", ASCENDING)]),
    ],
    "notifications": [
        IndexModel([("userId", ASCENDING), ("isRead", ASCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("userId", ASCENDING), ("type", ASCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("userId", ASCENDING), ("isDismissed", ASCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("idempotencyKey", ASCENDING)], unique=True, sparse=True),
        IndexModel([("sourceType", ASCENDING), ("sourceId", ASCENDING)]),
        IndexModel([("expiresAt", ASCENDING)], expireAfterSeconds=0),
    ],
}


def ensure_indexes(db: Database) -> None:
    for collection, models in INDEXES.items():
        names = db[collection].create_indexes(models)
        logger.debug(f"Indexes ensured on {collection}: {', '.join(names)}")
