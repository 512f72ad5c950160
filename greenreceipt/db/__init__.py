"""MongoDB access: client lifecycle, indexes and id helpers."""

from .client import create_mongo_client, get_database, lifespan
from .ids import is_object_id, maybe_object_id, serialize_document, to_object_id
from .indexes import INDEXES, ensure_indexes

__all__ = [
    "create_mongo_client",
    "get_database",
    "lifespan",
    "INDEXES",
    "ensure_indexes",
    "is_object_id",
    "maybe_object_id",
    "serialize_document",
    "to_object_id",
]
