"""ObjectId helpers shared by the repositories."""

from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from greenreceipt.exceptions import InvalidIdError


def is_object_id(value: Any) -> bool:
    """True for ObjectId instances and 24-hex strings."""
    if isinstance(value, ObjectId):
        return True
    if not isinstance(value, str) or len(value) != 24:
        return False
    return ObjectId.is_valid(value)


def to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not is_object_id(value):
        raise InvalidIdError(f"Invalid id: {value!r}")
    try:
        return ObjectId(value)
    except InvalidId as e:
        raise InvalidIdError(f"Invalid id: {value!r}") from e


def maybe_object_id(value: Any) -> Optional[ObjectId]:
    """Like ``to_object_id`` but returns None for empty or malformed input."""
    if value is None or value == "":
        return None
    return to_object_id(value) if is_object_id(value) else None


def serialize_document(value: Any) -> Any:
    """
    Make a Mongo document JSON friendly.

    ``_id`` is exposed as ``id`` and every ObjectId (nested included) becomes
    its hex string. Datetimes are left for FastAPI's encoder.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if key == "_id":
                result["id"] = serialize_document(item)
            else:
                result[key] = serialize_document(item)
        return result
    return value
