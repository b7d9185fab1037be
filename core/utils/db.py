# core/utils/db.py
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.decimal128 import Decimal128

logger = logging.getLogger(__name__)


def encode_value(value: Any) -> Any:
    """Convert a python value into something BSON can store without losing money precision."""
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [encode_value(item) for item in value]
    return value


def decode_value(value: Any) -> Any:
    """Reverse of encode_value for values read back from MongoDB."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value


def to_document(data: Dict[str, Any]) -> Dict[str, Any]:
    """Prepare an entity dump for insertion: the string `id` becomes the ObjectId `_id`."""
    document = encode_value({key: value for key, value in data.items() if key != "id"})
    if data.get("id"):
        document["_id"] = ObjectId(data["id"])
    return document


def from_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Turn a raw MongoDB document into entity keyword arguments."""
    if document is None:
        return None
    data = decode_value(document)
    if "_id" in data:
        data["id"] = data.pop("_id")
    return data

