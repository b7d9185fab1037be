# infrastructure/repositories/orders.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from core.utils.db import encode_value, from_document, to_document
from domain.entities.order import Order

logger = logging.getLogger(__name__)


class OrderRepository:
    """MongoDB persistence for the order aggregate (`orders` collection)."""

    def __init__(self, db: Database):
        self.collection = db.orders

    @staticmethod
    def _to_entity(document: Optional[Dict[str, Any]]) -> Optional[Order]:
        data = from_document(document)
        return Order(**data) if data is not None else None

    def insert(self, order: Order) -> Order:
        document = to_document(order.model_dump())
        result = self.collection.insert_one(document)
        order_id = str(result.inserted_id)
        logger.debug(f"Inserted order document {order_id}")
        return order.model_copy(update={"id": order_id})

    def get(self, order_id: str) -> Optional[Order]:
        if not ObjectId.is_valid(order_id):
            return None
        return self._to_entity(self.collection.find_one({"_id": ObjectId(order_id)}))

    def list_by_buyer(self, buyer_id: str) -> List[Order]:
        cursor = self.collection.find({"buyer_id": buyer_id}).sort("created_at", DESCENDING)
        return [self._to_entity(document) for document in cursor]

    def list_all(self) -> List[Order]:
        cursor = self.collection.find({}).sort("created_at", DESCENDING)
        return [self._to_entity(document) for document in cursor]

    def update(self, order_id: str, expected_version: int, changes: Dict[str, Any]) -> Optional[Order]:
        fields = encode_value(dict(changes))
        fields["updated_at"] = datetime.now(timezone.utc)
        document = self.collection.find_one_and_update(
            {"_id": ObjectId(order_id), "version": expected_version},
            {"$set": fields, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            logger.warning(f"Version check failed for order {order_id} (expected version {expected_version})")
        return self._to_entity(document)

    def increment_download_count(self, order_id: str) -> Optional[Order]:
        document = self.collection.find_one_and_update(
            {"_id": ObjectId(order_id)},
            {"$inc": {"invoice.download_count": 1, "version": 1},
             "$set": {"updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_entity(document)
