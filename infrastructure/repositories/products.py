# infrastructure/repositories/products.py
import logging
from typing import Optional

from bson import ObjectId
from pymongo.database import Database

from core.utils.db import from_document
from domain.entities.product import Product

logger = logging.getLogger(__name__)


class ProductRepository:
    """Read access to the catalog plus the two stock mutations checkout needs."""

    def __init__(self, db: Database):
        self.collection = db.products

    def find_product(self, product_id: str) -> Optional[Product]:
        if not ObjectId.is_valid(product_id):
            return None
        data = from_document(self.collection.find_one({"_id": ObjectId(product_id)}))
        return Product(**data) if data is not None else None

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        # the filter and the $inc run as one document update, so stock cannot drop below zero
        result = self.collection.update_one(
            {"_id": ObjectId(product_id), "stock": {"$gte": quantity}},
            {"$inc": {"stock": -quantity}},
        )
        if result.modified_count != 1:
            logger.warning(f"Stock decrement of {quantity} refused for product {product_id}")
            return False
        logger.debug(f"Stock of product {product_id} decremented by {quantity}")
        return True

    def restore_stock(self, product_id: str, quantity: int) -> None:
        self.collection.update_one({"_id": ObjectId(product_id)}, {"$inc": {"stock": quantity}})
        logger.info(f"Stock of product {product_id} restored by {quantity}")
