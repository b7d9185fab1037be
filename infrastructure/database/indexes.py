# infrastructure/database/indexes.py
import logging
from typing import Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import OperationFailure

from infrastructure.database.client import get_db

logger = logging.getLogger(__name__)


def create_indexes(db: Optional[Database] = None) -> None:
    """Create indexes for the collections the order core reads and writes."""
    db = db if db is not None else get_db()
    try:
        # Orders collection
        db.orders.create_index([("buyer_id", ASCENDING), ("created_at", DESCENDING)])
        db.orders.create_index([("order_status", ASCENDING), ("created_at", DESCENDING)])
        db.orders.create_index([("created_at", DESCENDING)])
        db.orders.create_index([("gateway_order_id", ASCENDING)], sparse=True)
        db.orders.create_index([("invoice.invoice_number", ASCENDING)], sparse=True)

        # Products collection
        db.products.create_index([("status", ASCENDING)])

        # Coupons collection
        db.coupons.create_index([("code", ASCENDING)], unique=True)
        db.coupons.create_index([("expiry_date", ASCENDING)])

        logger.info("Indexes created successfully")
    except OperationFailure as of:
        logger.error(f"Failed to create indexes: {str(of)}", exc_info=True)
        raise
