# infrastructure/repositories/coupons.py
import logging
from typing import Optional

from pymongo.database import Database

from core.utils.db import from_document
from domain.entities.coupon import Coupon

logger = logging.getLogger(__name__)


class CouponRepository:
    def __init__(self, db: Database):
        self.collection = db.coupons

    def find_by_code(self, code: str) -> Optional[Coupon]:
        data = from_document(self.collection.find_one({"code": code.strip().upper()}))
        return Coupon(**data) if data is not None else None

    def record_usage(self, code: str, user_id: str, max_usage: int) -> bool:
        """Count one redemption by `user_id`, unless the coupon is used up or already used by them.

        The limits are part of the update filter, so concurrent checkouts cannot overshoot them.
        """
        result = self.collection.update_one(
            {
                "code": code.strip().upper(),
                "used_by": {"$ne": user_id},
                "$or": [{"used_count": {"$lt": max_usage}}, {"used_count": {"$exists": False}}],
            },
            {"$inc": {"used_count": 1}, "$addToSet": {"used_by": user_id}},
        )
        if result.modified_count != 1:
            logger.warning(f"Usage of coupon {code} by user {user_id} refused: limit reached or already redeemed")
            return False
        logger.info(f"Recorded usage of coupon {code} by user {user_id}")
        return True
