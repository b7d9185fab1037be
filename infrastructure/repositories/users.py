# infrastructure/repositories/users.py
from typing import Optional

from bson import ObjectId
from pymongo.database import Database

from core.utils.db import from_document
from domain.entities.user import Buyer


class UserRepository:
    def __init__(self, db: Database):
        self.collection = db.users

    def find_user(self, user_id: str) -> Optional[Buyer]:
        if not ObjectId.is_valid(user_id):
            return None
        data = from_document(self.collection.find_one(
            {"_id": ObjectId(user_id)}, {"name": 1, "email": 1, "phone": 1, "roles": 1, "role": 1}))
        if data is None:
            return None
        # storefront accounts carry a single `role` string
        if "roles" not in data and data.get("role"):
            data["roles"] = [data.pop("role")]
        return Buyer(**data)
