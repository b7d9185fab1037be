# tests/test_repositories.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import mongomock
import pytest
from bson import ObjectId
from bson.decimal128 import Decimal128

from domain.entities.order import LineItem, Order, OrderAmounts, OrderStatus, ShippingAddress
from domain.entities.product import ProductStatus
from infrastructure.database.indexes import create_indexes
from infrastructure.repositories.coupons import CouponRepository
from infrastructure.repositories.orders import OrderRepository
from infrastructure.repositories.products import ProductRepository
from infrastructure.repositories.users import UserRepository


@pytest.fixture
def db():
    return mongomock.MongoClient().db


def new_order(buyer_id: str, created_at: datetime = None) -> Order:
    return Order(
        buyer_id=buyer_id,
        line_items=[LineItem(product_id=str(ObjectId()), name="Mug", quantity=2, unit_price=Decimal("150.50"))],
        amounts=OrderAmounts(subtotal=Decimal("301.00"), tax=Decimal("54.18"), shipping=Decimal("50.00"),
                             grand_total=Decimal("405.18")),
        shipping_address=ShippingAddress(name="Asha", address="12 MG Road", city="Pune", postal_code="411001",
                                         phone="9876543210"),
        created_at=created_at or datetime.now(timezone.utc),
    )


def test_products(db):
    product_id = db.products.insert_one({"name": "Mug", "price": Decimal128("150.50"), "stock": 5,
                                         "isActive": True}).inserted_id
    repo = ProductRepository(db)

    product = repo.find_product(str(product_id))
    assert product.price == Decimal("150.50")
    assert product.status == ProductStatus.ACTIVE
    assert repo.find_product("bogus") is None

    assert repo.decrement_stock(str(product_id), 3)
    assert not repo.decrement_stock(str(product_id), 3)
    assert db.products.find_one({"_id": product_id})["stock"] == 2

    repo.restore_stock(str(product_id), 3)
    assert db.products.find_one({"_id": product_id})["stock"] == 5


def test_order_round_trip_keeps_money_exact(db):
    repo = OrderRepository(db)
    order = repo.insert(new_order(str(ObjectId())))

    stored = db.orders.find_one({"_id": ObjectId(order.id)})
    assert isinstance(stored["amounts"]["grand_total"], Decimal128)
    assert stored["payment_method"] == "COD"

    loaded = repo.get(order.id)
    assert loaded.amounts.grand_total == Decimal("405.18")
    assert loaded.line_items[0].unit_price == Decimal("150.50")
    assert repo.get("not-an-id") is None
    assert repo.get(str(ObjectId())) is None


def test_order_update_checks_version(db):
    repo = OrderRepository(db)
    order = repo.insert(new_order(str(ObjectId())))

    updated = repo.update(order.id, 1, {"order_status": OrderStatus.SHIPPED, "tracking_number": "T1"})
    assert updated.version == 2
    assert updated.order_status == OrderStatus.SHIPPED

    assert repo.update(order.id, 1, {"order_status": OrderStatus.CANCELLED}) is None
    assert repo.get(order.id).order_status == OrderStatus.SHIPPED


def test_download_count(db):
    repo = OrderRepository(db)
    order = repo.insert(new_order(str(ObjectId())))

    updated = repo.increment_download_count(order.id)

    assert updated.invoice.download_count == 1
    assert updated.version == 2


def test_order_listing_is_newest_first(db):
    repo = OrderRepository(db)
    buyer_id = str(ObjectId())
    now = datetime.now(timezone.utc)
    old = repo.insert(new_order(buyer_id, now - timedelta(days=2)))
    new = repo.insert(new_order(buyer_id, now))
    other = repo.insert(new_order(str(ObjectId()), now - timedelta(days=1)))

    assert [o.id for o in repo.list_by_buyer(buyer_id)] == [new.id, old.id]
    assert [o.id for o in repo.list_all()] == [new.id, other.id, old.id]


def test_coupons(db):
    db.coupons.insert_one({"code": "SAVE10", "discount_type": "percentage", "discount_value": Decimal128("10"),
                           "expiry_date": datetime.now(timezone.utc) + timedelta(days=1), "max_usage": 5})
    repo = CouponRepository(db)

    coupon = repo.find_by_code(" save10 ")
    assert coupon.discount_value == Decimal("10")

    assert repo.record_usage("save10", "u1", coupon.max_usage)
    assert not repo.record_usage("SAVE10", "u1", coupon.max_usage)
    stored = db.coupons.find_one({"code": "SAVE10"})
    assert stored["used_count"] == 1
    assert stored["used_by"] == ["u1"]


def test_coupon_usage_stops_at_the_limit(db):
    db.coupons.insert_one({"code": "DUO", "discount_value": Decimal128("50"), "discount_type": "fixed",
                           "expiry_date": datetime.now(timezone.utc) + timedelta(days=1), "max_usage": 2,
                           "used_count": 1, "used_by": ["u1"]})
    repo = CouponRepository(db)

    assert repo.record_usage("DUO", "u2", 2)
    assert not repo.record_usage("DUO", "u3", 2)

    stored = db.coupons.find_one({"code": "DUO"})
    assert stored["used_count"] == 2
    assert stored["used_by"] == ["u1", "u2"]


def test_users_map_single_role(db):
    user_id = db.users.insert_one({"name": "Asha", "email": "asha@example.com", "role": "admin",
                                   "password": "hash"}).inserted_id
    buyer = UserRepository(db).find_user(str(user_id))

    assert buyer.roles == ["admin"]
    assert buyer.email == "asha@example.com"
    assert UserRepository(db).find_user("bogus") is None


def test_indexes(db):
    create_indexes(db)
    assert "code_1" in db.coupons.index_information()
    assert "buyer_id_1_created_at_-1" in db.orders.index_information()
