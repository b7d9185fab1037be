# tests/conftest.py
import hmac
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from domain.entities.coupon import Coupon
from domain.entities.order import Order
from domain.entities.product import Product, ProductStatus
from domain.entities.user import Buyer, Caller
from domain.schemas.payment import GatewayIntent, IntentRequest
from infrastructure.external.file_storage import FileStorage
from infrastructure.external.razorpay_gateway import GatewayError, compute_signature
from services.invoice_renderer import InvoiceRenderer, SellerIdentity
from services.invoices import InvoiceService
from services.orders import OrderService
from services.payments import PaymentService
from services.stock import StockReservation

GATEWAY_SECRET = "test_secret"


class InMemoryProducts:
    def __init__(self):
        self.items: Dict[str, Product] = {}
        self.lock = threading.Lock()

    def add(self, name: str, price: str, stock: int, status: ProductStatus = ProductStatus.ACTIVE) -> Product:
        product = Product(id=str(ObjectId()), name=name, price=Decimal(price), stock=stock, status=status)
        self.items[product.id] = product
        return product

    def stock_of(self, product_id: str) -> int:
        return self.items[product_id].stock

    def find_product(self, product_id: str) -> Optional[Product]:
        product = self.items.get(product_id)
        return product.model_copy() if product else None

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        with self.lock:
            product = self.items.get(product_id)
            if product is None or product.stock < quantity:
                return False
            self.items[product_id] = product.model_copy(update={"stock": product.stock - quantity})
            return True

    def restore_stock(self, product_id: str, quantity: int) -> None:
        with self.lock:
            product = self.items[product_id]
            self.items[product_id] = product.model_copy(update={"stock": product.stock + quantity})


class InMemoryOrders:
    def __init__(self):
        self.items: Dict[str, Order] = {}
        self.fail_inserts = False
        self.lock = threading.Lock()

    def insert(self, order: Order) -> Order:
        if self.fail_inserts:
            raise PyMongoError("insert failed")
        stored = order.model_copy(update={"id": str(ObjectId())})
        self.items[stored.id] = stored
        return stored.model_copy(deep=True)

    def get(self, order_id: str) -> Optional[Order]:
        order = self.items.get(order_id)
        return order.model_copy(deep=True) if order else None

    def list_by_buyer(self, buyer_id: str) -> List[Order]:
        return sorted((o for o in self.items.values() if o.buyer_id == buyer_id),
                      key=lambda o: o.created_at, reverse=True)

    def list_all(self) -> List[Order]:
        return sorted(self.items.values(), key=lambda o: o.created_at, reverse=True)

    def update(self, order_id: str, expected_version: int, changes: Dict[str, Any]) -> Optional[Order]:
        with self.lock:
            current = self.items.get(order_id)
            if current is None or current.version != expected_version:
                return None
            data = {**current.model_dump(), **changes,
                    "version": current.version + 1, "updated_at": datetime.now(timezone.utc)}
            self.items[order_id] = Order(**data)
            return self.items[order_id].model_copy(deep=True)

    def increment_download_count(self, order_id: str) -> Optional[Order]:
        with self.lock:
            current = self.items.get(order_id)
            if current is None:
                return None
            invoice = current.invoice.model_copy(update={"download_count": current.invoice.download_count + 1})
            self.items[order_id] = current.model_copy(update={"invoice": invoice, "version": current.version + 1})
            return self.items[order_id].model_copy(deep=True)


class InMemoryUsers:
    def __init__(self):
        self.items: Dict[str, Buyer] = {}

    def find_user(self, user_id: str) -> Optional[Buyer]:
        return self.items.get(user_id)


class InMemoryCoupons:
    def __init__(self):
        self.items: Dict[str, Coupon] = {}

    def add(self, **fields) -> Coupon:
        fields.setdefault("expiry_date", datetime.now(timezone.utc) + timedelta(days=30))
        coupon = Coupon(**fields)
        self.items[coupon.code] = coupon
        return coupon

    def find_by_code(self, code: str) -> Optional[Coupon]:
        return self.items.get(code.strip().upper())

    def record_usage(self, code: str, user_id: str, max_usage: int) -> bool:
        coupon = self.items[code.strip().upper()]
        if coupon.used_count >= max_usage or user_id in coupon.used_by:
            return False
        self.items[coupon.code] = coupon.model_copy(
            update={"used_count": coupon.used_count + 1, "used_by": coupon.used_by + [user_id]})
        return True


class FakeGateway:
    def __init__(self, configured: bool = True, fail: bool = False):
        self.configured = configured
        self.fail = fail
        self.requests: List[IntentRequest] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def create_intent(self, request: IntentRequest) -> GatewayIntent:
        self.requests.append(request)
        if self.fail:
            raise GatewayError("connection refused")
        return GatewayIntent(gateway_order_id="order_Test123", amount=request.amount,
                             currency=request.currency, key_id="rzp_test_key")

    def verify_callback(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        expected = compute_signature(gateway_order_id, gateway_payment_id, GATEWAY_SECRET)
        return hmac.compare_digest(expected, signature)


class BrokenRenderer:
    def render(self, order, buyer, invoice_number, issued_at) -> bytes:
        raise RuntimeError("font missing")


@pytest.fixture
def seller():
    return SellerIdentity(
        shop_name="ShopEasy",
        legal_name="ShopEasy E-commerce Pvt. Ltd.",
        address="123 Digital Mall, Mumbai",
        gstin="27AABCS1429Q1Z",
        phone="+91 22 1234 5678",
        email="support@shopeasy.com",
        website="www.shopeasy.com",
    )


@pytest.fixture
def products():
    return InMemoryProducts()


@pytest.fixture
def orders():
    return InMemoryOrders()


@pytest.fixture
def users():
    return InMemoryUsers()


@pytest.fixture
def coupons():
    return InMemoryCoupons()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def storage(tmp_path):
    return FileStorage(str(tmp_path / "downloads"))


@pytest.fixture
def buyer(users):
    profile = Buyer(id=str(ObjectId()), name="Asha Rao", email="asha@example.com", phone="9876543210")
    users.items[profile.id] = profile
    return profile


@pytest.fixture
def caller(buyer):
    return Caller(id=buyer.id)


@pytest.fixture
def other_caller():
    return Caller(id=str(ObjectId()))


@pytest.fixture
def admin():
    return Caller(id=str(ObjectId()), roles=["admin"])


@pytest.fixture
def invoice_service(orders, users, storage, seller):
    return InvoiceService(orders, users, storage, InvoiceRenderer(seller), shop_name="ShopEasy")


@pytest.fixture
def make_service(orders, users, coupons, products, invoice_service):
    def factory(gateway=None, invoices=None) -> OrderService:
        return OrderService(
            orders=orders,
            users=users,
            coupons=coupons,
            payments=PaymentService(gateway or FakeGateway()),
            invoices=invoices or invoice_service,
            stock=StockReservation(products),
        )
    return factory


@pytest.fixture
def service(make_service, gateway):
    return make_service(gateway=gateway)


@pytest.fixture
def catalog(products):
    """Two products summing to 1100 for 3 + 1 units."""
    return products.add("Cotton Kurta", "300.00", 10), products.add("Steel Bottle", "200.00", 5)


@pytest.fixture
def address():
    return {
        "name": "Asha Rao",
        "address": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "postal_code": "411001",
        "phone": "9876543210",
    }


@pytest.fixture
def cod_payload(catalog, address):
    kurta, bottle = catalog
    return {
        "items": [{"product_id": kurta.id, "quantity": 3}, {"product_id": bottle.id, "quantity": 1}],
        "shipping_address": address,
        "payment_method": "COD",
    }
