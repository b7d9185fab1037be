# domain/ports.py
"""Interfaces the order core depends on.

Concrete MongoDB, Razorpay and filesystem implementations live under
`infrastructure/`; tests substitute in-memory versions.
"""
from typing import Any, BinaryIO, Dict, List, Optional, Protocol

from domain.entities.coupon import Coupon
from domain.entities.order import Order
from domain.entities.product import Product
from domain.entities.user import Buyer
from domain.schemas.payment import GatewayIntent, IntentRequest


class ProductRepositoryPort(Protocol):
    def find_product(self, product_id: str) -> Optional[Product]: ...

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically subtract `quantity` if at least that much is in stock; False otherwise."""
        ...

    def restore_stock(self, product_id: str, quantity: int) -> None: ...


class OrderRepositoryPort(Protocol):
    def insert(self, order: Order) -> Order: ...

    def get(self, order_id: str) -> Optional[Order]: ...

    def list_by_buyer(self, buyer_id: str) -> List[Order]: ...

    def list_all(self) -> List[Order]: ...

    def update(self, order_id: str, expected_version: int, changes: Dict[str, Any]) -> Optional[Order]:
        """Apply `changes` only if the stored version still equals `expected_version`.

        Returns the updated order, or None when the version no longer matches.
        """
        ...

    def increment_download_count(self, order_id: str) -> Optional[Order]: ...


class UserRepositoryPort(Protocol):
    def find_user(self, user_id: str) -> Optional[Buyer]: ...


class CouponRepositoryPort(Protocol):
    def find_by_code(self, code: str) -> Optional[Coupon]: ...

    def record_usage(self, code: str, user_id: str, max_usage: int) -> bool:
        """Count a redemption only while under `max_usage` and not yet used by `user_id`; False otherwise."""
        ...


class PaymentGatewayPort(Protocol):
    @property
    def is_configured(self) -> bool: ...

    def create_intent(self, request: IntentRequest) -> GatewayIntent: ...

    def verify_callback(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool: ...


class DocumentStorePort(Protocol):
    def save(self, key: str, content: bytes) -> str: ...

    def exists(self, key: Optional[str]) -> bool: ...

    def open(self, key: str) -> BinaryIO: ...

    def delete(self, key: str) -> None: ...