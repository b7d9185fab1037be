# services/stock.py
import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from pydantic import BaseModel

from core.errors import InsufficientStockError, ProductInactiveError, ProductNotFoundError
from domain.entities.order import LineItem
from domain.ports import ProductRepositoryPort
from domain.schemas.order import OrderItemIn

logger = logging.getLogger(__name__)


class ReservedItem(BaseModel):
    """A checked order line together with the catalog snapshot it will be sold at."""
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    image: Optional[str] = None

    def to_line_item(self) -> LineItem:
        return LineItem(**self.model_dump())


class StockReservation:
    """Availability checks and stock decrements for a single checkout."""

    def __init__(self, products: ProductRepositoryPort):
        self.products = products

    def check(self, items: Sequence[OrderItemIn]) -> List[ReservedItem]:
        """Validate every item against the catalog without touching stock.

        Raises:
            ProductNotFoundError: If a product does not exist.
            ProductInactiveError: If a product is retired.
            InsufficientStockError: If a product has fewer units than requested.
        """
        checked = []
        for item in items:
            product = self.products.find_product(item.product_id)
            if product is None:
                raise ProductNotFoundError(f"Product with ID {item.product_id} not found")
            if not product.is_active:
                raise ProductInactiveError(f"Product {product.name} is not available")
            if product.stock < item.quantity:
                raise InsufficientStockError(f"Insufficient stock for {product.name}. Available: {product.stock}")
            checked.append(ReservedItem(
                product_id=item.product_id,
                name=product.name,
                quantity=item.quantity,
                unit_price=product.price,
                image=product.image,
            ))
        logger.debug(f"Stock check passed for {len(checked)} item(s)")
        return checked

    def reserve(self, items: Sequence[ReservedItem]) -> List[ReservedItem]:
        """Decrement stock for every checked item, all or nothing.

        A product that sold out between `check` and `reserve` causes every decrement already
        applied for this checkout to be restored.

        Raises:
            InsufficientStockError: If a conditional decrement is refused.
        """
        reserved: List[ReservedItem] = []
        for item in items:
            if not self.products.decrement_stock(item.product_id, item.quantity):
                logger.warning(f"Lost stock race on product {item.product_id}, releasing {len(reserved)} item(s)")
                self.release(reserved)
                raise InsufficientStockError(f"Insufficient stock for {item.name}")
            reserved.append(item)
        logger.info(f"Reserved stock for {len(reserved)} item(s)")
        return reserved

    def release(self, items: Sequence[ReservedItem]) -> None:
        """Give reserved units back to the catalog. Failures are logged per item."""
        for item in items:
            try:
                self.products.restore_stock(item.product_id, item.quantity)
            except Exception as e:
                logger.error(f"Failed to restore {item.quantity} unit(s) of product {item.product_id}: {str(e)}",
                             exc_info=True)
