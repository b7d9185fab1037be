# services/pricing.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Protocol

from core.errors import ValidationError
from domain.entities.coupon import Coupon
from domain.entities.order import OrderAmounts

TAX_RATE = Decimal("0.18")
FREE_SHIPPING_THRESHOLD = Decimal("999")
SHIPPING_FEE = Decimal("50")

CENT = Decimal("0.01")


class PricedItem(Protocol):
    quantity: int
    unit_price: Decimal


def to_money(value) -> Decimal:
    """Round to paise, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_amounts(items: Iterable[PricedItem], coupon: Optional[Coupon] = None) -> OrderAmounts:
    """Compute the money breakdown for a checkout.

    Args:
        items: Line items whose `unit_price` was resolved from the catalog.
        coupon: Coupon already checked for validity, or None.

    Returns:
        OrderAmounts: subtotal, 18% tax, shipping (free above 999), discount and grand total.
            The discount is capped at subtotal + tax + shipping, so the grand total is never negative.

    Raises:
        ValidationError: If any quantity is not positive or any price is negative.
    """
    subtotal = Decimal("0")
    for item in items:
        if item.quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {item.quantity}", fields=["quantity"])
        if item.unit_price < 0:
            raise ValidationError(f"Price must be non-negative, got {item.unit_price}", fields=["unit_price"])
        subtotal += item.unit_price * item.quantity

    subtotal = to_money(subtotal)
    tax = to_money(subtotal * TAX_RATE)
    shipping = Decimal("0.00") if subtotal > FREE_SHIPPING_THRESHOLD else to_money(SHIPPING_FEE)
    discount = coupon.calculate_discount(subtotal) if coupon is not None else Decimal("0.00")
    # a discount can wipe out the bill but never turn it into a refund
    discount = min(discount, subtotal + tax + shipping)

    return OrderAmounts(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=discount,
        grand_total=subtotal + tax + shipping - discount,
    )


def to_minor_units(amount: Decimal) -> int:
    """Amount in paise, as payment gateways expect it."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
