# domain/entities/coupon.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(BaseModel):
    """Entity representing a discount coupon."""
    id: Optional[str] = Field(None, description="Unique identifier of the coupon as a string")
    code: str = Field(..., description="Coupon code, stored upper case")
    description: str = Field("", description="Human readable description")
    discount_type: DiscountType = Field(DiscountType.PERCENTAGE, description="percentage or fixed")
    discount_value: Decimal = Field(..., ge=0, description="Percent or flat amount")
    min_order_amount: Decimal = Field(Decimal("0"), ge=0, description="Minimum subtotal for the coupon to apply")
    max_discount: Optional[Decimal] = Field(None, ge=0, description="Cap for percentage discounts")
    expiry_date: datetime = Field(..., description="Expiry time (UTC)")
    max_usage: int = Field(1, ge=1, description="Total number of redemptions allowed")
    used_count: int = Field(0, ge=0, description="Redemptions so far")
    used_by: List[str] = Field(default_factory=list, description="IDs of users who redeemed the coupon")
    is_active: bool = Field(True, description="Manually enabled flag")

    @field_validator("code")
    def normalize_code(cls, value):
        if not value or not value.strip():
            raise ValueError("Coupon code must be a non-empty string")
        return value.strip().upper()

    @field_validator("expiry_date")
    def ensure_aware(cls, value):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def check_validity(self, user_id: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
        """Return the reason the coupon cannot be redeemed by `user_id`, or None if it can."""
        now = now or datetime.now(timezone.utc)
        if not self.is_active:
            return "Coupon is not active"
        if self.expiry_date < now:
            return "Coupon has expired"
        if self.used_count >= self.max_usage:
            return "Coupon usage limit reached"
        if user_id and user_id in self.used_by:
            return "You have already used this coupon"
        return None

    def calculate_discount(self, order_amount: Decimal) -> Decimal:
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = order_amount * self.discount_value / Decimal(100)
            if self.max_discount is not None and discount > self.max_discount:
                discount = self.max_discount
        else:
            discount = self.discount_value
        return discount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
