# domain/schemas/order.py
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from domain.entities.order import Order, OrderStatus, PaymentMethod
from domain.schemas.payment import GatewayIntent

# Spellings the storefront client has sent over time for each payment method.
PAYMENT_METHOD_ALIASES = {
    "cod": PaymentMethod.CASH_ON_DELIVERY,
    "cash_on_delivery": PaymentMethod.CASH_ON_DELIVERY,
    "cashondelivery": PaymentMethod.CASH_ON_DELIVERY,
    "razorpay": PaymentMethod.GATEWAY_REDIRECT,
    "gateway": PaymentMethod.GATEWAY_REDIRECT,
    "gatewayredirect": PaymentMethod.GATEWAY_REDIRECT,
    "online": PaymentMethod.GATEWAY_REDIRECT,
}

REQUIRED_ADDRESS_FIELDS = ["name", "address", "city", "postal_code", "phone"]


class OrderItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., validation_alias=AliasChoices("product_id", "productId", "product"),
                            description="ID of the product as a string")
    quantity: int = Field(..., description="Units requested")

    @field_validator("product_id", mode="before")
    def validate_id_format(cls, value):
        if isinstance(value, dict):
            value = value.get("_id") or value.get("id")
        if not isinstance(value, str) or not value.strip():
            raise ValueError("ID must be a non-empty string")
        return value.strip()


class ShippingAddressIn(BaseModel):
    """Address exactly as submitted; completeness is checked by the order service so that
    every missing field can be reported at once."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, validation_alias=AliasChoices("name", "fullName", "full_name"))
    address: Optional[str] = Field(None)
    city: Optional[str] = Field(None)
    state: Optional[str] = Field(None)
    country: Optional[str] = Field(None)
    postal_code: Optional[str] = Field(None, validation_alias=AliasChoices("postal_code", "postalCode", "zip"))
    phone: Optional[str] = Field(None, validation_alias=AliasChoices("phone", "phoneNumber", "phone_number"))

    @field_validator("postal_code", "phone", mode="before")
    def coerce_numbers(cls, value):
        if isinstance(value, int):
            return str(value)
        return value


class OrderCreate(BaseModel):
    """Canonical checkout payload."""
    model_config = ConfigDict(populate_by_name=True)

    items: List[OrderItemIn] = Field(default_factory=list, validation_alias=AliasChoices("items", "orderItems"))
    shipping_address: Optional[ShippingAddressIn] = Field(
        None, validation_alias=AliasChoices("shipping_address", "shippingAddress"))
    payment_method: PaymentMethod = Field(
        PaymentMethod.CASH_ON_DELIVERY, validation_alias=AliasChoices("payment_method", "paymentMethod"))
    notes: Optional[str] = Field(None, description="Optional notes for the order")
    coupon_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("coupon_code", "couponCode", "code"))

    @field_validator("payment_method", mode="before")
    def map_payment_method(cls, value):
        if value is None or value == "":
            return PaymentMethod.CASH_ON_DELIVERY
        if isinstance(value, str):
            key = value.strip().replace("-", "_").replace(" ", "").lower()
            if key in PAYMENT_METHOD_ALIASES:
                return PAYMENT_METHOD_ALIASES[key]
        return value

    @field_validator("notes", "coupon_code")
    def blank_to_none(cls, value):
        if value is not None and not value.strip():
            return None
        return value


class OrderStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_status: OrderStatus = Field(..., validation_alias=AliasChoices("order_status", "orderStatus", "status"))
    tracking_number: Optional[str] = Field(None, validation_alias=AliasChoices("tracking_number", "trackingNumber"))
    courier_name: Optional[str] = Field(None, validation_alias=AliasChoices("courier_name", "courierName"))
    admin_notes: Optional[str] = Field(None, validation_alias=AliasChoices("admin_notes", "adminNotes"))

    @field_validator("order_status", mode="before")
    def lower_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class PaymentVerification(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gateway_order_id: str = Field(..., validation_alias=AliasChoices("gateway_order_id", "razorpay_order_id"))
    gateway_payment_id: str = Field(..., validation_alias=AliasChoices("gateway_payment_id", "razorpay_payment_id"))
    signature: str = Field(..., validation_alias=AliasChoices("signature", "razorpay_signature"))

    @field_validator("gateway_order_id", "gateway_payment_id", "signature")
    def validate_not_blank(cls, value):
        if not value.strip():
            raise ValueError("Field must be a non-empty string")
        return value.strip()


class MarkPaidRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_id: Optional[str] = Field(None, validation_alias=AliasChoices("payment_id", "paymentId"))


class OrderCreated(BaseModel):
    """Result of a successful checkout."""
    order: Order
    gateway_intent: Optional[GatewayIntent] = None

