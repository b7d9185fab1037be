# domain/entities/order.py
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class PaymentMethod(str, Enum):
    """How the buyer pays for the order."""
    CASH_ON_DELIVERY = "COD"
    GATEWAY_REDIRECT = "Razorpay"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class LineItem(BaseModel):
    """Snapshot of a catalog product taken when the order was placed."""
    product_id: str = Field(..., description="ID of the ordered product as a string")
    name: str = Field(..., description="Product name at purchase time")
    quantity: int = Field(..., ge=1, description="Units ordered, at least one")
    unit_price: Decimal = Field(..., ge=0, description="Unit price at purchase time")
    image: Optional[str] = Field(None, description="Product image at purchase time")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class OrderAmounts(BaseModel):
    """Money breakdown computed once at checkout."""
    subtotal: Decimal = Field(..., description="Sum of unit price times quantity")
    tax: Decimal = Field(..., description="Tax charged on the subtotal")
    shipping: Decimal = Field(..., description="Shipping fee")
    discount: Decimal = Field(Decimal("0.00"), description="Coupon discount")
    grand_total: Decimal = Field(..., description="subtotal + tax + shipping - discount")


class ShippingAddress(BaseModel):
    name: str = Field(..., description="Recipient name")
    address: str = Field(..., description="Street address")
    city: str = Field(..., description="City")
    state: Optional[str] = Field(None, description="State or province")
    country: str = Field("India", description="Country")
    postal_code: str = Field(..., description="Postal code")
    phone: str = Field(..., description="Contact phone number")

    def one_line(self) -> str:
        region = f"{self.city}, {self.state}" if self.state else self.city
        return f"{self.address}, {region} - {self.postal_code}, {self.country}"


class InvoiceInfo(BaseModel):
    """Bookkeeping for the invoice document attached to an order."""
    invoice_number: Optional[str] = Field(None, description="Number of the current invoice generation")
    generated: bool = Field(False, description="Whether a document has been generated")
    document_path: Optional[str] = Field(None, description="Storage key of the generated document")
    generated_at: Optional[datetime] = Field(None, description="Time the current document was generated (UTC)")
    download_count: int = Field(0, ge=0, description="Times the stored document was served")


class Order(BaseModel):
    """Order aggregate: a buyer's confirmed purchase with snapshot pricing and fulfillment state."""
    id: Optional[str] = Field(None, description="Unique identifier of the order as a string")
    buyer_id: str = Field(..., description="ID of the buyer as a string")
    line_items: List[LineItem] = Field(..., min_length=1, description="Ordered products")
    amounts: OrderAmounts = Field(..., description="Money breakdown")
    coupon_code: Optional[str] = Field(None, description="Coupon applied at checkout")
    shipping_address: ShippingAddress = Field(..., description="Delivery address")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH_ON_DELIVERY, description="Payment method")
    payment_status: PaymentStatus = Field(PaymentStatus.PENDING, description="Payment status")
    order_status: OrderStatus = Field(OrderStatus.PENDING, description="Fulfillment status")
    is_paid: bool = Field(False, description="Whether payment has been collected")
    paid_at: Optional[datetime] = Field(None, description="Time payment was collected (UTC)")
    is_delivered: bool = Field(False, description="Whether the order was delivered")
    delivered_at: Optional[datetime] = Field(None, description="Time of delivery (UTC)")
    gateway_order_id: Optional[str] = Field(None, description="Payment gateway order id")
    gateway_payment_id: Optional[str] = Field(None, description="Payment gateway payment id")
    gateway_signature: Optional[str] = Field(None, description="Signature returned by the payment gateway")
    tracking_number: Optional[str] = Field(None, description="Courier tracking number")
    courier_name: Optional[str] = Field(None, description="Courier company")
    admin_notes: Optional[str] = Field(None, description="Internal fulfillment notes")
    notes: Optional[str] = Field(None, description="Buyer notes")
    invoice: InvoiceInfo = Field(default_factory=InvoiceInfo, description="Invoice bookkeeping")
    version: int = Field(1, ge=1, description="Incremented on every write for compare-and-swap")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Creation time (UTC)")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc),
                                 description="Last update time (UTC)")

    @field_validator("id", "buyer_id", mode="before")
    def validate_id_format(cls, value):
        """Validate that ID fields are valid strings."""
        if value is not None and (not isinstance(value, str) or not value.strip()):
            raise ValueError(f"ID must be a non-empty string, got: {value}")
        return value

    @property
    def total_amount(self) -> Decimal:
        return self.amounts.grand_total

    @property
    def short_id(self) -> str:
        """Last six characters of the id, used in human-facing references."""
        return (self.id or "")[-6:].upper()

    def is_owned_by(self, user_id: str) -> bool:
        return self.buyer_id == user_id
