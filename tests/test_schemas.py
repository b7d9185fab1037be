# tests/test_schemas.py
import pytest

from core.errors import ValidationError
from core.utils.validation import parse_payload
from domain.entities.order import OrderStatus, PaymentMethod
from domain.entities.product import Product, ProductStatus
from domain.schemas.order import MarkPaidRequest, OrderCreate, OrderStatusUpdate, PaymentVerification


@pytest.mark.parametrize("spelling, expected", [
    ("COD", PaymentMethod.CASH_ON_DELIVERY),
    ("cash-on-delivery", PaymentMethod.CASH_ON_DELIVERY),
    (None, PaymentMethod.CASH_ON_DELIVERY),
    ("Razorpay", PaymentMethod.GATEWAY_REDIRECT),
    ("online", PaymentMethod.GATEWAY_REDIRECT),
    ("gateway", PaymentMethod.GATEWAY_REDIRECT),
])
def test_payment_method_spellings(spelling, expected):
    assert OrderCreate.model_validate({"paymentMethod": spelling}).payment_method == expected


def test_unknown_payment_method():
    with pytest.raises(ValidationError) as exc:
        parse_payload(OrderCreate, {"payment_method": "barter"}, "Order")
    assert exc.value.fields == ["payment_method"]


def test_coupon_aliases():
    assert OrderCreate.model_validate({"code": "SAVE10"}).coupon_code == "SAVE10"
    assert OrderCreate.model_validate({"couponCode": "  "}).coupon_code is None


def test_gateway_callback_names():
    verification = PaymentVerification.model_validate({
        "razorpay_order_id": "order_1", "razorpay_payment_id": "pay_1", "razorpay_signature": "abc"})
    assert (verification.gateway_order_id, verification.gateway_payment_id, verification.signature) == \
        ("order_1", "pay_1", "abc")


def test_missing_callback_fields_are_listed():
    with pytest.raises(ValidationError) as exc:
        parse_payload(PaymentVerification, {"razorpay_order_id": "order_1"}, "Payment verification")
    assert len(exc.value.fields) == 2


def test_status_update_names():
    update = OrderStatusUpdate.model_validate({"orderStatus": "SHIPPED", "trackingNumber": "T1",
                                               "courierName": "Delhivery", "adminNotes": "fragile"})
    assert update.order_status == OrderStatus.SHIPPED
    assert (update.tracking_number, update.courier_name, update.admin_notes) == ("T1", "Delhivery", "fragile")


def test_mark_paid_payload():
    assert MarkPaidRequest.model_validate({"paymentId": "pay_9"}).payment_id == "pay_9"
    assert parse_payload(MarkPaidRequest, None).payment_id is None


def test_legacy_product_active_flag():
    assert Product(name="Mug", price=10, stock=1, isActive=False).status == ProductStatus.RETIRED
    assert Product(name="Mug", price=10, stock=1, is_active=True).is_active
    assert Product(name="Mug", price=10, stock=1).is_active
