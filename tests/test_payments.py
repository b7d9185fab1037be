# tests/test_payments.py
import hashlib
import hmac
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from core.errors import PaymentGatewayUnavailableError, PaymentMethodUnavailableError, ValidationError
from domain.entities.order import PaymentMethod
from domain.schemas.payment import IntentRequest
from infrastructure.external.razorpay_gateway import GatewayError, RazorpayGateway, compute_signature
from services.payments import PaymentService

from tests.conftest import FakeGateway


def flip_bit(signature: str) -> str:
    value = int(signature[0], 16) ^ 1
    return format(value, "x") + signature[1:]


def test_signature_is_hex_hmac_sha256_of_joined_ids():
    expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    assert compute_signature("order_1", "pay_1", "secret") == expected
    assert compute_signature("order_1", "pay_2", "secret") != expected


def test_verify_accepts_exact_signature_only():
    gateway = RazorpayGateway("rzp_key", "secret")
    signature = compute_signature("order_1", "pay_1", "secret")

    assert gateway.verify_callback("order_1", "pay_1", signature)
    assert not gateway.verify_callback("order_1", "pay_1", flip_bit(signature))
    assert not gateway.verify_callback("order_1", "pay_1", signature.upper())
    assert not gateway.verify_callback("order_2", "pay_1", signature)


def test_verify_without_secret_fails():
    gateway = RazorpayGateway("rzp_key", None)
    assert not gateway.verify_callback("order_1", "pay_1", compute_signature("order_1", "pay_1", "secret"))


def test_create_intent_posts_order():
    session = MagicMock()
    session.post.return_value.json.return_value = {"id": "order_ABC", "amount": 129800, "currency": "INR"}
    gateway = RazorpayGateway("rzp_key", "secret", api_url="https://api.example.test/v1/", timeout=3,
                              session=session)

    intent = gateway.create_intent(IntentRequest(amount=129800, receipt="r1"))

    assert intent.gateway_order_id == "order_ABC"
    assert intent.key_id == "rzp_key"
    args, kwargs = session.post.call_args
    assert args[0] == "https://api.example.test/v1/orders"
    assert kwargs["auth"] == ("rzp_key", "secret")
    assert kwargs["timeout"] == 3
    assert kwargs["json"]["amount"] == 129800


def test_create_intent_timeout_raises_gateway_error():
    session = MagicMock()
    session.post.side_effect = requests.Timeout("read timed out")
    gateway = RazorpayGateway("rzp_key", "secret", session=session)

    with pytest.raises(GatewayError):
        gateway.create_intent(IntentRequest(amount=100, receipt="r1"))


def test_create_intent_http_error_raises_gateway_error():
    session = MagicMock()
    session.post.return_value.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
    gateway = RazorpayGateway("rzp_key", "secret", session=session)

    with pytest.raises(GatewayError):
        gateway.create_intent(IntentRequest(amount=100, receipt="r1"))


def test_unconfigured_gateway_is_unavailable():
    gateway = RazorpayGateway(None, None)
    assert not gateway.is_configured
    with pytest.raises(GatewayError):
        gateway.create_intent(IntentRequest(amount=100, receipt="r1"))


def test_cod_needs_no_intent():
    gateway = FakeGateway(configured=False)
    service = PaymentService(gateway)

    assert service.prepare(PaymentMethod.CASH_ON_DELIVERY, Decimal("100"), "r1") is None
    assert gateway.requests == []


def test_gateway_payment_requires_configuration():
    with pytest.raises(PaymentMethodUnavailableError):
        PaymentService(FakeGateway(configured=False)).prepare(PaymentMethod.GATEWAY_REDIRECT, Decimal("10"), "r1")


def test_gateway_failure_suggests_cod():
    with pytest.raises(PaymentGatewayUnavailableError) as exc:
        PaymentService(FakeGateway(fail=True)).prepare(PaymentMethod.GATEWAY_REDIRECT, Decimal("10"), "r1")
    assert exc.value.status_code == 502
    assert "Cash on Delivery" in exc.value.detail


def test_intent_amount_in_paise_and_receipt_truncated():
    gateway = FakeGateway()
    intent = PaymentService(gateway).prepare(PaymentMethod.GATEWAY_REDIRECT, Decimal("1298.50"), "r" * 60)

    assert intent.amount == 129850
    assert len(gateway.requests[0].receipt) == 40


def test_fully_discounted_order_cannot_go_to_gateway():
    gateway = FakeGateway()
    with pytest.raises(ValidationError) as exc:
        PaymentService(gateway).prepare(PaymentMethod.GATEWAY_REDIRECT, Decimal("0.00"), "r1")
    assert exc.value.fields == ["payment_method"]
    assert gateway.requests == []
