# services/payments.py
import logging
from decimal import Decimal
from typing import Dict, Optional

from core.errors import PaymentGatewayUnavailableError, PaymentMethodUnavailableError, ValidationError
from domain.entities.order import PaymentMethod
from domain.ports import PaymentGatewayPort
from domain.schemas.payment import GatewayIntent, IntentRequest
from infrastructure.external.razorpay_gateway import GatewayError
from services.pricing import to_minor_units

logger = logging.getLogger(__name__)


class PaymentService:
    """Dispatches checkout payment setup by payment method.

    Cash on delivery needs nothing up front; gateway payments need a remote intent before
    the order can be placed.
    """

    def __init__(self, gateway: PaymentGatewayPort, currency: str = "INR"):
        self.gateway = gateway
        self.currency = currency

    def ensure_available(self, payment_method: PaymentMethod) -> None:
        """Fail fast when a gateway payment is requested but the gateway has no credentials."""
        if payment_method == PaymentMethod.GATEWAY_REDIRECT and not self.gateway.is_configured:
            raise PaymentMethodUnavailableError(
                "Online payment is not available right now, please choose Cash on Delivery")

    def prepare(
        self,
        payment_method: PaymentMethod,
        amount: Decimal,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> Optional[GatewayIntent]:
        """Create whatever the payment method needs before the order is persisted.

        Returns:
            Optional[GatewayIntent]: The remote intent for gateway payments, None for cash on delivery.

        Raises:
            PaymentMethodUnavailableError: If the gateway is not configured.
            ValidationError: If there is nothing left to charge online.
            PaymentGatewayUnavailableError: If the gateway call fails or times out.
        """
        if payment_method == PaymentMethod.CASH_ON_DELIVERY:
            return None

        self.ensure_available(payment_method)
        if amount <= 0:
            raise ValidationError("Order total is zero, please choose Cash on Delivery", fields=["payment_method"])
        request = IntentRequest(
            amount=to_minor_units(amount),
            currency=self.currency,
            receipt=receipt[:40],
            notes=notes or {},
        )
        try:
            intent = self.gateway.create_intent(request)
        except GatewayError as ge:
            logger.error(f"Payment intent creation failed for receipt {receipt}: {str(ge)}")
            raise PaymentGatewayUnavailableError()
        logger.info(f"Payment intent {intent.gateway_order_id} created for receipt {receipt}")
        return intent

    def verify(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        verified = self.gateway.verify_callback(gateway_order_id, gateway_payment_id, signature)
        logger.info(f"Signature check for gateway order {gateway_order_id}: {'ok' if verified else 'mismatch'}")
        return verified
