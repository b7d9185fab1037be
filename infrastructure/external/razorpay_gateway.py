# infrastructure/external/razorpay_gateway.py
import hashlib
import hmac
import logging
from typing import Optional

import requests

from domain.schemas.payment import GatewayIntent, IntentRequest

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The payment gateway could not be reached or rejected the request."""


def compute_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of `order_id|payment_id`, as Razorpay signs checkout callbacks."""
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class RazorpayGateway:
    """Payment gateway adapter for the Razorpay Orders API."""

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        api_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "RazorpayGateway":
        return cls(
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            api_url=settings.RAZORPAY_API_URL,
            timeout=settings.GATEWAY_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def create_intent(self, request: IntentRequest) -> GatewayIntent:
        """Create a Razorpay order the buyer will pay against.

        Raises:
            GatewayError: If credentials are missing, the call times out, or Razorpay answers with an error.
        """
        if not self.is_configured:
            raise GatewayError("Razorpay credentials are not configured")
        try:
            response = self.session.post(
                f"{self.api_url}/orders",
                json=request.model_dump(),
                auth=(self.key_id, self._key_secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout as te:
            logger.error(f"Razorpay order creation timed out after {self.timeout}s: {str(te)}")
            raise GatewayError(f"Gateway timed out after {self.timeout}s") from te
        except requests.RequestException as re:
            logger.error(f"Razorpay order creation failed: {str(re)}", exc_info=True)
            raise GatewayError(f"Gateway request failed: {str(re)}") from re
        except ValueError as ve:
            logger.error(f"Razorpay returned a non-JSON body: {str(ve)}")
            raise GatewayError("Gateway returned an unreadable response") from ve

        if "id" not in payload:
            raise GatewayError(f"Gateway response is missing the order id: {payload}")
        logger.info(f"Razorpay order {payload['id']} created for receipt {request.receipt}")
        return GatewayIntent(
            gateway_order_id=payload["id"],
            amount=int(payload.get("amount", request.amount)),
            currency=payload.get("currency", request.currency),
            key_id=self.key_id,
        )

    def verify_callback(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        if not self._key_secret:
            logger.error("Cannot verify a payment signature without RAZORPAY_KEY_SECRET")
            return False
        expected = compute_signature(gateway_order_id, gateway_payment_id, self._key_secret)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
