# domain/schemas/payment.py
from typing import Dict, Optional

from pydantic import BaseModel, Field


class IntentRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in the smallest currency unit (paise)")
    currency: str = Field("INR", description="ISO currency code")
    receipt: str = Field(..., max_length=40, description="Merchant receipt reference")
    notes: Dict[str, str] = Field(default_factory=dict, description="Free-form metadata stored with the intent")


class GatewayIntent(BaseModel):
    """Remote pending-payment record the buyer completes on the gateway page."""
    gateway_order_id: str = Field(..., description="Order id assigned by the gateway")
    amount: int = Field(..., description="Amount in the smallest currency unit")
    currency: str = Field(..., description="ISO currency code")
    key_id: Optional[str] = Field(None, description="Public key the client needs to open the checkout")
