# core/errors.py
import logging
from typing import List, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)

class BaseError(HTTPException):
    """Base class for custom HTTP exceptions.

    Args:
        status_code (int): HTTP status code for the error.
        detail (str): Detailed message describing the error.
    """
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)
        logger.error(f"Error occurred: {detail} (Status: {status_code})")

    def __str__(self) -> str:
        return str(self.detail)

class NotFoundError(BaseError):
    """Exception raised for resources that cannot be found.

    Args:
        detail (str, optional): Specific detail about what was not found. Defaults to "Item not found".
    """

    def __init__(self, detail: Optional[str] = "Item not found"):
        super().__init__(status_code=404, detail=detail)

class ValidationError(BaseError):
    """Exception raised for invalid input data.

    Args:
        detail (str, optional): Specific detail about the validation failure. Defaults to "Invalid input".
        fields (List[str], optional): Names of the offending fields, if known.
    """

    def __init__(self, detail: Optional[str] = "Invalid input", fields: Optional[List[str]] = None):
        super().__init__(status_code=400, detail=detail)
        self.fields = fields or []

class UnauthorizedError(BaseError):
    """Exception raised for unauthenticated access attempts.

    Args:
        detail (str, optional): Specific detail about the authorization failure. Defaults to "Unauthorized".
    """

    def __init__(self, detail: Optional[str] = "Unauthorized"):
        super().__init__(status_code=401, detail=detail)

class ForbiddenError(BaseError):
    """Exception raised when an authenticated caller may not touch a resource."""

    def __init__(self, detail: Optional[str] = "Forbidden"):
        super().__init__(status_code=403, detail=detail)

class ProductNotFoundError(NotFoundError):
    """Raised when an ordered product does not exist in the catalog."""

class StockError(BaseError):
    """Base class for catalog availability failures during checkout."""

    def __init__(self, detail: Optional[str] = "Product unavailable"):
        super().__init__(status_code=409, detail=detail)

class ProductInactiveError(StockError):
    """Raised when an ordered product has been retired from the catalog."""

class InsufficientStockError(StockError):
    """Raised when a product does not have enough units for the order."""

class PaymentRequiredError(BaseError):
    """Raised when a document is gated behind a completed payment."""

    def __init__(self, detail: Optional[str] = "Payment required"):
        super().__init__(status_code=402, detail=detail)

class PaymentVerificationFailedError(BaseError):
    """Raised when a gateway callback signature does not match."""

    def __init__(self, detail: Optional[str] = "Payment verification failed"):
        super().__init__(status_code=400, detail=detail)

class PaymentMethodUnavailableError(BaseError):
    """Raised when the requested payment method is not configured."""

    def __init__(self, detail: Optional[str] = "Payment method unavailable"):
        super().__init__(status_code=503, detail=detail)

class PaymentGatewayUnavailableError(BaseError):
    """Raised when the payment gateway could not create a payment intent."""

    def __init__(self, detail: Optional[str] = "Payment gateway unavailable, please retry with Cash on Delivery"):
        super().__init__(status_code=502, detail=detail)

class ConcurrentModificationError(BaseError):
    """Raised when a document changed underneath a compare-and-swap write."""

    def __init__(self, detail: Optional[str] = "Resource was modified concurrently"):
        super().__init__(status_code=409, detail=detail)

class InvoiceError(BaseError):
    """Raised when an invoice document cannot be rendered or stored."""

    def __init__(self, detail: Optional[str] = "Invoice generation failed"):
        super().__init__(status_code=500, detail=detail)

class InternalServerError(BaseError):
    """Exception raised for unexpected server-side errors.

    Args:
        detail (str, optional): Specific detail about the server error. Defaults to "Internal server error".
    """

    def __init__(self, detail: Optional[str] = "Internal server error"):
        super().__init__(status_code=500, detail=detail)
