# domain/schemas/invoice.py
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class InvoiceDocument(BaseModel):
    """A readable invoice document ready to be streamed to the caller."""
    order_id: str = Field(..., description="Order the invoice belongs to")
    invoice_number: str = Field(..., description="Number printed on the document")
    filename: str = Field(..., description="Suggested download filename")
    content: Any = Field(..., description="Open binary stream of the PDF; the caller closes it")
    media_type: str = Field("application/pdf", description="MIME type of the content")


class InvoiceStatus(BaseModel):
    order_id: str = Field(..., description="Order the status describes")
    has_invoice: bool = Field(..., description="Whether an invoice has been generated")
    invoice_number: Optional[str] = Field(None, description="Current invoice number")
    generated_at: Optional[datetime] = Field(None, description="Time the current document was generated (UTC)")
    download_count: int = Field(0, description="Times the stored document was served")
    can_download: bool = Field(..., description="Whether the caller may download the invoice now")
