# services/invoices.py
import logging
import random
from datetime import datetime, timezone
from typing import Optional

from pymongo.errors import PyMongoError

from core.errors import BaseError, InternalServerError, InvoiceError, PaymentRequiredError
from domain.entities.order import InvoiceInfo, Order, OrderStatus, PaymentMethod, PaymentStatus
from domain.entities.user import Buyer, Caller
from domain.ports import DocumentStorePort, OrderRepositoryPort, UserRepositoryPort
from domain.schemas.invoice import InvoiceDocument, InvoiceStatus
from services.access import load_visible_order, require_caller
from services.invoice_renderer import InvoiceRenderer
from services.versioning import write_order

logger = logging.getLogger(__name__)


def new_invoice_number(order: Order, issued_at: datetime) -> str:
    """INV-YYMMDD-<last 6 of order id>-<4 random digits>; a regenerated invoice never reuses a number."""
    return f"INV-{issued_at:%y%m%d}-{order.short_id}-{random.randint(1000, 9999)}"


def is_downloadable(order: Order) -> bool:
    """Whether the buyer may download the invoice: COD orders, delivered orders or paid orders."""
    return (
        order.payment_method == PaymentMethod.CASH_ON_DELIVERY
        or order.order_status == OrderStatus.DELIVERED
        or order.payment_status == PaymentStatus.COMPLETED
    )


class InvoiceService:
    """Generates invoice PDFs, keeps them in document storage and serves them back."""

    def __init__(
        self,
        orders: OrderRepositoryPort,
        users: UserRepositoryPort,
        storage: DocumentStorePort,
        renderer: InvoiceRenderer,
        shop_name: str = "ShopEasy",
    ):
        self.orders = orders
        self.users = users
        self.storage = storage
        self.renderer = renderer
        self.shop_name = shop_name

    def generate_invoice(self, order: Order, buyer: Optional[Buyer]) -> InvoiceInfo:
        """Render a fresh invoice for `order`, store it and record it on the order.

        Args:
            order (Order): Order to invoice; its stored amounts are printed as-is.
            buyer (Optional[Buyer]): Buyer profile, or None to fall back to the shipping address.

        Returns:
            InvoiceInfo: Bookkeeping of the newly generated document.

        Raises:
            InvoiceError: If rendering or storing the document fails.
            NotFoundError: If the order disappeared meanwhile.
        """
        issued_at = datetime.now(timezone.utc)
        invoice_number = new_invoice_number(order, issued_at)
        key = f"invoices/{invoice_number}.pdf"
        logger.debug(f"Generating invoice {invoice_number} for order {order.id}")

        try:
            content = self.renderer.render(order, buyer, invoice_number, issued_at)
        except Exception as e:
            logger.error(f"Rendering invoice {invoice_number} failed: {str(e)}", exc_info=True)
            raise InvoiceError(f"Failed to render invoice for order {order.id}: {str(e)}")

        try:
            self.storage.save(key, content)
        except BaseError as be:
            raise InvoiceError(f"Failed to store invoice for order {order.id}: {be.detail}")

        def attach(current: Order) -> dict:
            info = InvoiceInfo(
                invoice_number=invoice_number,
                generated=True,
                document_path=key,
                generated_at=issued_at,
                download_count=current.invoice.download_count,
            )
            return {"invoice": info.model_dump()}

        updated = write_order(self.orders, order.id, attach)
        logger.info(f"Invoice {invoice_number} generated for order {order.id}")
        return updated.invoice

    def fetch_invoice_document(self, caller: Caller, order_id: str) -> InvoiceDocument:
        """Return the invoice PDF for an order, generating it when there is none on record.

        Raises:
            NotFoundError: If the order does not exist.
            ForbiddenError: If the caller is neither the owner nor an admin.
            PaymentRequiredError: If a buyer asks for the invoice of an unpaid online order.
            InvoiceError: If the document cannot be produced.
        """
        require_caller(caller)
        logger.debug(f"Fetching invoice for order {order_id} by user {caller.id}")
        try:
            order = load_visible_order(self.orders, caller, order_id)
            if not caller.is_admin and not is_downloadable(order):
                raise PaymentRequiredError("Invoice is available once the order is paid")

            info = order.invoice
            if info.generated and self.storage.exists(info.document_path):
                updated = self.orders.increment_download_count(order.id)
                if updated is not None:
                    info = updated.invoice
                logger.info(f"Serving stored invoice {info.invoice_number} for order {order_id}")
            else:
                if info.generated:
                    logger.warning(f"Invoice file {info.document_path} for order {order_id} is missing, regenerating")
                info = self.generate_invoice(order, self.users.find_user(order.buyer_id))

            try:
                content = self.storage.open(info.document_path)
            except FileNotFoundError:
                raise InvoiceError(f"Invoice file for order {order_id} is not available")

            return InvoiceDocument(
                order_id=order.id,
                invoice_number=info.invoice_number,
                filename=f"{self.shop_name}-Invoice-{info.invoice_number}.pdf",
                content=content,
            )
        except BaseError:
            raise
        except PyMongoError as pe:
            logger.error(f"Database operation failed in fetch_invoice_document: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to fetch invoice: {str(pe)}")

    def get_invoice_status(self, caller: Caller, order_id: str) -> InvoiceStatus:
        try:
            order = load_visible_order(self.orders, caller, order_id)
        except PyMongoError as pe:
            logger.error(f"Database operation failed in get_invoice_status: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to get invoice status: {str(pe)}")

        info = order.invoice
        return InvoiceStatus(
            order_id=order.id,
            has_invoice=info.generated,
            invoice_number=info.invoice_number,
            generated_at=info.generated_at,
            download_count=info.download_count,
            can_download=caller.is_admin or is_downloadable(order),
        )
