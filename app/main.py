# app/main.py
import logging
from typing import NamedTuple, Optional

from pymongo.database import Database
from pymongo.errors import NetworkTimeout, OperationFailure

from app.config.settings import Settings, settings as default_settings
from core.logging.setup import setup_logging
from infrastructure.database.client import get_db
from infrastructure.database.indexes import create_indexes
from infrastructure.external.file_storage import FileStorage
from infrastructure.external.razorpay_gateway import RazorpayGateway
from infrastructure.repositories.coupons import CouponRepository
from infrastructure.repositories.orders import OrderRepository
from infrastructure.repositories.products import ProductRepository
from infrastructure.repositories.users import UserRepository
from services.invoice_renderer import InvoiceRenderer, SellerIdentity
from services.invoices import InvoiceService
from services.orders import OrderService
from services.payments import PaymentService
from services.stock import StockReservation

logger = logging.getLogger(__name__)


class Services(NamedTuple):
    orders: OrderService
    invoices: InvoiceService


def build_services(db: Optional[Database] = None, settings: Optional[Settings] = None) -> Services:
    """Wire repositories, the payment gateway and document storage into the order services."""
    settings = settings or default_settings
    db = db if db is not None else get_db()

    orders = OrderRepository(db)
    users = UserRepository(db)
    invoices = InvoiceService(
        orders=orders,
        users=users,
        storage=FileStorage(settings.INVOICE_DIR),
        renderer=InvoiceRenderer(SellerIdentity.from_settings(settings)),
        shop_name=settings.SHOP_NAME,
    )
    order_service = OrderService(
        orders=orders,
        users=users,
        coupons=CouponRepository(db),
        payments=PaymentService(RazorpayGateway.from_settings(settings), currency=settings.CURRENCY),
        invoices=invoices,
        stock=StockReservation(ProductRepository(db)),
    )
    if not settings.gateway_configured:
        logger.warning("Razorpay credentials are not set, online payment is disabled")
    return Services(orders=order_service, invoices=invoices)


def initialize_app(settings: Optional[Settings] = None) -> Services:
    """Initialize logging and database indexes, then build the services."""
    settings = settings or default_settings
    try:
        setup_logging(settings.LOG_FILE)
        logger.info("Logging setup completed")

        try:
            create_indexes()
            logger.info("Database indexes created successfully")
        except OperationFailure as of:
            logger.error(f"Failed to create database indexes: {str(of)}", exc_info=True)
            raise RuntimeError(f"Database index creation failed: {str(of)}")
        except NetworkTimeout as nt:
            logger.error(f"Network timeout creating indexes: {str(nt)}", exc_info=True)
            raise RuntimeError(f"Database connection timeout: {str(nt)}")

        return build_services(settings=settings)
    except RuntimeError as re:
        logger.critical(f"Application initialization failed: {str(re)}", exc_info=True)
        raise
