# services/orders.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pymongo.errors import PyMongoError

from core.errors import (
    BaseError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    PaymentVerificationFailedError,
    ValidationError,
)
from core.utils.validation import missing_fields, parse_payload
from domain.entities.coupon import Coupon
from domain.entities.order import Order, OrderStatus, PaymentMethod, PaymentStatus, ShippingAddress
from domain.entities.user import Caller
from domain.ports import CouponRepositoryPort, OrderRepositoryPort, UserRepositoryPort
from domain.schemas.order import (
    REQUIRED_ADDRESS_FIELDS,
    MarkPaidRequest,
    OrderCreate,
    OrderCreated,
    OrderStatusUpdate,
    PaymentVerification,
    ShippingAddressIn,
)
from services.access import load_visible_order, require_admin, require_caller
from services.invoices import InvoiceService
from services.payments import PaymentService
from services.pricing import calculate_amounts
from services.stock import ReservedItem, StockReservation
from services.versioning import write_order

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _payment_completed_fields(paid_at: datetime) -> Dict[str, Any]:
    return {"payment_status": PaymentStatus.COMPLETED, "is_paid": True, "paid_at": paid_at}


class OrderService:
    """Order lifecycle: checkout, payment confirmation, fulfillment updates and queries."""

    def __init__(
        self,
        orders: OrderRepositoryPort,
        users: UserRepositoryPort,
        coupons: CouponRepositoryPort,
        payments: PaymentService,
        invoices: InvoiceService,
        stock: StockReservation,
    ):
        self.orders = orders
        self.users = users
        self.coupons = coupons
        self.payments = payments
        self.invoices = invoices
        self.stock = stock

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _shipping_address(address: Optional[ShippingAddressIn]) -> ShippingAddress:
        data = address.model_dump() if address is not None else {}
        missing = missing_fields(data, REQUIRED_ADDRESS_FIELDS)
        if missing:
            raise ValidationError(f"Shipping address is missing required fields: {', '.join(missing)}",
                                  fields=missing)
        return ShippingAddress(**{key: value for key, value in data.items() if value is not None})

    def _resolve_coupon(self, code: Optional[str], buyer_id: str, items: Sequence[ReservedItem]) -> Optional[Coupon]:
        if not code:
            return None
        coupon = self.coupons.find_by_code(code)
        if coupon is None:
            raise NotFoundError(f"Coupon {code} not found")
        reason = coupon.check_validity(buyer_id)
        if reason:
            raise ValidationError(reason, fields=["coupon_code"])
        subtotal = calculate_amounts(items).subtotal
        if subtotal < coupon.min_order_amount:
            raise ValidationError(f"Minimum order amount of {coupon.min_order_amount} required for this coupon",
                                  fields=["coupon_code"])
        return coupon

    def _refresh_invoice(self, order: Order) -> Order:
        """Regenerate the invoice after a change it prints; failures never undo the change."""
        try:
            self.invoices.generate_invoice(order, self.users.find_user(order.buyer_id))
            return self.orders.get(order.id) or order
        except Exception as e:
            logger.error(f"Invoice generation failed for order {order.id}: {str(e)}", exc_info=True)
            return order

    # -- checkout -------------------------------------------------------------

    def create_order(self, caller: Caller, order_data: Dict[str, Any]) -> OrderCreated:
        """Place an order for the caller.

        Stock is checked, the coupon and amounts are resolved and a gateway intent is created
        before anything is written. Stock is then reserved and the order persisted; a failed
        insert gives the reserved stock back.

        Args:
            caller (Caller): The authenticated buyer.
            order_data (Dict[str, Any]): Raw checkout payload; legacy field names are accepted.

        Returns:
            OrderCreated: The persisted order and, for gateway payments, the payment intent.

        Raises:
            ValidationError: If the payload is malformed, has no items or an incomplete address.
            ProductNotFoundError, ProductInactiveError, InsufficientStockError: If stock checks fail.
            NotFoundError: If the coupon code is unknown.
            PaymentMethodUnavailableError, PaymentGatewayUnavailableError: If online payment cannot start.
            InternalServerError: For database failures.
        """
        require_caller(caller)
        logger.debug(f"Creating order for user_id: {caller.id}")
        try:
            request = parse_payload(OrderCreate, order_data, "Order")
            if not request.items:
                raise ValidationError("Order must contain at least one item", fields=["items"])
            address = self._shipping_address(request.shipping_address)
            for item in request.items:
                if item.quantity <= 0:
                    raise ValidationError(f"Quantity for product {item.product_id} must be positive",
                                          fields=["quantity"])

            checked = self.stock.check(request.items)
            coupon = self._resolve_coupon(request.coupon_code, caller.id, checked)
            amounts = calculate_amounts(checked, coupon)

            self.payments.ensure_available(request.payment_method)
            receipt = f"order_{int(_now().timestamp())}_{caller.id}"
            intent = self.payments.prepare(request.payment_method, amounts.grand_total, receipt,
                                           notes={"buyer_id": caller.id})

            order = Order(
                buyer_id=caller.id,
                line_items=[item.to_line_item() for item in checked],
                amounts=amounts,
                coupon_code=coupon.code if coupon else None,
                shipping_address=address,
                payment_method=request.payment_method,
                notes=request.notes,
                gateway_order_id=intent.gateway_order_id if intent else None,
            )

            reserved = self.stock.reserve(checked)
            try:
                order = self.orders.insert(order)
            except Exception:
                logger.error(f"Persisting order for user {caller.id} failed, releasing reserved stock")
                self.stock.release(reserved)
                raise

            if coupon is not None:
                try:
                    if not self.coupons.record_usage(coupon.code, caller.id, coupon.max_usage):
                        logger.warning(f"Coupon {coupon.code} was redeemed concurrently, order {order.id} keeps "
                                       f"its discount")
                except Exception as e:
                    logger.error(f"Failed to record usage of coupon {coupon.code} on order {order.id}: {str(e)}",
                                 exc_info=True)

            if order.payment_method == PaymentMethod.CASH_ON_DELIVERY:
                order = self._refresh_invoice(order)

            logger.info(f"Order created successfully - ID: {order.id}, user_id: {caller.id}, "
                        f"total: {order.total_amount}, payment: {order.payment_method.value}")
            return OrderCreated(order=order, gateway_intent=intent)
        except BaseError as be:
            logger.error(f"Order creation rejected for user {caller.id}: {be.detail}")
            raise
        except PyMongoError as pe:
            logger.error(f"Database operation failed in create_order: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to create order: {str(pe)}")

    # -- payment --------------------------------------------------------------

    def mark_paid(self, caller: Caller, order_id: str, data: Optional[Dict[str, Any]] = None) -> Order:
        """Record a payment collected outside the gateway flow (admin only)."""
        require_admin(caller, "mark orders as paid")
        request = parse_payload(MarkPaidRequest, data, "Payment")

        def changes(current: Order) -> Dict[str, Any]:
            fields = _payment_completed_fields(_now())
            if request.payment_id:
                fields["gateway_payment_id"] = request.payment_id
            return fields

        try:
            order = write_order(self.orders, order_id, changes)
        except PyMongoError as pe:
            logger.error(f"Database operation failed in mark_paid: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to mark order as paid: {str(pe)}")
        logger.info(f"Order {order_id} marked as paid by admin {caller.id}")
        return self._refresh_invoice(order)

    def verify_and_mark_paid(self, caller: Caller, order_id: str, data: Dict[str, Any]) -> Order:
        """Confirm a gateway payment from its signed callback and mark the order paid.

        Raises:
            ValidationError: If the callback fields are missing.
            NotFoundError: If the order does not exist.
            ForbiddenError: If the caller does not own the order.
            PaymentVerificationFailedError: If the signature or gateway order id does not match.
        """
        require_caller(caller)
        verification = parse_payload(PaymentVerification, data, "Payment verification")
        try:
            order = self.orders.get(order_id)
            if order is None:
                raise NotFoundError(f"Order with ID {order_id} not found")
            if not order.is_owned_by(caller.id):
                logger.warning(f"User {caller.id} attempted to pay for order {order_id} they do not own")
                raise ForbiddenError("You can only pay for your own orders")
            if order.payment_method != PaymentMethod.GATEWAY_REDIRECT:
                raise PaymentVerificationFailedError("Order is not payable through the payment gateway")
            if order.gateway_order_id is None or order.gateway_order_id != verification.gateway_order_id:
                raise PaymentVerificationFailedError("Payment does not belong to this order")
            if not self.payments.verify(verification.gateway_order_id, verification.gateway_payment_id,
                                        verification.signature):
                raise PaymentVerificationFailedError()

            def changes(current: Order) -> Dict[str, Any]:
                fields = _payment_completed_fields(_now())
                fields.update(
                    gateway_order_id=verification.gateway_order_id,
                    gateway_payment_id=verification.gateway_payment_id,
                    gateway_signature=verification.signature,
                )
                return fields

            order = write_order(self.orders, order_id, changes)
        except PyMongoError as pe:
            logger.error(f"Database operation failed in verify_and_mark_paid: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to verify payment: {str(pe)}")
        logger.info(f"Payment {verification.gateway_payment_id} verified for order {order_id}")
        return self._refresh_invoice(order)

    # -- fulfillment ----------------------------------------------------------

    def update_status(self, caller: Caller, order_id: str, data: Dict[str, Any]) -> Order:
        """Move an order through fulfillment (admin only).

        Delivering a cash-on-delivery order whose payment is still pending also records the
        payment as collected. Online payments are only ever completed through the gateway.
        """
        require_admin(caller, "update order status")
        update = parse_payload(OrderStatusUpdate, data, "Status update")
        promoted = []

        def changes(current: Order) -> Dict[str, Any]:
            promoted.clear()
            now = _now()
            fields: Dict[str, Any] = {"order_status": update.order_status}
            for name in ("tracking_number", "courier_name", "admin_notes"):
                value = getattr(update, name)
                if value is not None:
                    fields[name] = value
            if update.order_status == OrderStatus.DELIVERED:
                fields.update(is_delivered=True, delivered_at=now)
                if (current.payment_method == PaymentMethod.CASH_ON_DELIVERY
                        and current.payment_status == PaymentStatus.PENDING):
                    fields.update(_payment_completed_fields(now))
                    promoted.append(True)
            return fields

        try:
            order = write_order(self.orders, order_id, changes)
        except PyMongoError as pe:
            logger.error(f"Database operation failed in update_status: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to update order status: {str(pe)}")

        logger.info(f"Order {order_id} moved to {update.order_status.value} by admin {caller.id}")
        if promoted:
            logger.info(f"Cash on delivery payment collected for order {order_id}")
            order = self._refresh_invoice(order)
        return order

    # -- queries --------------------------------------------------------------

    def get_order(self, caller: Caller, order_id: str) -> Order:
        require_caller(caller)
        logger.debug(f"Fetching order with ID: {order_id} for user_id: {caller.id}")
        try:
            return load_visible_order(self.orders, caller, order_id)
        except PyMongoError as pe:
            logger.error(f"Database operation failed in get_order: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to get order: {str(pe)}")

    def list_orders_for_buyer(self, caller: Caller) -> List[Order]:
        """The caller's own orders, newest first."""
        require_caller(caller)
        try:
            orders = self.orders.list_by_buyer(caller.id)
        except PyMongoError as pe:
            logger.error(f"Database operation failed in list_orders_for_buyer: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to list orders: {str(pe)}")
        logger.info(f"Retrieved {len(orders)} orders for user_id: {caller.id}")
        return orders

    def list_all_orders(self, caller: Caller) -> List[Order]:
        """Every order in the shop, newest first (admin only)."""
        require_admin(caller, "list all orders")
        try:
            orders = self.orders.list_all()
        except PyMongoError as pe:
            logger.error(f"Database operation failed in list_all_orders: {str(pe)}", exc_info=True)
            raise InternalServerError(f"Failed to list orders: {str(pe)}")
        logger.info(f"Retrieved {len(orders)} orders for admin {caller.id}")
        return orders
