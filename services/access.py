# services/access.py
import logging
from typing import Optional

from core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from domain.entities.order import Order
from domain.entities.user import Caller
from domain.ports import OrderRepositoryPort

logger = logging.getLogger(__name__)


def require_caller(caller: Optional[Caller]) -> Caller:
    """Reject requests that reached the service without a resolved caller."""
    if caller is None or not caller.id:
        logger.warning("Request without an authenticated caller rejected")
        raise UnauthorizedError("Authentication required")
    return caller


def require_admin(caller: Caller, action: str) -> None:
    require_caller(caller)
    if not caller.is_admin:
        logger.warning(f"Non-admin user {caller.id} attempted to {action}")
        raise ForbiddenError(f"Only admins can {action}")


def load_visible_order(orders: OrderRepositoryPort, caller: Caller, order_id: str) -> Order:
    """Fetch an order the caller owns, or any order for an admin.

    Raises:
        UnauthorizedError: If there is no caller.
        NotFoundError: If the id is malformed or no such order exists.
        ForbiddenError: If the caller is neither the owner nor an admin.
    """
    require_caller(caller)
    order = orders.get(order_id)
    if order is None:
        raise NotFoundError(f"Order with ID {order_id} not found")
    if not (caller.is_admin or order.is_owned_by(caller.id)):
        logger.warning(f"Unauthorized access attempt on order {order_id} by user {caller.id}")
        raise ForbiddenError("You can only access your own orders")
    return order
