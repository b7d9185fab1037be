# services/versioning.py
import logging
from typing import Any, Callable, Dict

from core.errors import ConcurrentModificationError, NotFoundError
from core.utils.retry import retry_with_backoff
from domain.entities.order import Order
from domain.ports import OrderRepositoryPort

logger = logging.getLogger(__name__)

ChangeBuilder = Callable[[Order], Dict[str, Any]]


@retry_with_backoff(max_retries=3, initial_delay=0.02, max_delay=0.5, exceptions=(ConcurrentModificationError,))
def write_order(orders: OrderRepositoryPort, order_id: str, build_changes: ChangeBuilder) -> Order:
    """Read the order, derive changes from the fresh copy and write them with a version check.

    `build_changes` is called again on every retry, so it must derive its result from the order
    it is given. Returning an empty dict skips the write.

    Raises:
        NotFoundError: If the order does not exist.
        ConcurrentModificationError: If the version kept moving after every retry.
    """
    current = orders.get(order_id)
    if current is None:
        raise NotFoundError(f"Order with ID {order_id} not found")

    changes = build_changes(current)
    if not changes:
        return current

    updated = orders.update(order_id, current.version, changes)
    if updated is None:
        logger.debug(f"Version {current.version} of order {order_id} is stale")
        raise ConcurrentModificationError(f"Order {order_id} was modified concurrently")
    return updated
