# tests/test_versioning.py
import pytest

from core.errors import ConcurrentModificationError, NotFoundError
from domain.entities.order import OrderStatus
from services.versioning import write_order


class RacingOrders:
    """Wraps an order store and lets another writer bump the version before each of our writes."""

    def __init__(self, inner, races: int):
        self.inner = inner
        self.races = races
        self.attempts = 0

    def get(self, order_id):
        return self.inner.get(order_id)

    def update(self, order_id, expected_version, changes):
        self.attempts += 1
        if self.races > 0:
            self.races -= 1
            current = self.inner.get(order_id)
            self.inner.update(order_id, current.version, {"admin_notes": f"concurrent write {self.attempts}"})
        return self.inner.update(order_id, expected_version, changes)


@pytest.fixture
def placed(service, caller, cod_payload):
    return service.create_order(caller, cod_payload).order


def test_conflict_is_retried_on_a_fresh_copy(orders, placed):
    racing = RacingOrders(orders, races=2)
    seen_versions = []

    def changes(current):
        seen_versions.append(current.version)
        return {"order_status": OrderStatus.SHIPPED}

    updated = write_order(racing, placed.id, changes)

    assert racing.attempts == 3
    assert seen_versions == [placed.version, placed.version + 1, placed.version + 2]
    assert updated.order_status == OrderStatus.SHIPPED
    assert updated.admin_notes == "concurrent write 2"
    assert updated.version == placed.version + 3


def test_persistent_conflict_gives_up(orders, placed):
    racing = RacingOrders(orders, races=100)

    with pytest.raises(ConcurrentModificationError):
        write_order(racing, placed.id, lambda current: {"order_status": OrderStatus.SHIPPED})
    assert racing.attempts == 4


def test_missing_order(orders):
    with pytest.raises(NotFoundError):
        write_order(orders, "5f1d7f0e9b1e8a3c4d5e6f70", lambda current: {"notes": "x"})


def test_empty_changes_skip_the_write(orders, placed):
    assert write_order(orders, placed.id, lambda current: {}).version == placed.version
