"""Unit tests for orders/store.py -- the Order repository.

The store does no authorization; these tests only pin storage behavior and
the audit entries written for successful mutations.
"""

from __future__ import annotations

from audit.models import Outcome
from audit.store import AuditLog
from orders.models import OrderFailure, OrderStatus
from orders.store import OrderStore
from tests.conftest import FakeClock


class TestAdd:
    def test_new_order_is_pending(self, orders: OrderStore, audit: AuditLog, clock: FakeClock) -> None:
        order = orders.add("owner-1", "Blue widgets", 3)
        assert order.status is OrderStatus.PENDING
        assert order.owner_id == "owner-1"
        assert order.created_at == clock.now
        entry = audit.list(1)[0]
        assert (entry.action, entry.user_id, entry.detail) == ("order.create", "owner-1", order.id)

    def test_list_all_in_creation_order(self, orders: OrderStore) -> None:
        first = orders.add("a", "First order", 1)
        second = orders.add("b", "Second order", 2)
        assert [o.id for o in orders.list_all()] == [first.id, second.id]

    def test_returned_orders_are_copies(self, orders: OrderStore) -> None:
        order = orders.add("a", "First order", 1)
        order.status = OrderStatus.APPROVED
        assert orders.get(order.id).status is OrderStatus.PENDING


class TestUpdate:
    def test_only_given_fields_change(self, orders: OrderStore, audit: AuditLog) -> None:
        order = orders.add("a", "First order", 1)
        updated = orders.update(order.id, actor_id="m", status=OrderStatus.APPROVED)
        assert updated.status is OrderStatus.APPROVED
        assert updated.description == "First order"
        assert updated.quantity == 1
        entry = audit.list(1)[0]
        assert (entry.action, entry.outcome, entry.user_id) == ("order.update", Outcome.SUCCESS, "m")

    def test_any_status_transition_allowed(self, orders: OrderStore) -> None:
        order = orders.add("a", "First order", 1)
        for status in (OrderStatus.CANCELLED, OrderStatus.APPROVED, OrderStatus.PENDING):
            assert orders.update(order.id, actor_id="a", status=status).status is status

    def test_missing_order(self, orders: OrderStore, audit: AuditLog) -> None:
        before = len(audit)
        assert orders.update("missing", actor_id="a", quantity=2) is None
        assert len(audit) == before


class TestDelete:
    def test_delete(self, orders: OrderStore, audit: AuditLog) -> None:
        order = orders.add("a", "First order", 1)
        assert orders.delete(order.id, actor_id="a") is True
        assert orders.get(order.id) is None
        assert audit.list(1)[0].action == "order.delete"
        assert orders.delete(order.id, actor_id="a") is False


def test_failure_messages() -> None:
    assert OrderFailure.FORBIDDEN.message("update") == "Not allowed to update this order"
    assert OrderFailure.NOT_FOUND.message("delete") == "Order not found"
