"""
orders/store.py -- In-process Order repository.

Pattern: Repository. OrderStore owns Order records and hands out copies.
It does not decide who may act on an order: callers consult
auth/permissions.py first and only call the mutating methods once the
decision is ALLOW (see service.py). Successful mutations append an audit
entry tagged with the acting user's id.

Usage:
    orders = OrderStore(audit)
    order = orders.add(owner_id=user.id, description="Blue widgets", quantity=3)
    orders.update(order.id, actor_id=user.id, status=OrderStatus.APPROVED)
    orders.delete(order.id, actor_id=user.id)
"""

from __future__ import annotations

import dataclasses
import logging
import threading

from audit.models import Outcome
from audit.store import AuditLog
from core.clock import Clock, utc_now
from core.ids import generate_id
from orders.models import Order, OrderStatus

logger = logging.getLogger("orderdesk.orders")


class OrderStore:
    def __init__(self, audit: AuditLog, clock: Clock = utc_now) -> None:
        self._audit = audit
        self._clock = clock
        # dicts keep insertion order, so list_all() is oldest first.
        self._orders: dict[str, Order] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, order_id: str) -> Order | None:
        with self._lock:
            order = self._orders.get(order_id)
            return dataclasses.replace(order) if order is not None else None

    def list_all(self) -> list[Order]:
        with self._lock:
            return [dataclasses.replace(o) for o in self._orders.values()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, owner_id: str, description: str, quantity: float) -> Order:
        """Create a PENDING order owned by `owner_id`."""
        order = Order(
            id=generate_id(),
            owner_id=owner_id,
            description=description,
            quantity=quantity,
            created_at=self._clock(),
        )
        with self._lock:
            self._orders[order.id] = order
            result = dataclasses.replace(order)
        self._audit.record("order.create", Outcome.SUCCESS, user_id=owner_id, detail=order.id)
        logger.debug("Order %s created by %s", order.id, owner_id)
        return result

    def update(
        self,
        order_id: str,
        actor_id: str,
        description: str | None = None,
        quantity: float | None = None,
        status: OrderStatus | None = None,
    ) -> Order | None:
        """Apply the given fields. Returns the updated copy, or None if the order is gone.

        Fields left as None keep their current value.
        """
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            if description is not None:
                order.description = description
            if quantity is not None:
                order.quantity = quantity
            if status is not None:
                order.status = status
            result = dataclasses.replace(order)
        self._audit.record("order.update", Outcome.SUCCESS, user_id=actor_id, detail=order_id)
        return result

    def delete(self, order_id: str, actor_id: str) -> bool:
        with self._lock:
            removed = self._orders.pop(order_id, None)
        if removed is None:
            return False
        self._audit.record("order.delete", Outcome.SUCCESS, user_id=actor_id, detail=order_id)
        logger.debug("Order %s deleted by %s", order_id, actor_id)
        return True
