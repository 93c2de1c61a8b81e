"""
orders/models.py -- Domain dataclasses for the Order resource.

Pure data containers with zero logic. Status transitions are unconstrained:
any status may be set by an actor the authorization layer allows to mutate
the order. Who may act lives in auth/permissions.py; what an order looks like
lives here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CANCELLED = "CANCELLED"


class OrderFailure(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"

    def message(self, action: str) -> str:
        if self is OrderFailure.NOT_FOUND:
            return "Order not found"
        return f"Not allowed to {action} this order"


@dataclass
class Order:
    """A customer order. owner_id is the id of the User who created it.

    quantity is whatever finite number passed core/policy.validate_quantity.
    """

    id: str
    owner_id: str
    description: str
    quantity: float
    created_at: datetime
    status: OrderStatus = OrderStatus.PENDING
