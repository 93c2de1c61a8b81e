"""
auth/permissions.py -- Role-based access decisions.

Two independent gates, always consulted in this order:

  1. Route gate. ROUTE_RESTRICTIONS maps an operation identifier to the exact
     set of roles allowed to perform it, regardless of ownership. Operations
     not listed are open to any authenticated actor.

  2. Resource gate. Admin and Manager may see and mutate every resource; a
     Customer may see and mutate only resources whose owner_id is their own.

Every function here is pure and total: given the same inputs it returns the
same Decision and touches no state. Auditing a DENY is the caller's job
(see service.py), since only the caller knows the request context.

Layer rule: no imports from orders/ or service.py. Resources are anything
with an `owner_id` attribute.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Protocol, TypeVar

from auth.models import Role, User

AUDIT_LOG_ROUTE = "/admin/logs"
ORDER_LIST_ROUTE = "/orders"
ORDER_UPDATE_ROUTE = "/orders/update"
ORDER_DELETE_ROUTE = "/orders/delete"

ROUTE_RESTRICTIONS: Mapping[str, frozenset[Role]] = {
    AUDIT_LOG_ROUTE: frozenset({Role.ADMIN}),
}

# Roles that act on every resource, not only their own.
PRIVILEGED_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.MANAGER})


class Decision(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


class OwnedResource(Protocol):
    owner_id: str


R = TypeVar("R", bound=OwnedResource)


# ---------------------------------------------------------------------------
# Route gate
# ---------------------------------------------------------------------------


def required_roles(operation: str, restrictions: Mapping[str, frozenset[Role]] = ROUTE_RESTRICTIONS) -> frozenset[Role] | None:
    """Return the roles allowed to perform `operation`, or None if unrestricted."""
    return restrictions.get(operation)


def check_route(role: Role, operation: str, restrictions: Mapping[str, frozenset[Role]] = ROUTE_RESTRICTIONS) -> Decision:
    allowed = required_roles(operation, restrictions)
    if allowed is None or role in allowed:
        return Decision.ALLOW
    return Decision.DENY


# ---------------------------------------------------------------------------
# Resource gate
# ---------------------------------------------------------------------------


def can_view(role: Role, actor_id: str, owner_id: str) -> bool:
    return role in PRIVILEGED_ROLES or actor_id == owner_id


def can_mutate(role: Role, actor_id: str, owner_id: str) -> Decision:
    """Update/delete rule: privileged role, or the resource's owner."""
    if role in PRIVILEGED_ROLES or actor_id == owner_id:
        return Decision.ALLOW
    return Decision.DENY


def visible_to(actor: User, resources: Iterable[R]) -> list[R]:
    """Filter `resources` down to what `actor` may list, preserving order."""
    return [r for r in resources if can_view(actor.role, actor.id, r.owner_id)]


# ---------------------------------------------------------------------------
# Combined decision
# ---------------------------------------------------------------------------


def decide(role: Role, actor_id: str, owner_id: str, required: Iterable[Role] | None = None) -> Decision:
    """Route gate first (when `required` is given), then the resource gate.

    A restricted operation denies a role outside `required` even when the
    resource gate alone would allow it -- e.g. a Manager on an Admin-only
    operation.
    """
    if required is not None and role not in frozenset(required):
        return Decision.DENY
    return can_mutate(role, actor_id, owner_id)
