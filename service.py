"""
service.py -- Assembly of the OrderDesk security core.

This is the ONLY module that imports from auth/, orders/ and audit/ together.
It is the contract the (external) HTTP layer calls: route handlers parse
forms and cookies, call one method here, and map the typed result to a
response. Nothing here raises for an expected failure; every method returns
either its value or one of the outcome types from auth/models.py,
auth/permissions.py or orders/models.py.

Audit contract enforced here on top of the stores:
  - input validation failures     -> validation.register / validation.order
  - route-gate denials            -> access.forbidden
  - missing or forbidden orders   -> access.order.update / access.order.delete
    (forbidden covers both the route gate and ownership)
Authentication, registration and password-change outcomes are audited by
UserStore itself; successful order mutations by OrderStore.

Usage:
    svc = build_service()
    user = svc.register("alice@example.com", "Alice", "Str0ng!Pass", confirm="Str0ng!Pass")
    session = svc.login("alice@example.com", "Str0ng!Pass", ip="10.0.0.1")
    resolved = svc.resolve_session(session.token)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from audit.models import LogEntry, Outcome
from audit.store import AuditLog
from auth.hashing import CredentialHasher
from auth.models import (
    AuthFailure,
    PasswordChangeFailure,
    RegistrationFailure,
    Role,
    Session,
    User,
    ValidationFailure,
)
from auth.permissions import (
    AUDIT_LOG_ROUTE,
    ORDER_DELETE_ROUTE,
    ORDER_LIST_ROUTE,
    ORDER_UPDATE_ROUTE,
    ROUTE_RESTRICTIONS,
    Decision,
    check_route,
    decide,
    required_roles,
    visible_to,
)
from auth.sessions import SessionManager
from auth.store import UserStore
from core.clock import Clock, utc_now
from core.config import Settings, configure_logging, get_settings
from core.policy import validate_email, validate_name, validate_order_input, validate_password
from orders.models import Order, OrderFailure, OrderStatus
from orders.store import OrderStore

logger = logging.getLogger("orderdesk.service")


class OrderDeskService:
    """One process-wide instance wires every component to a shared audit log."""

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Clock = utc_now,
        hasher: CredentialHasher | None = None,
        restrictions: Mapping[str, frozenset[Role]] = ROUTE_RESTRICTIONS,
    ) -> None:
        self.settings = settings or get_settings()
        self.restrictions = restrictions
        self.audit = AuditLog(self.settings, clock)
        self.hasher = hasher or CredentialHasher.from_settings(self.settings)
        self.users = UserStore(self.hasher, self.audit, self.settings, clock)
        self.sessions = SessionManager(self.users, self.settings, clock)
        self.orders = OrderStore(self.audit, clock)

    def seed_admin(self) -> User | None:
        """Register the configured administrator once. Returns it, or None if seeding is off."""
        cfg = self.settings
        if not cfg.seed_admin_password:
            return None
        existing = self.users.find_by_email(cfg.seed_admin_email)
        if existing is not None:
            return existing
        result = self.users.register(cfg.seed_admin_email, cfg.seed_admin_name, cfg.seed_admin_password, role=Role.ADMIN)
        if isinstance(result, RegistrationFailure):
            # Lost a race with another seeder; the account exists either way.
            return self.users.find_by_email(cfg.seed_admin_email)
        logger.info("Seeded administrator account %s", result.id)
        return result

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def register(
        self, email: str, name: str, password: str, confirm: str | None = None
    ) -> User | ValidationFailure | RegistrationFailure:
        email = email.strip()
        name = name.strip()
        error = validate_email(email) or validate_name(name) or validate_password(password)
        if error is None and confirm is not None and password != confirm:
            self.audit.record("validation.register", Outcome.FAILURE, detail="Password mismatch")
            return ValidationFailure("Passwords do not match.")
        if error is not None:
            self.audit.record("validation.register", Outcome.FAILURE, detail=error)
            return ValidationFailure(error)
        return self.users.register(email, name, password)

    def authenticate(self, email: str, password: str, ip: str | None = None) -> User | AuthFailure:
        if not email or not password:
            self.audit.record("auth.login", Outcome.FAILURE, detail="Missing credentials", ip=ip)
            return AuthFailure.BAD_CREDENTIALS
        return self.users.authenticate(email, password, ip)

    def login(self, email: str, password: str, ip: str | None = None) -> Session | AuthFailure:
        """authenticate() and, on success, mint a session."""
        result = self.authenticate(email, password, ip)
        if isinstance(result, AuthFailure):
            return result
        return self.sessions.create(result)

    def logout(self, token: str | None) -> None:
        self.sessions.destroy(token)

    def change_password(
        self, user: User, current: str, new: str, confirm: str | None = None
    ) -> PasswordChangeFailure | ValidationFailure | None:
        """Returns None on success."""
        error = validate_password(new)
        if error is not None:
            return ValidationFailure(error)
        if confirm is not None and new != confirm:
            return ValidationFailure("Passwords do not match.")
        return self.users.change_password(user, current, new)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, user: User) -> Session:
        return self.sessions.create(user)

    def resolve_session(self, token: str | None) -> tuple[Session, User] | None:
        return self.sessions.resolve(token)

    def destroy_session(self, token: str | None) -> None:
        self.sessions.destroy(token)

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    def authorize_operation(self, actor: User, operation: str) -> Decision:
        """Route gate. A DENY is audited as access.forbidden before returning."""
        decision = check_route(actor.role, operation, self.restrictions)
        if not decision.allowed:
            self.audit.record("access.forbidden", Outcome.FAILURE, user_id=actor.id, detail=operation)
            logger.info("Denied %s to user %s (%s)", operation, actor.id, actor.role.value)
        return decision

    def authorize_list(self, actor: User) -> list[Order]:
        """Orders `actor` may see: all for Admin/Manager, own for Customer.

        An actor the route gate turns away from the order list sees nothing.
        """
        if not self.authorize_operation(actor, ORDER_LIST_ROUTE).allowed:
            return []
        return visible_to(actor, self.orders.list_all())

    def authorize_mutate(self, actor: User, order: Order, operation: str = ORDER_UPDATE_ROUTE) -> bool:
        """Route gate for `operation` first, then ownership."""
        required = required_roles(operation, self.restrictions)
        return decide(actor.role, actor.id, order.owner_id, required).allowed

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_order(self, actor: User, description: str, quantity: float) -> Order | ValidationFailure:
        description = description.strip()
        error = validate_order_input(description, quantity)
        if error is not None:
            self.audit.record("validation.order", Outcome.FAILURE, user_id=actor.id, detail=error)
            return ValidationFailure(error)
        return self.orders.add(actor.id, description, quantity)

    def update_order(
        self,
        actor: User,
        order_id: str,
        description: str,
        quantity: float,
        status: OrderStatus | str = OrderStatus.PENDING,
    ) -> Order | ValidationFailure | OrderFailure:
        description = description.strip()
        error = validate_order_input(description, quantity)
        if error is None:
            try:
                status = OrderStatus(status)
            except ValueError:
                error = "Invalid order status."
        if error is not None:
            self.audit.record("validation.order", Outcome.FAILURE, user_id=actor.id, detail=error)
            return ValidationFailure(error)

        failure = self._check_order_access(actor, order_id, ORDER_UPDATE_ROUTE, "access.order.update")
        if failure is not None:
            return failure
        updated = self.orders.update(order_id, actor.id, description=description, quantity=quantity, status=status)
        if updated is None:
            # Deleted between the access check and the update.
            self.audit.record("access.order.update", Outcome.FAILURE, user_id=actor.id, detail=order_id)
            return OrderFailure.NOT_FOUND
        return updated

    def delete_order(self, actor: User, order_id: str) -> OrderFailure | None:
        """Returns None on success."""
        failure = self._check_order_access(actor, order_id, ORDER_DELETE_ROUTE, "access.order.delete")
        if failure is not None:
            return failure
        if not self.orders.delete(order_id, actor.id):
            self.audit.record("access.order.delete", Outcome.FAILURE, user_id=actor.id, detail=order_id)
            return OrderFailure.NOT_FOUND
        return None

    def _check_order_access(self, actor: User, order_id: str, operation: str, action: str) -> OrderFailure | None:
        order = self.orders.get(order_id)
        if order is None:
            failure = OrderFailure.NOT_FOUND
        elif not self.authorize_mutate(actor, order, operation):
            failure = OrderFailure.FORBIDDEN
        else:
            return None
        self.audit.record(action, Outcome.FAILURE, user_id=actor.id, detail=order_id)
        return failure

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def record_audit_event(
        self,
        action: str,
        outcome: Outcome,
        actor_id: str | None = None,
        detail: str | None = None,
        ip: str | None = None,
    ) -> None:
        self.audit.record(action, outcome, user_id=actor_id, detail=detail, ip=ip)

    def list_audit_events(self, limit: int | None = None) -> list[LogEntry]:
        return self.audit.list(limit)

    def view_audit_log(self, actor: User, limit: int | None = None) -> list[LogEntry] | Decision:
        """The admin log page: route-gated, then newest-first entries."""
        decision = self.authorize_operation(actor, AUDIT_LOG_ROUTE)
        if not decision.allowed:
            return decision
        return self.audit.list(limit)


def build_service(settings: Settings | None = None, clock: Clock = utc_now) -> OrderDeskService:
    """Configure logging, assemble the core and seed the administrator."""
    cfg = settings or get_settings()
    configure_logging(cfg)
    service = OrderDeskService(cfg, clock)
    service.seed_admin()
    logger.info("OrderDesk core ready (lockout after %d failures)", cfg.lockout_threshold)
    return service
