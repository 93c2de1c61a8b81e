"""
tests/conftest.py -- Shared test fixtures for the OrderDesk core.

This module provides:
  - FakeClock: a settable, advanceable wall clock shared by every store
  - settings: Settings with a one-round KDF so hashing stays fast
  - hasher / audit / users / sessions / orders: isolated component instances
  - service: a fully wired OrderDeskService on the same clock
  - make_user: register-and-return helper for any role

Design: every fixture is function-scoped except the hasher. Stores hold
all state in memory, so a fresh instance per test is the whole isolation
story -- no teardown needed. The hasher is stateless apart from its dummy
hash, so one per session saves a KDF run per test.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from audit.store import AuditLog
from auth.hashing import CredentialHasher
from auth.models import Role, User
from auth.sessions import SessionManager
from auth.store import UserStore
from core.config import Settings
from orders.store import OrderStore
from service import OrderDeskService

PASSWORD = "Str0ng!Pass"
WRONG_PASSWORD = "Wr0ng!Pass"


class FakeClock:
    """Callable clock. Tests move time forward explicitly with advance()."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(kdf_rounds=1)


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=1)


@pytest.fixture
def audit(settings: Settings, clock: FakeClock) -> AuditLog:
    return AuditLog(settings, clock)


@pytest.fixture
def users(hasher: CredentialHasher, audit: AuditLog, settings: Settings, clock: FakeClock) -> UserStore:
    return UserStore(hasher, audit, settings, clock)


@pytest.fixture
def sessions(users: UserStore, settings: Settings, clock: FakeClock) -> SessionManager:
    return SessionManager(users, settings, clock)


@pytest.fixture
def orders(audit: AuditLog, clock: FakeClock) -> OrderStore:
    return OrderStore(audit, clock)


@pytest.fixture
def service(settings: Settings, clock: FakeClock, hasher: CredentialHasher) -> OrderDeskService:
    return OrderDeskService(settings, clock, hasher)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(users: UserStore) -> Callable[..., User]:
    """Register a user directly in a store and return it.

    Defaults to the `users` fixture; pass store=service.users for service tests.
    """

    def _make(email: str, role: Role = Role.CUSTOMER, name: str = "Test User", store: UserStore | None = None) -> User:
        result = (store or users).register(email, name, PASSWORD, role=role)
        assert isinstance(result, User), result
        return result

    return _make
