"""
tests/test_concurrency.py -- Store behavior under concurrent callers.

KDF work runs outside the store lock, so these tests fire many requests at
one account at once and check the bookkeeping that is applied afterwards.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from auth.models import AuthFailure, PasswordChangeFailure, RegistrationFailure, User
from auth.sessions import SessionManager
from auth.store import UserStore
from audit.store import AuditLog
from tests.conftest import PASSWORD, WRONG_PASSWORD, FakeClock

WORKERS = 8


def _run(fn: Callable[[int], object], n: int) -> list:
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        return list(pool.map(fn, range(n)))


class TestConcurrentLogin:
    def test_failures_stop_counting_at_threshold(
        self, users: UserStore, audit: AuditLog, make_user: Callable[..., User]
    ) -> None:
        alice = make_user("alice@example.com")
        results = _run(lambda _: users.authenticate("alice@example.com", WRONG_PASSWORD), 20)

        assert all(isinstance(r, AuthFailure) for r in results)
        assert results.count(AuthFailure.BAD_CREDENTIALS) == 5
        assert users.get_by_id(alice.id).failed_attempts == 5
        assert users.is_locked(alice)

        logins = [e for e in audit.list(100) if e.action == "auth.login"]
        assert len(logins) == 20

    def test_locked_account_rejects_correct_password(
        self, users: UserStore, make_user: Callable[..., User]
    ) -> None:
        make_user("alice@example.com")
        _run(lambda _: users.authenticate("alice@example.com", WRONG_PASSWORD), 10)
        results = _run(lambda _: users.authenticate("alice@example.com", PASSWORD), 5)
        assert results == [AuthFailure.LOCKED] * 5


class TestConcurrentRegistration:
    def test_one_account_per_email(self, users: UserStore) -> None:
        results = _run(lambda i: users.register("Bob@Example.com", f"Bob {chr(65 + i)}", PASSWORD), 10)
        created = [r for r in results if isinstance(r, User)]
        assert len(created) == 1
        assert results.count(RegistrationFailure.DUPLICATE_EMAIL) == 9
        assert users.find_by_email("bob@example.com").id == created[0].id


class TestConcurrentPasswordChange:
    def test_exactly_one_change_wins(
        self, users: UserStore, clock: FakeClock, make_user: Callable[..., User]
    ) -> None:
        alice = make_user("alice@example.com")
        clock.advance(days=2)
        results = _run(lambda i: users.change_password(alice, PASSWORD, f"N3w!Password{i}"), 6)

        assert results.count(None) == 1
        assert results.count(PasswordChangeFailure.TOO_RECENT) == 5
        winner = results.index(None)
        assert isinstance(users.authenticate("alice@example.com", f"N3w!Password{winner}"), User)
        assert len(users.get_by_id(alice.id).password_history) == 2


class TestConcurrentSessions:
    def test_resolve_racing_destroy(self, sessions: SessionManager, make_user: Callable[..., User]) -> None:
        bob = make_user("bob@example.com")
        token = sessions.create(bob).token

        def _step(i: int):
            if i == 10:
                sessions.destroy(token)
                return None
            return sessions.resolve(token)

        for result in _run(_step, 30):
            if result is not None:
                session, user = result
                assert session.token == token
                assert user.id == bob.id
        assert sessions.resolve(token) is None
        assert len(sessions) == 0
