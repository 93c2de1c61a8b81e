"""
auth/store.py -- In-process credential store: users, lockout and password rotation.

Pattern: Repository. UserStore is the only owner of User records; everything
else receives copies. Route glue never reaches the underlying dicts.

Indexes:
  _users  email (lowercase) -> User   primary table, natural key
  _emails id -> email                 secondary index for id lookups
  Both are updated together under _lock, so they never disagree.

Concurrency:
  One lock guards both indexes and every read-modify-write of a User. KDF
  work (hash/verify) never runs under the lock: each mutating operation takes
  a snapshot, does the expensive crypto unlocked, then re-acquires the lock
  and applies its change only if the snapshot is still current. Every
  operation is all-or-nothing from an outside observer's point of view.

Lockout state machine:
  Unlocked(n) --failure--> Unlocked(n+1), or Locked(until=now+lockout) once
  n+1 >= threshold. While now < until every attempt fails with LOCKED and the
  counter is left alone. Expiry alone does NOT reset the counter: the next
  failure after expiry re-locks immediately. Only a successful login resets it.

Audit:
  Every outcome of register/authenticate/change_password writes exactly one
  AuditLog entry. Audit records are written after the store lock is released.

Layer rule: no imports from orders/ or service.py.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from datetime import timedelta

from audit.models import Outcome
from audit.store import AuditLog
from auth.hashing import CredentialHasher
from auth.models import (
    AuthFailure,
    LoginResult,
    PasswordChangeFailure,
    PasswordHistoryEntry,
    RegistrationFailure,
    Role,
    User,
)
from core.clock import Clock, utc_now
from core.config import Settings, get_settings
from core.ids import generate_id

logger = logging.getLogger("orderdesk.auth")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _copy(user: User) -> User:
    # History entries are frozen, so a shallow list copy detaches the caller.
    return dataclasses.replace(user, password_history=list(user.password_history))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(CredentialHasher.from_settings(), AuditLog())
        user = store.register("alice@example.com", "Alice", "Str0ng!Pass")
        result = store.authenticate("alice@example.com", "Str0ng!Pass", "10.0.0.1")
        if isinstance(result, AuthFailure):
            ...
    """

    def __init__(
        self,
        hasher: CredentialHasher,
        audit: AuditLog,
        settings: Settings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        cfg = settings or get_settings()
        self._hasher = hasher
        self._audit = audit
        self._clock = clock
        self.lockout_threshold = cfg.lockout_threshold
        self.lockout_duration = timedelta(minutes=cfg.lockout_minutes)
        self.history_limit = cfg.password_history_limit
        self.min_password_age = timedelta(hours=cfg.min_password_age_hours)
        self._users: dict[str, User] = {}
        self._emails: dict[str, str] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with self._lock:
            return bool(self._users)

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self._lock:
            user = self._users.get(_normalize_email(email))
            return _copy(user) if user is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by id through the secondary index. Returns None if not found."""
        with self._lock:
            user = self._get_by_id_locked(user_id)
            return _copy(user) if user is not None else None

    def is_locked(self, user: User) -> bool:
        """True while the stored lock_until for this user lies in the future."""
        with self._lock:
            record = self._get_by_id_locked(user.id)
            return record is not None and self._locked(record)

    def _get_by_id_locked(self, user_id: str) -> User | None:
        email = self._emails.get(user_id)
        return self._users.get(email) if email is not None else None

    def _locked(self, user: User) -> bool:
        return user.lock_until is not None and self._clock() < user.lock_until

    # ------------------------------------------------------------------
    # Registration and removal
    # ------------------------------------------------------------------

    def register(self, email: str, name: str, password: str, role: Role = Role.CUSTOMER) -> User | RegistrationFailure:
        """Create a user with a one-entry password history.

        Input policy is the caller's job (see service.py); this method only
        enforces email uniqueness. The duplicate check runs before hashing so
        a collision costs no KDF work, and again before insert so a concurrent
        registration of the same email cannot slip through.
        """
        key = _normalize_email(email)
        with self._lock:
            duplicate = key in self._users
        if duplicate:
            return self._registration_failed()

        password_hash = self._hasher.hash(password)
        now = self._clock()
        user = User(
            id=generate_id(),
            email=key,
            name=name,
            role=role,
            password_hash=password_hash,
            password_changed_at=now,
            password_history=[PasswordHistoryEntry(hash=password_hash, changed_at=now)],
        )
        with self._lock:
            if key in self._users:
                duplicate = True
            else:
                self._users[key] = user
                self._emails[user.id] = key
                result = _copy(user)
        if duplicate:
            return self._registration_failed()

        self._audit.record("user.register", Outcome.SUCCESS, user_id=user.id, detail=f"Registered {key}")
        logger.info("Registered user %s with role %s", user.id, role.value)
        return result

    def _registration_failed(self) -> RegistrationFailure:
        self._audit.record("user.register", Outcome.FAILURE, detail="Duplicate or invalid data")
        logger.info("Registration rejected for an existing email")
        return RegistrationFailure.DUPLICATE_EMAIL

    def delete_user(self, user_id: str) -> bool:
        """Remove a user and its id index entry. Returns False if not found.

        Sessions owned by the user are not touched here; SessionManager drops
        them lazily on their next lookup.
        """
        with self._lock:
            email = self._emails.pop(user_id, None)
            if email is not None:
                del self._users[email]
        if email is None:
            return False
        self._audit.record("user.delete", Outcome.SUCCESS, user_id=user_id)
        logger.info("Deleted user %s", user_id)
        return True

    # ------------------------------------------------------------------
    # Authentication and lockout
    # ------------------------------------------------------------------

    def authenticate(self, email: str, password: str, ip: str | None = None) -> User | AuthFailure:
        """Verify a login attempt and apply lockout bookkeeping.

        Unknown emails still run one KDF verification against the hasher's
        dummy hash and fail with BAD_CREDENTIALS, indistinguishable from a
        wrong password.
        """
        key = _normalize_email(email)
        with self._lock:
            user = self._users.get(key)
            locked = user is not None and self._locked(user)
            user_id = user.id if user is not None else None
            stored_hash = user.password_hash if user is not None else self._hasher.dummy_hash

        if user_id is None:
            # Equalize timing -- do NOT return before running the KDF.
            self._hasher.verify(password, stored_hash)
            self._audit.record("auth.login", Outcome.FAILURE, detail="Unknown account", ip=ip)
            return AuthFailure.BAD_CREDENTIALS
        if locked:
            self._audit.record("auth.login", Outcome.FAILURE, user_id=user_id, detail="Locked", ip=ip)
            return AuthFailure.LOCKED

        matches = self._hasher.verify(password, stored_hash)

        with self._lock:
            record = self._get_by_id_locked(user_id)
            if record is None:
                outcome: User | AuthFailure = AuthFailure.BAD_CREDENTIALS
                detail = "Unknown account"
            elif self._locked(record):
                # Another attempt locked the account while this one was hashing.
                outcome, detail = AuthFailure.LOCKED, "Locked"
            elif not matches:
                attempts = self._record_failure_locked(record)
                outcome, detail = AuthFailure.BAD_CREDENTIALS, f"Failed attempts: {attempts}"
            else:
                self._record_success_locked(record)
                outcome, detail = _copy(record), None

        if isinstance(outcome, User):
            self._audit.record("auth.login", Outcome.SUCCESS, user_id=user_id, ip=ip)
        else:
            self._audit.record("auth.login", Outcome.FAILURE, user_id=user_id, detail=detail, ip=ip)
        return outcome

    def _record_failure_locked(self, user: User) -> int:
        now = self._clock()
        user.failed_attempts += 1
        user.last_login_at = now
        user.last_login_result = LoginResult.FAILURE
        if user.failed_attempts >= self.lockout_threshold:
            user.lock_until = now + self.lockout_duration
            logger.warning("Locked user %s after %d failed attempts", user.id, user.failed_attempts)
        return user.failed_attempts

    def _record_success_locked(self, user: User) -> None:
        user.failed_attempts = 0
        user.lock_until = None
        user.last_login_at = self._clock()
        user.last_login_result = LoginResult.SUCCESS

    # ------------------------------------------------------------------
    # Password rotation
    # ------------------------------------------------------------------

    def change_password(self, user: User, current_password: str, new_password: str) -> PasswordChangeFailure | None:
        """Rotate a password. Returns None on success, a PasswordChangeFailure otherwise.

        Checks run in a fixed order: minimum age, current password, reuse
        against every retained history entry. The new hash is only applied if
        the stored hash is still the one verified here; if another change won
        the race the result is TOO_RECENT.
        """
        with self._lock:
            record = self._get_by_id_locked(user.id)
            if record is not None:
                changed_at = record.password_changed_at
                stored_hash = record.password_hash
                history = [entry.hash for entry in record.password_history]
        if record is None:
            return PasswordChangeFailure.UNKNOWN_USER

        if self._clock() - changed_at < self.min_password_age:
            return self._change_failed(user.id, PasswordChangeFailure.TOO_RECENT)
        if not self._hasher.verify(current_password, stored_hash):
            return self._change_failed(user.id, PasswordChangeFailure.WRONG_CURRENT)
        if any(self._hasher.verify(new_password, old) for old in history):
            return self._change_failed(user.id, PasswordChangeFailure.REUSED)
        new_hash = self._hasher.hash(new_password)

        with self._lock:
            record = self._get_by_id_locked(user.id)
            if record is None:
                failure: PasswordChangeFailure | None = PasswordChangeFailure.UNKNOWN_USER
            elif record.password_hash != stored_hash:
                failure = PasswordChangeFailure.TOO_RECENT
            else:
                now = self._clock()
                record.password_hash = new_hash
                record.password_changed_at = now
                record.password_history.insert(0, PasswordHistoryEntry(hash=new_hash, changed_at=now))
                del record.password_history[self.history_limit :]
                failure = None

        if failure is not None:
            if failure is PasswordChangeFailure.UNKNOWN_USER:
                return failure
            return self._change_failed(user.id, failure)
        self._audit.record("user.password.change", Outcome.SUCCESS, user_id=user.id)
        logger.info("Password changed for user %s", user.id)
        return None

    def _change_failed(self, user_id: str, failure: PasswordChangeFailure) -> PasswordChangeFailure:
        self._audit.record("user.password.change", Outcome.FAILURE, user_id=user_id, detail=failure.message)
        return failure
