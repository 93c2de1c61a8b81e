"""
auth/models.py -- Domain dataclasses and typed outcomes for authentication.

Pattern: Data class (pure data container, zero logic). Stores do the work;
these types own the shape. Expected failures are values of the enums below,
returned rather than raised, so route glue can branch on them with `is` or
isinstance and show `.message` to the user.

Layer rule: no imports from orders/ or service.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CUSTOMER = "CUSTOMER"


class LoginResult(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass(frozen=True)
class PasswordHistoryEntry:
    hash: str
    changed_at: datetime


@dataclass
class User:
    """An identity record owned exclusively by UserStore.

    email is the natural key and is always stored lowercase.
    password_history is newest first and always starts with the entry for
    password_hash; UserStore caps its length at the configured limit.

    Callers only ever receive copies. Mutating a returned User has no effect
    on the store.
    """

    id: str
    email: str
    name: str
    role: Role
    password_hash: str
    password_changed_at: datetime
    password_history: list[PasswordHistoryEntry] = field(default_factory=list)
    failed_attempts: int = 0
    lock_until: datetime | None = None
    last_login_at: datetime | None = None
    last_login_result: LoginResult | None = None

    def __repr__(self) -> str:
        """Safe representation without password material."""
        return f"User(id={self.id!r}, email={self.email!r}, role={self.role.value})"


@dataclass
class Session:
    """Proof of a prior successful authentication.

    user_id is a weak reference: SessionManager never owns the User and drops
    the session on the next lookup if the user has gone away.
    """

    token: str
    user_id: str
    created_at: datetime
    last_seen_at: datetime

    def __repr__(self) -> str:
        """Safe representation without the token."""
        return f"Session(user_id={self.user_id!r}, created_at={self.created_at.isoformat()})"


# ---------------------------------------------------------------------------
# Typed outcomes
# ---------------------------------------------------------------------------


class AuthFailure(str, Enum):
    """Why authenticate() refused. Unknown email and wrong password are both
    BAD_CREDENTIALS so the message never confirms an account exists."""

    LOCKED = "LOCKED"
    BAD_CREDENTIALS = "BAD_CREDENTIALS"

    @property
    def message(self) -> str:
        if self is AuthFailure.LOCKED:
            return "Account temporarily locked. Please try again later."
        return "Invalid username and/or password"


class PasswordChangeFailure(str, Enum):
    TOO_RECENT = "TOO_RECENT"
    WRONG_CURRENT = "WRONG_CURRENT"
    REUSED = "REUSED"
    UNKNOWN_USER = "UNKNOWN_USER"

    @property
    def message(self) -> str:
        return _PASSWORD_CHANGE_MESSAGES[self]


_PASSWORD_CHANGE_MESSAGES = {
    PasswordChangeFailure.TOO_RECENT: "Password was changed too recently.",
    PasswordChangeFailure.WRONG_CURRENT: "Current password is incorrect.",
    PasswordChangeFailure.REUSED: "Cannot reuse a previous password.",
    PasswordChangeFailure.UNKNOWN_USER: "User not found",
}


class RegistrationFailure(str, Enum):
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"

    @property
    def message(self) -> str:
        # Deliberately vague: never confirm which field collided.
        return "Unable to register with those details."


@dataclass(frozen=True)
class ValidationFailure:
    """An input policy violation; message comes straight from core/policy.py."""

    message: str
