"""
core/policy.py -- Input policy validators for credentials, profiles and orders.

Every validator is a pure function returning None when the input is valid or
a human-readable violation message when it is not. Messages are safe to show
to the end user verbatim. No validator touches shared state, so they may be
called before authentication and as often as callers like.

All layers that need these rules (registration, password change, order
actions, the seed-admin check in core/config.py) import from here.
"""

from __future__ import annotations

import math
import re

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

PASSWORD_MIN_LENGTH = 10
PASSWORD_RULE_DESCRIPTION = "Min 10 chars with uppercase, lowercase, number, and special character"

NAME_MIN_LENGTH = 2
DESCRIPTION_MIN_LENGTH = 3
DESCRIPTION_MAX_LENGTH = 100
QUANTITY_MIN = 1
QUANTITY_MAX = 1000

# Patterns are ASCII-only on purpose: "\w" and "\s" would otherwise accept the
# whole Unicode letter and space categories.
_PASSWORD_CLASSES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"[0-9]"),
    re.compile(r"[^A-Za-z0-9]"),
)
_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_NAME_PATTERN = re.compile(r"[a-zA-Z\s'.-]+", re.ASCII)
_DESCRIPTION_PATTERN = re.compile(r"[\w\s.,'-]+", re.ASCII)


# ---------------------------------------------------------------------------
# Credentials and profile
# ---------------------------------------------------------------------------


def validate_password(password: str) -> str | None:
    """Check length and the four required character classes."""
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long."
    if not all(pattern.search(password) for pattern in _PASSWORD_CLASSES):
        return "Password must include uppercase, lowercase, digit, and special character."
    return None


def validate_email(email: str) -> str | None:
    if not email or not _EMAIL_PATTERN.fullmatch(email):
        return "Invalid email address."
    return None


def validate_name(name: str) -> str | None:
    """Display names: at least two characters once trimmed, letters and a few separators."""
    if not name or len(name.strip()) < NAME_MIN_LENGTH:
        return f"Name must be at least {NAME_MIN_LENGTH} characters."
    if not _NAME_PATTERN.fullmatch(name):
        return "Name contains invalid characters."
    return None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


def validate_description(description: str) -> str | None:
    if not description or not DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        return f"Description must be {DESCRIPTION_MIN_LENGTH}-{DESCRIPTION_MAX_LENGTH} characters."
    if not _DESCRIPTION_PATTERN.fullmatch(description):
        return "Description contains invalid characters."
    return None


def validate_quantity(quantity: object) -> str | None:
    """Accept any finite real number in [1, 1000]; bools and non-numbers are rejected."""
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        return f"Quantity must be between {QUANTITY_MIN} and {QUANTITY_MAX}."
    if not math.isfinite(quantity) or not QUANTITY_MIN <= quantity <= QUANTITY_MAX:
        return f"Quantity must be between {QUANTITY_MIN} and {QUANTITY_MAX}."
    return None


def validate_order_input(description: str, quantity: object) -> str | None:
    """Description first, then quantity -- the first violation wins."""
    return validate_description(description) or validate_quantity(quantity)
