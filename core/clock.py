"""
core/clock.py -- Wall-clock source shared by every store.

Stores take a Clock callable instead of calling datetime.now() directly so
lockout expiry and minimum password age can be tested without sleeping.
All timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
