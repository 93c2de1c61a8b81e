"""
audit/models.py -- Domain dataclasses for the audit ledger.

Pure data containers with zero logic. LogEntry is frozen: entries are never
updated after they are recorded, only evicted once the ledger is full.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Outcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass(frozen=True)
class LogEntry:
    """One security-relevant event.

    action is a dotted tag ("auth.login", "order.update", "access.forbidden").
    user_id is None for events with no resolved actor (e.g. a login attempt
    against an unknown email, or a registration that failed validation).
    ip is the caller-supplied origin address, best effort.
    """

    id: str
    action: str
    outcome: Outcome
    created_at: datetime
    user_id: str | None = None
    detail: str | None = None
    ip: str | None = None
