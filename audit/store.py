"""
audit/store.py -- In-process, ring-bounded audit ledger.

Newest entries sit at the front. Once the ledger holds `capacity` entries,
recording another evicts the oldest one. Reads are non-destructive copies,
so a caller holding a list never observes later evictions.

Thread safety: one lock guards the deque. record() and list() are O(1) and
O(limit) respectively, so contention stays negligible even though every other
component writes here.

Usage:
    audit = AuditLog()
    audit.record("auth.login", Outcome.FAILURE, user_id=uid, detail="Failed attempts: 1")
    recent = audit.list(50)   # newest first
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from itertools import islice

from audit.models import LogEntry, Outcome
from core.clock import Clock, utc_now
from core.config import Settings, get_settings
from core.ids import generate_id

logger = logging.getLogger("orderdesk.audit")


class AuditLog:
    def __init__(self, settings: Settings | None = None, clock: Clock = utc_now) -> None:
        cfg = settings or get_settings()
        self.capacity = cfg.audit_capacity
        self.default_limit = cfg.audit_default_limit
        self._clock = clock
        self._entries: deque[LogEntry] = deque(maxlen=self.capacity)
        self._lock = threading.Lock()

    def record(
        self,
        action: str,
        outcome: Outcome,
        user_id: str | None = None,
        detail: str | None = None,
        ip: str | None = None,
    ) -> LogEntry:
        """Prepend a new entry and return it. The oldest entry drops off when full."""
        entry = LogEntry(
            id=generate_id(),
            action=action,
            outcome=outcome,
            created_at=self._clock(),
            user_id=user_id,
            detail=detail,
            ip=ip,
        )
        with self._lock:
            # deque(maxlen=...) discards from the opposite end on appendleft.
            self._entries.appendleft(entry)
        logger.debug("%s %s user=%s", action, outcome.value, user_id)
        return entry

    def list(self, limit: int | None = None) -> list[LogEntry]:
        """Return up to `limit` entries, newest first. Non-positive limits return []."""
        n = self.default_limit if limit is None else limit
        if n <= 0:
            return []
        with self._lock:
            return list(islice(self._entries, n))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
