"""
auth/sessions.py -- Opaque session tokens mapped to user ids.

Security design decisions:
  Tokens: secrets.token_hex(session_token_bytes), 256 bits by default. The
      token is the primary key and the only thing the transport layer carries
      (as an httpOnly cookie); it is never logged.

  No time-based expiry here. How long a session may live is decided by the
      transport layer (cookie max-age). This manager only forgets a session on
      explicit destroy() or when its owner no longer exists.

  Lazy reconciliation: a session whose user_id no longer resolves through
      UserStore is purged on the lookup that discovers it. There is no
      background sweep.

Concurrency:
  One lock guards the token table. resolve() performs the lookup, the user
  check, the purge and the last-seen refresh inside a single critical
  section, so a concurrent destroy() of the same token is observed either
  entirely before or entirely after. Lock order is sessions -> users;
  UserStore never calls back into this module.

Layer rule: no imports from orders/ or service.py.
"""

from __future__ import annotations

import dataclasses
import logging
import secrets
import threading

from auth.models import Session, User
from auth.store import UserStore
from core.clock import Clock, utc_now
from core.config import Settings, get_settings

logger = logging.getLogger("orderdesk.sessions")


class SessionManager:
    def __init__(self, users: UserStore, settings: Settings | None = None, clock: Clock = utc_now) -> None:
        cfg = settings or get_settings()
        self._users = users
        self._clock = clock
        self.token_bytes = cfg.session_token_bytes
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, user: User) -> Session:
        """Mint a new session for an authenticated user."""
        now = self._clock()
        session = Session(token=secrets.token_hex(self.token_bytes), user_id=user.id, created_at=now, last_seen_at=now)
        with self._lock:
            self._sessions[session.token] = session
            result = dataclasses.replace(session)
        logger.debug("Session created for user %s", user.id)
        return result

    def resolve(self, token: str | None) -> tuple[Session, User] | None:
        """Return (session, user) for a live token, or None.

        None covers an absent token, an unknown token, and a token whose owner
        has been removed -- in that last case the session is deleted as well.
        """
        if not token:
            return None
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            user = self._users.get_by_id(session.user_id)
            if user is None:
                del self._sessions[token]
                logger.info("Purged session for missing user %s", session.user_id)
                return None
            session.last_seen_at = self._clock()
            return dataclasses.replace(session), user

    def destroy(self, token: str | None) -> None:
        """Forget a token. Unknown or absent tokens are a no-op."""
        if not token:
            return
        with self._lock:
            removed = self._sessions.pop(token, None)
        if removed is not None:
            logger.debug("Session destroyed for user %s", removed.user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
