"""Persistent login sessions and the per-user concurrent-session cap."""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.models import UserSession

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Session rows for one DB session. Does not commit; the caller owns the transaction.

    A session is active while is_active is set and refresh_token_expires_at is in the
    future. Expired rows are never counted, so they never trigger eviction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _active_query(self, user_id: int, now: datetime):
        return (
            self.db.query(UserSession)
            .filter(
                UserSession.user_id == user_id,
                UserSession.is_active.is_(True),
                UserSession.refresh_token_expires_at > now,
            )
        )

    def list_active(self, user_id: int, now: datetime | None = None) -> list[UserSession]:
        """Active sessions for user_id, oldest created first (id breaks ties)."""
        now = now or datetime.now(timezone.utc)
        return (
            self._active_query(user_id, now)
            .order_by(UserSession.created_at.asc(), UserSession.id.asc())
            .all()
        )

    def count_active(self, user_id: int, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        return self._active_query(user_id, now).count()

    def enforce_cap_before_insert(
        self, user_id: int, max_sessions: int, now: datetime | None = None
    ) -> int:
        """
        Make room for one new session under max_sessions.

        With n active sessions and n >= max_sessions, deletes the oldest
        n - max_sessions + 1 of them. Returns the number deleted.
        """
        active = self.list_active(user_id, now)
        overflow = len(active) - max_sessions + 1
        if overflow <= 0:
            return 0
        evicted = active[:overflow]
        for row in evicted:
            self.db.delete(row)
        self.db.flush()
        logger.info(
            "Evicted %s session(s) for user_id=%s (max_sessions=%s)",
            len(evicted),
            user_id,
            max_sessions,
        )
        return len(evicted)

    def create(self, **fields) -> UserSession:
        """Insert a new active session row and flush so it gets an id."""
        row = UserSession(is_active=True, **fields)
        self.db.add(row)
        self.db.flush()
        return row

    def admit(self, user_id: int, max_sessions: int, **fields) -> tuple[UserSession, int]:
        """Evict down to the cap, then insert. Returns (new session, evicted count)."""
        evicted = self.enforce_cap_before_insert(user_id, max_sessions)
        row = self.create(user_id=user_id, **fields)
        return row, evicted

    def get_by_access_token_digest(self, digest: str) -> UserSession | None:
        return (
            self.db.query(UserSession)
            .filter(UserSession.access_token_hash == digest)
            .first()
        )

    def delete_by_access_token_digest(self, digest: str) -> int:
        """Delete the session(s) matching digest. Returns 0 when nothing matched; never raises for that."""
        return (
            self.db.query(UserSession)
            .filter(UserSession.access_token_hash == digest)
            .delete(synchronize_session=False)
        )
