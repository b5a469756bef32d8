"""Purge of dead user_sessions rows: refresh token expired, or session revoked, before the cutoff."""

import logging
from datetime import datetime, timezone, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.models import UserSession

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def purge_cutoff(settings: "Settings", now: datetime | None = None) -> datetime:
    """Rows that died before this instant are eligible for deletion."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(hours=settings.RETENTION_HOURS)


def run_retention(session: Session, settings: "Settings") -> int:
    """
    Delete sessions that have been dead for longer than RETENTION_HOURS.

    A session is dead once its refresh token has expired or it was revoked. Dead rows
    already stop counting toward the login cap, so this only reclaims storage; live
    sessions are never touched. Returns the number of rows deleted. Idempotent.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = purge_cutoff(settings)
    deleted_count = (
        session.query(UserSession)
        .filter(
            or_(
                UserSession.refresh_token_expires_at < cutoff,
                and_(
                    UserSession.is_active.is_(False),
                    UserSession.revoked_at.is_not(None),
                    UserSession.revoked_at < cutoff,
                ),
            )
        )
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Purged dead sessions: cutoff=%s, sessions_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
