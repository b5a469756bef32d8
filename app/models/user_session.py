"""ORM model for login sessions. Stores SHA-256 digests of tokens, never the raw tokens."""

from enum import Enum

from sqlalchemy import Boolean, CHAR, Column, DateTime, ForeignKey, Integer, String

from app.models.base import Base, utcnow


class DeviceType(str, Enum):
    WEB = "WEB"
    MOBILE = "MOBILE"
    TABLET = "TABLET"


class UserSession(Base):
    """
    One row per successful login.

    Rows are deleted outright on logout or when evicted by the per-user session cap.
    Expiry is not tracked as a state: a session counts as active while
    refresh_token_expires_at is in the future.
    """

    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    access_token_hash = Column(CHAR(64), nullable=False, index=True)
    refresh_token_hash = Column(CHAR(64), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by = Column(Integer, nullable=True)
    access_token_expires_at = Column(DateTime(timezone=True), nullable=False)
    refresh_token_expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    device_id = Column(String(100), nullable=True)
    device_type = Column(String(16), nullable=True)
    user_agent = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    # Set in Python (microsecond resolution) so creation order is reliable for eviction.
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
