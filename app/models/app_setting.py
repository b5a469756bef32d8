"""ORM model for runtime configuration rows (key/value), cached in memory by ConfigCache."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.models.base import Base, utcnow


class AppSetting(Base):
    """Application-wide configuration setting. Only rows with is_active=True are cached."""

    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text, nullable=False)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
