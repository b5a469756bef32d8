"""ORM model for application users (auth and RBAC)."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.models.base import Base, utcnow


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    USER = "USER"


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    Users log in with either email or mobile. password holds the bcrypt digest, never plain text.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    email = Column(String(191), nullable=False, unique=True, index=True)
    mobile = Column(String(20), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=UserRole.USER.value, index=True)
    is_disabled = Column(Boolean, nullable=False, default=False, index=True)
    disabled_at = Column(DateTime(timezone=True), nullable=True)
    disabled_by = Column(Integer, nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
