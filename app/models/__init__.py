"""SQLAlchemy ORM models."""

from app.models.app_setting import AppSetting
from app.models.base import Base
from app.models.user import User, UserRole
from app.models.user_session import DeviceType, UserSession

__all__ = ["AppSetting", "Base", "DeviceType", "User", "UserRole", "UserSession"]
