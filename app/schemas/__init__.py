"""Pydantic request/response schemas."""

from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    TokenBundleOut,
    UserOut,
)
from app.schemas.health import HealthResponse
from app.schemas.settings import (
    CachedSettingsResponse,
    SettingCreate,
    SettingOut,
    SettingsListResponse,
    SettingUpdate,
    SMTPVerifyResponse,
)
from app.schemas.users import UsersListResponse

__all__ = [
    "CachedSettingsResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "SettingCreate",
    "SettingOut",
    "SettingsListResponse",
    "SettingUpdate",
    "SMTPVerifyResponse",
    "TokenBundleOut",
    "UserOut",
    "UsersListResponse",
]
