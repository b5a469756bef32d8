"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.user_session import DeviceType


class LoginRequest(BaseModel):
    """Credentials for login. identifier is an email address or mobile number."""

    identifier: str = Field(..., min_length=1, max_length=191, description="Email or mobile number")
    password: str = Field(..., min_length=1, max_length=128, description="Password")
    device_id: str | None = Field(default=None, max_length=100, description="Optional device identifier")
    device_type: DeviceType | None = Field(
        default=None, description="Optional device type"
    )

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Email or mobile number is required")
        return v.strip()


class UserOut(BaseModel):
    """User as returned by the API (password digest never included)."""

    id: int
    name: str
    email: str
    mobile: str
    role: str
    is_disabled: bool
    disabled_at: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class TokenBundleOut(BaseModel):
    """Raw tokens and their expiry instants. Returned exactly once, at login."""

    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")
    access_token_expires_at: datetime = Field(..., alias="accessTokenExpiresAt")
    refresh_token_expires_at: datetime = Field(..., alias="refreshTokenExpiresAt")

    class Config:
        populate_by_name = True


class LoginResponse(BaseModel):
    user: UserOut
    tokens: TokenBundleOut


class LogoutResponse(BaseModel):
    message: str = "Logged out"


class CurrentUser(BaseModel):
    """Authenticated identity attached to the request by get_current_user."""

    id: int
    email: str
    role: str
    name: str

    class Config:
        from_attributes = True
