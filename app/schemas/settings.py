"""Request/response schemas for app settings administration and the settings cache."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _non_blank(v: str | None, message: str) -> str | None:
    if v is not None and not v.strip():
        raise ValueError(message)
    return v


class SettingCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: str = Field(..., min_length=1)
    description: str | None = Field(default=None, max_length=255)
    is_active: bool = True

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        _non_blank(v, "Key is required")
        return v.strip()

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str) -> str:
        return _non_blank(v, "Value is required")


class SettingUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""

    key: str | None = Field(default=None, min_length=1, max_length=100)
    value: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str | None) -> str | None:
        _non_blank(v, "Key cannot be empty")
        return v.strip() if v is not None else None

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str | None) -> str | None:
        return _non_blank(v, "Value cannot be empty")


class SettingOut(BaseModel):
    id: int
    key: str
    value: str
    description: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class SettingsListResponse(BaseModel):
    settings: list[SettingOut]
    pagination: Pagination


class CachedSettingsResponse(BaseModel):
    """Snapshot currently held in memory."""

    settings: dict[str, str]
    count: int
    is_loaded: bool


class SMTPConfigOut(BaseModel):
    host: str
    port: int
    secure: bool
    user: str = Field(description="Masked SMTP user")
    from_email: str
    from_name: str


class SMTPVerifyResponse(BaseModel):
    connected: bool
    message: str
    config: SMTPConfigOut
