"""App settings administration, settings cache inspection/refresh and SMTP check. SUPER_ADMIN only."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.api.deps import get_app_settings_service, get_config_cache, get_mailer
from app.api.v1.auth import require_roles
from app.models import UserRole
from app.schemas.settings import (
    CachedSettingsResponse,
    SettingCreate,
    SettingOut,
    SettingsListResponse,
    SettingUpdate,
    SMTPConfigOut,
    SMTPVerifyResponse,
)
from app.services.app_settings import AppSettingsService
from app.services.config_cache import ConfigCache
from app.services.mail import Mailer

router = APIRouter(dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))])


@router.get("", response_model=SettingsListResponse)
def list_settings(
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
    is_active: bool | None = None,
    search: str | None = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> SettingsListResponse:
    """List settings (newest first) with optional is_active / search filters."""
    rows, pagination = service.list_settings(
        is_active=is_active, search=search, page=page, limit=limit
    )
    return SettingsListResponse(
        settings=[SettingOut.model_validate(r) for r in rows],
        pagination=pagination,
    )


@router.get("/cache", response_model=CachedSettingsResponse)
def get_cached_settings(
    cache: Annotated[ConfigCache, Depends(get_config_cache)],
) -> CachedSettingsResponse:
    """Settings currently held in the in-memory cache."""
    snapshot = cache.get_all()
    return CachedSettingsResponse(settings=snapshot, count=len(snapshot), is_loaded=cache.is_loaded)


@router.post("/cache/refresh", response_model=CachedSettingsResponse)
def refresh_cache(
    cache: Annotated[ConfigCache, Depends(get_config_cache)],
) -> CachedSettingsResponse:
    """Reload all active settings from the database, applying changes without a restart."""
    cache.refresh()
    snapshot = cache.get_all()
    return CachedSettingsResponse(settings=snapshot, count=len(snapshot), is_loaded=cache.is_loaded)


@router.post(
    "/smtp/verify",
    response_model=SMTPVerifyResponse,
    responses={400: {"model": SMTPVerifyResponse}},
)
def verify_smtp(
    mailer: Annotated[Mailer, Depends(get_mailer)],
):
    """Try an authenticated SMTP connection with the current SMTP_* settings."""
    config = mailer.config()
    config_out = SMTPConfigOut(
        host=config.host,
        port=config.port,
        secure=config.secure,
        user=config.masked_user,
        from_email=config.from_email,
        from_name=config.from_name,
    )
    if mailer.verify_connection():
        return SMTPVerifyResponse(
            connected=True, message="SMTP connection successful", config=config_out
        )
    body = SMTPVerifyResponse(
        connected=False,
        message="SMTP connection failed. Please check your SMTP settings.",
        config=config_out,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


@router.get("/key/{key}", response_model=SettingOut)
def get_setting_by_key(
    key: str,
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
) -> SettingOut:
    return SettingOut.model_validate(service.get_by_key(key))


@router.get("/{setting_id}", response_model=SettingOut)
def get_setting(
    setting_id: int,
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
) -> SettingOut:
    return SettingOut.model_validate(service.get_by_id(setting_id))


@router.post("", response_model=SettingOut, status_code=status.HTTP_201_CREATED)
def create_setting(
    body: SettingCreate,
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
) -> SettingOut:
    """Create a setting. 409 if the key exists. Refreshes the cache when the row is active."""
    return SettingOut.model_validate(service.create(body.model_dump()))


@router.put("/key/{key}", response_model=SettingOut)
def update_setting_by_key(
    key: str,
    body: SettingUpdate,
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
) -> SettingOut:
    return SettingOut.model_validate(
        service.update_by_key(key, body.model_dump(exclude_unset=True))
    )


@router.put("/{setting_id}", response_model=SettingOut)
def update_setting(
    setting_id: int,
    body: SettingUpdate,
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
) -> SettingOut:
    """Update a setting by id; key renames are allowed (409 on collision)."""
    return SettingOut.model_validate(
        service.update_by_id(setting_id, body.model_dump(exclude_unset=True))
    )


@router.delete("/key/{key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_setting_by_key(
    key: str,
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
) -> None:
    service.delete_by_key(key)


@router.delete("/{setting_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_setting(
    setting_id: int,
    service: Annotated[AppSettingsService, Depends(get_app_settings_service)],
) -> None:
    service.delete_by_id(setting_id)
