"""Shared dependencies: settings cache, token issuer and service construction per request."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.services.app_settings import AppSettingsService
from app.services.auth import AuthService
from app.services.config_cache import ConfigCache
from app.services.mail import Mailer
from app.services.tokens import TokenIssuer


def get_config_cache(request: Request) -> ConfigCache:
    """The process-wide cache built at startup (see app.main lifespan)."""
    return request.app.state.config_cache


def get_token_issuer(
    cache: Annotated[ConfigCache, Depends(get_config_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenIssuer:
    return TokenIssuer(cache, settings)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    cache: Annotated[ConfigCache, Depends(get_config_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthService:
    return AuthService(db, cache, settings, issuer=issuer)


def get_app_settings_service(
    db: Annotated[Session, Depends(get_db)],
    cache: Annotated[ConfigCache, Depends(get_config_cache)],
) -> AppSettingsService:
    return AppSettingsService(db, cache)


def get_mailer(cache: Annotated[ConfigCache, Depends(get_config_cache)]) -> Mailer:
    return Mailer(cache)
