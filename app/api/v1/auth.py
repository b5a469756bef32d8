"""Login/logout endpoints and auth dependencies (get_current_user, require_roles)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.api.deps import get_auth_service, get_token_issuer
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import ErrorKind, ServiceError
from app.models import User, UserRole
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    TokenBundleOut,
    UserOut,
)
from app.services.auth import AuthService, DeviceInfo
from app.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def _cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.APP_ENV == "prod",
        "samesite": "strict",
        "path": "/",
    }


def extract_token(
    access_cookie: Annotated[str | None, Cookie(alias=ACCESS_TOKEN_COOKIE)] = None,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> str | None:
    """Token from the accessToken cookie, else from Authorization: Bearer. Cookie wins."""
    if access_cookie:
        return access_cookie
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(extract_token)],
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> CurrentUser:
    """
    Dependency: require a valid access token and a live, enabled user.

    Re-reads the user on every request so deleted or disabled accounts are rejected
    even while their tokens are unexpired. Attaches the identity and raw token to
    request.state.
    """
    if not token:
        raise ServiceError(ErrorKind.AUTHENTICATION_REQUIRED)
    claims = issuer.verify_access(token)
    user_id = claims.get("id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise ServiceError(ErrorKind.INVALID_OR_EXPIRED_TOKEN)
    user = db.get(User, user_id)
    if user is None:
        raise ServiceError(ErrorKind.USER_NOT_FOUND)
    if user.is_disabled:
        raise ServiceError(ErrorKind.ACCOUNT_DISABLED)
    current = CurrentUser(id=user.id, email=user.email, role=user.role, name=user.name)
    request.state.user = current
    request.state.token = token
    return current


def require_roles(*roles: UserRole) -> Callable[..., CurrentUser]:
    """Dependency factory: authenticated user whose role is one of roles, else 403."""
    allowed = {role.value for role in roles}

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise ServiceError(ErrorKind.FORBIDDEN)
        return current_user

    return dependency


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """
    Authenticate with email or mobile plus password.

    Returns the user and a token bundle. The raw tokens are only ever returned here;
    when cookies are enabled they are also set as HttpOnly accessToken/refreshToken cookies.
    """
    device = DeviceInfo(
        device_id=body.device_id,
        device_type=body.device_type.value if body.device_type else None,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    result = auth.login(body.identifier, body.password, device)

    if settings.AUTH_COOKIES_ENABLED:
        options = _cookie_options(settings)
        response.set_cookie(
            ACCESS_TOKEN_COOKIE,
            result.tokens.access_token,
            max_age=auth.issuer.access_max_age(),
            **options,
        )
        response.set_cookie(
            REFRESH_TOKEN_COOKIE,
            result.tokens.refresh_token,
            max_age=auth.issuer.refresh_max_age(),
            **options,
        )

    return LoginResponse(
        user=UserOut.model_validate(result.user),
        tokens=TokenBundleOut(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            access_token_expires_at=result.tokens.access_token_expires_at,
            refresh_token_expires_at=result.tokens.refresh_token_expires_at,
        ),
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(
    response: Response,
    token: Annotated[str | None, Depends(extract_token)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LogoutResponse:
    """End the session for the presented token. Always 200; cookies are cleared even if the delete fails."""
    if token:
        try:
            auth.logout(token)
        except Exception:
            auth.db.rollback()
            logger.exception("Logout: session delete failed; clearing cookies anyway")

    if settings.AUTH_COOKIES_ENABLED:
        options = _cookie_options(settings)
        response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
        response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)
    return LogoutResponse()


@router.get("/me", response_model=CurrentUser)
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Identity attached by get_current_user."""
    return current_user
