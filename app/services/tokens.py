"""Access/refresh JWT issuance and verification, token digests, and duration parsing.

Signing secrets and TTL policy are resolved on every call, so a settings cache refresh
takes effect immediately: tokens signed with a rotated-out secret stop verifying.
"""

import hashlib
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import jwt

from app.core.config import DURATION_UNIT_SECONDS, MAX_DURATION_SECONDS
from app.core.errors import ConfigurationError, ErrorKind, ServiceError
from app.services.config_cache import ConfigCache

if TYPE_CHECKING:
    from app.core.config import Settings

DEFAULT_DURATION_SECONDS = 3600

# Last-resort signing secret. Only ever used outside prod.
DEV_FALLBACK_SECRET = "dev-only-jwt-secret-change-me"

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

_DURATION_RE = re.compile(r"(\d{1,12})([smhd])", re.ASCII)


def parse_duration(expr: str | None, default: int = DEFAULT_DURATION_SECONDS) -> int:
    """
    Convert "<integer><unit>" (unit in s, m, h, d) to seconds.
    "7d" -> 604800, "30m" -> 1800. Missing or malformed expressions, zero, and anything
    longer than MAX_DURATION_SECONDS return default.
    """
    if not expr:
        return default
    match = _DURATION_RE.fullmatch(expr.strip())
    if match is None:
        return default
    seconds = int(match.group(1)) * DURATION_UNIT_SECONDS[match.group(2)]
    if not 0 < seconds <= MAX_DURATION_SECONDS:
        return default
    return seconds


def digest_token(token: str) -> str:
    """One-way SHA-256 hex digest (64 chars) stored in place of the raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def resolve_secret(*candidates: str | None) -> str | None:
    """Return the first non-blank candidate, in order."""
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate
    return None


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


class TokenIssuer:
    """Mints and validates signed, time-bound tokens. Never stores raw tokens."""

    def __init__(self, cache: ConfigCache, settings: "Settings") -> None:
        self._cache = cache
        self._settings = settings

    # Secrets: settings cache -> environment -> dev fallback (refused in prod)

    def access_secret(self) -> str:
        env_secret = self._settings.JWT_SECRET.get_secret_value() if self._settings.JWT_SECRET else None
        secret = resolve_secret(self._cache.get("JWT_SECRET"), env_secret)
        if secret is not None:
            return secret
        if self._settings.APP_ENV == "prod":
            raise ConfigurationError("JWT_SECRET is not configured in app_settings or the environment")
        return DEV_FALLBACK_SECRET

    def refresh_secret(self) -> str:
        env_secret = (
            self._settings.JWT_REFRESH_SECRET.get_secret_value()
            if self._settings.JWT_REFRESH_SECRET
            else None
        )
        secret = resolve_secret(self._cache.get("JWT_REFRESH_SECRET"), env_secret)
        return secret if secret is not None else self.access_secret()

    # TTL policy: settings cache -> environment

    def access_ttl(self) -> str:
        return self._cache.get("ACCESS_TOKEN_EXPIRY") or self._settings.ACCESS_TOKEN_EXPIRY

    def refresh_ttl(self) -> str:
        return self._cache.get("REFRESH_TOKEN_EXPIRY") or self._settings.REFRESH_TOKEN_EXPIRY

    def access_max_age(self) -> int:
        """Access token lifetime in seconds (cookie max-age)."""
        return parse_duration(self.access_ttl())

    def refresh_max_age(self) -> int:
        return parse_duration(self.refresh_ttl())

    def _issue(self, payload: dict[str, Any], ttl: str, secret: str, token_type: str) -> IssuedToken:
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=parse_duration(ttl))
        claims: dict[str, Any] = {
            **payload,
            "type": token_type,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(claims, secret, algorithm=self._settings.JWT_ALGORITHM)
        return IssuedToken(token=token, expires_at=expires_at)

    def _verify(self, token: str, secret: str, token_type: str) -> dict[str, Any]:
        # Malformed, bad signature, expired and wrong type all surface as the same error.
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._settings.JWT_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError:
            raise ServiceError(ErrorKind.INVALID_OR_EXPIRED_TOKEN)
        if claims.get("type") != token_type:
            raise ServiceError(ErrorKind.INVALID_OR_EXPIRED_TOKEN)
        return claims

    def issue_access(self, payload: dict[str, Any], ttl: str | None = None) -> IssuedToken:
        return self._issue(payload, ttl or self.access_ttl(), self.access_secret(), TOKEN_TYPE_ACCESS)

    def issue_refresh(self, payload: dict[str, Any], ttl: str | None = None) -> IssuedToken:
        return self._issue(payload, ttl or self.refresh_ttl(), self.refresh_secret(), TOKEN_TYPE_REFRESH)

    def verify_access(self, token: str) -> dict[str, Any]:
        """Decode and validate an access token. Raises ServiceError(INVALID_OR_EXPIRED_TOKEN)."""
        return self._verify(token, self.access_secret(), TOKEN_TYPE_ACCESS)

    def verify_refresh(self, token: str) -> dict[str, Any]:
        return self._verify(token, self.refresh_secret(), TOKEN_TYPE_REFRESH)

    @staticmethod
    def digest(token: str) -> str:
        return digest_token(token)
