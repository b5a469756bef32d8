"""Login and logout orchestration: credentials, tokens, session admission."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from app.core.errors import ErrorKind, ServiceError
from app.core.security import DUMMY_PASSWORD_HASH, verify_password
from app.models import User
from app.services.config_cache import ConfigCache
from app.services.sessions import SessionStore
from app.services.tokens import TokenIssuer, digest_token

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    device_id: str | None = None
    device_type: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None


@dataclass(frozen=True)
class TokenBundle:
    """Raw tokens. Handed to the caller once at login and never stored."""

    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime


@dataclass(frozen=True)
class LoginResult:
    user: User
    tokens: TokenBundle


class AuthService:
    """Auth flows for one request. Commits its own transaction on login and logout."""

    def __init__(
        self,
        db: Session,
        cache: ConfigCache,
        settings: "Settings",
        issuer: TokenIssuer | None = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.settings = settings
        self.issuer = issuer or TokenIssuer(cache, settings)
        self.sessions = SessionStore(db)

    def max_sessions(self) -> int:
        return self.cache.get_int("MAX_LOGIN_SESSIONS", self.settings.MAX_LOGIN_SESSIONS)

    def _user_lookup(self, identifier: str) -> Query:
        # Row lock serializes concurrent logins for the same user through count -> evict -> insert.
        return (
            self.db.query(User)
            .filter(or_(User.email == identifier, User.mobile == identifier))
            .with_for_update()
        )

    def _find_user(self, identifier: str) -> User | None:
        return self._user_lookup(identifier).first()

    def login(
        self,
        identifier: str,
        password: str,
        device: DeviceInfo | None = None,
    ) -> LoginResult:
        """
        Authenticate by email or mobile and open a new session.

        Unknown identifier and wrong password raise the same INVALID_CREDENTIALS error.
        A disabled account raises ACCOUNT_DISABLED. When the user is at the session cap,
        the oldest active sessions are deleted to make room for this one.
        """
        device = device or DeviceInfo()
        identifier = identifier.strip()

        user = self._find_user(identifier)
        if user is None:
            verify_password(password, DUMMY_PASSWORD_HASH)
            self.db.rollback()
            raise ServiceError(ErrorKind.INVALID_CREDENTIALS)
        if user.is_disabled:
            self.db.rollback()
            raise ServiceError(ErrorKind.ACCOUNT_DISABLED)
        if not verify_password(password, user.password):
            self.db.rollback()
            raise ServiceError(ErrorKind.INVALID_CREDENTIALS)

        payload = {"id": user.id, "email": user.email, "role": user.role}
        access = self.issuer.issue_access(payload)
        refresh = self.issuer.issue_refresh(payload)

        try:
            _, evicted = self.sessions.admit(
                user.id,
                self.max_sessions(),
                access_token_hash=digest_token(access.token),
                refresh_token_hash=digest_token(refresh.token),
                access_token_expires_at=access.expires_at,
                refresh_token_expires_at=refresh.expires_at,
                device_id=device.device_id,
                device_type=device.device_type,
                user_agent=device.user_agent,
                ip_address=device.ip_address,
            )
            user.last_login_at = datetime.now(timezone.utc)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

        logger.info("Login succeeded for user_id=%s (evicted_sessions=%s)", user.id, evicted)
        return LoginResult(
            user=user,
            tokens=TokenBundle(
                access_token=access.token,
                refresh_token=refresh.token,
                access_token_expires_at=access.expires_at,
                refresh_token_expires_at=refresh.expires_at,
            ),
        )

    def logout(self, access_token: str) -> bool:
        """Delete the session for access_token. Idempotent: returns False when no session matched."""
        deleted = self.sessions.delete_by_access_token_digest(digest_token(access_token))
        self.db.commit()
        if not deleted:
            logger.info("Logout: no session matched the presented token")
        return deleted > 0
