"""Outbound email over SMTP, configured from the settings cache (SMTP_* keys)."""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from app.services.config_cache import ConfigCache

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SEC = 15.0


class MailError(Exception):
    """Raised when a message cannot be sent."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    secure: bool
    user: str
    password: str
    from_email: str
    from_name: str
    verify_tls: bool

    @classmethod
    def from_cache(cls, cache: ConfigCache) -> SMTPConfig:
        try:
            port = int(cache.get("SMTP_PORT", "587") or "587")
        except ValueError:
            port = 587
        return cls(
            host=cache.get("SMTP_HOST", "smtp.gmail.com") or "smtp.gmail.com",
            port=port,
            secure=cache.get("SMTP_SECURE", "false") == "true",
            user=cache.get("SMTP_USER", "") or "",
            password=cache.get("SMTP_PASSWORD", "") or "",
            from_email=cache.get("SMTP_FROM", "noreply@example.com") or "noreply@example.com",
            from_name=cache.get("SMTP_FROM_NAME", "Admin API") or "Admin API",
            verify_tls=cache.get("SMTP_REJECT_UNAUTHORIZED", "false") == "true",
        )

    @property
    def masked_user(self) -> str:
        return f"{self.user[:3]}***" if self.user else "Not set"


@dataclass
class MailMessage:
    to: str
    subject: str
    text: str
    html: str | None = None
    from_address: str | None = None
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)


class Mailer:
    """SMTP client. Reads config from the cache on every use so setting changes apply without restart."""

    def __init__(self, cache: ConfigCache) -> None:
        self.cache = cache

    def config(self) -> SMTPConfig:
        return SMTPConfig.from_cache(self.cache)

    def _ssl_context(self, config: SMTPConfig) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not config.verify_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _connect(self, config: SMTPConfig) -> smtplib.SMTP:
        if not config.user or not config.password:
            raise MailError(
                "SMTP credentials not configured. Please set SMTP_USER and SMTP_PASSWORD in settings."
            )
        context = self._ssl_context(config)
        if config.secure:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                config.host, config.port, timeout=SMTP_TIMEOUT_SEC, context=context
            )
        else:
            server = smtplib.SMTP(config.host, config.port, timeout=SMTP_TIMEOUT_SEC)
            server.starttls(context=context)
        try:
            server.login(config.user, config.password)
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server

    def send(self, message: MailMessage) -> dict[str, str | bool]:
        """Send message. Returns {success, message_id}; raises MailError on failure."""
        config = self.config()
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = message.from_address or formataddr((config.from_name, config.from_email))
        msg["To"] = message.to
        if message.cc:
            msg["Cc"] = ", ".join(message.cc)
        msg["Message-ID"] = make_msgid()
        msg.set_content(message.text)
        msg.add_alternative(message.html or message.text, subtype="html")

        recipients = [message.to, *message.cc, *message.bcc]
        try:
            with self._connect(config) as server:
                server.send_message(msg, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email: %s", e)
            raise MailError(f"Failed to send email: {e}") from e
        return {"success": True, "message_id": msg["Message-ID"]}

    def verify_connection(self) -> bool:
        """Connect and authenticate with the current settings; True on success."""
        try:
            with self._connect(self.config()) as server:
                server.noop()
        except (MailError, smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP verification failed: %s", e)
            return False
        return True
