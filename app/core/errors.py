"""Service error taxonomy and its mapping to HTTP status codes."""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    """Stable error codes surfaced in the JSON error envelope."""

    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DISABLED = "account_disabled"
    AUTHENTICATION_REQUIRED = "authentication_required"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    USER_NOT_FOUND = "user_not_found"
    FORBIDDEN = "forbidden"
    SETTING_NOT_FOUND = "setting_not_found"
    SETTING_KEY_EXISTS = "setting_key_exists"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.ACCOUNT_DISABLED: status.HTTP_403_FORBIDDEN,
    ErrorKind.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_OR_EXPIRED_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.USER_NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.SETTING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.SETTING_KEY_EXISTS: status.HTTP_409_CONFLICT,
}

# Unknown identifier and wrong password share one message so callers cannot enumerate accounts.
DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_CREDENTIALS: "Invalid email/mobile or password",
    ErrorKind.ACCOUNT_DISABLED: "User account is disabled",
    ErrorKind.AUTHENTICATION_REQUIRED: "Authentication required. Please provide a valid token.",
    ErrorKind.INVALID_OR_EXPIRED_TOKEN: "Invalid or expired token",
    ErrorKind.USER_NOT_FOUND: "User not found",
    ErrorKind.FORBIDDEN: "Access denied. Insufficient permissions.",
    ErrorKind.SETTING_NOT_FOUND: "Setting not found",
    ErrorKind.SETTING_KEY_EXISTS: "Setting key already exists",
}


class ServiceError(Exception):
    """Raised by services and auth dependencies; converted to a JSON error response at the app boundary."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ConfigurationError(Exception):
    """Raised when a required secret is missing and no safe fallback exists (production)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationLoadError(Exception):
    """Raised when the settings cache cannot be loaded at startup. Fatal."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
