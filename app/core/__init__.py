"""Settings, database sessions, password hashing and the service error taxonomy."""

from app.core.config import Settings, get_settings, settings
from app.core.database import SessionLocal, get_db
from app.core.errors import ConfigurationError, ConfigurationLoadError, ErrorKind, ServiceError

__all__ = [
    "ConfigurationError",
    "ConfigurationLoadError",
    "ErrorKind",
    "ServiceError",
    "SessionLocal",
    "Settings",
    "get_db",
    "get_settings",
    "settings",
]
