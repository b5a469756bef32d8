"""In-memory snapshot of active app_settings rows, reloadable without a restart."""

import logging
import threading
from collections.abc import Callable, Mapping
from types import MappingProxyType

from sqlalchemy.orm import Session

from app.models import AppSetting

logger = logging.getLogger(__name__)

_EMPTY: Mapping[str, str] = MappingProxyType({})


class ConfigCache:
    """
    Process-wide key -> value mapping of every active AppSetting row.

    Readers take the current snapshot reference without locking. load() builds a new
    read-only mapping and swaps the reference, so a reader never sees a half-built map.
    The lock only serializes concurrent loads against each other.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self._snapshot: Mapping[str, str] = _EMPTY
        self._loaded = False
        self._load_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self) -> int:
        """
        Fetch all active settings and replace the snapshot. Returns the number of keys cached.
        Storage errors propagate; the caller decides whether that is fatal.
        """
        with self._load_lock:
            db = self._session_factory()
            try:
                rows = (
                    db.query(AppSetting.key, AppSetting.value)
                    .filter(AppSetting.is_active.is_(True))
                    .all()
                )
            finally:
                db.close()
            self._snapshot = MappingProxyType({key: value for key, value in rows})
            self._loaded = True
        logger.info("Settings cache loaded: %s settings", len(self._snapshot))
        return len(self._snapshot)

    def refresh(self) -> int:
        """Reload from storage; called after settings writes and by the operator refresh endpoint."""
        return self.load()

    def get(self, key: str, default: str | None = None) -> str | None:
        if not self._loaded:
            logger.warning("Settings cache not loaded yet. Key: %s", key)
            return default
        return self._snapshot.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        """Integer setting; falls back to default when absent or not a positive integer."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            value = int(raw.strip())
        except ValueError:
            logger.warning("Setting %s is not an integer (%r); using %s", key, raw, default)
            return default
        if value < 1:
            logger.warning("Setting %s must be positive (%s); using %s", key, value, default)
            return default
        return value

    def get_all(self) -> dict[str, str]:
        """Copy of the current snapshot; mutating it does not affect the cache."""
        return dict(self._snapshot)

    def clear(self) -> None:
        self._snapshot = _EMPTY
        self._loaded = False
