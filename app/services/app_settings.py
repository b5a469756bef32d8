"""CRUD for app_settings rows. Every successful write refreshes the settings cache."""

import logging
import math
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import ErrorKind, ServiceError
from app.models import AppSetting
from app.services.config_cache import ConfigCache

logger = logging.getLogger(__name__)


class AppSettingsService:
    def __init__(self, db: Session, cache: ConfigCache) -> None:
        self.db = db
        self.cache = cache

    def list_settings(
        self,
        is_active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[AppSetting], dict[str, int]]:
        """Page of settings, newest first, plus pagination info (total, page, limit, total_pages)."""
        query = self.db.query(AppSetting)
        if is_active is not None:
            query = query.filter(AppSetting.is_active.is_(is_active))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(AppSetting.key.like(pattern), AppSetting.description.like(pattern))
            )
        total = query.count()
        rows = (
            query.order_by(AppSetting.created_at.desc(), AppSetting.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        pagination = {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }
        return rows, pagination

    def get_by_id(self, setting_id: int) -> AppSetting:
        setting = self.db.get(AppSetting, setting_id)
        if setting is None:
            raise ServiceError(ErrorKind.SETTING_NOT_FOUND)
        return setting

    def get_by_key(self, key: str) -> AppSetting:
        setting = self.db.query(AppSetting).filter(AppSetting.key == key).first()
        if setting is None:
            raise ServiceError(ErrorKind.SETTING_NOT_FOUND)
        return setting

    def _ensure_key_free(self, key: str) -> None:
        if self.db.query(AppSetting).filter(AppSetting.key == key).first() is not None:
            raise ServiceError(ErrorKind.SETTING_KEY_EXISTS)

    def _commit_and_refresh(self) -> None:
        self.db.commit()
        self.cache.refresh()

    def create(self, data: dict[str, Any]) -> AppSetting:
        self._ensure_key_free(data["key"])
        setting = AppSetting(**data)
        self.db.add(setting)
        self.db.commit()
        self.db.refresh(setting)
        # Inactive rows are not cached, so only an active row changes the snapshot.
        if setting.is_active:
            self.cache.refresh()
        logger.info("Created setting %s", setting.key)
        return setting

    def _update(self, setting: AppSetting, data: dict[str, Any]) -> AppSetting:
        # Only description may be cleared; null for the other columns means "leave as is".
        data = {k: v for k, v in data.items() if v is not None or k == "description"}
        new_key = data.get("key")
        if new_key is not None and new_key != setting.key:
            self._ensure_key_free(new_key)
        for field, value in data.items():
            setattr(setting, field, value)
        self._commit_and_refresh()
        self.db.refresh(setting)
        logger.info("Updated setting %s", setting.key)
        return setting

    def update_by_id(self, setting_id: int, data: dict[str, Any]) -> AppSetting:
        return self._update(self.get_by_id(setting_id), data)

    def update_by_key(self, key: str, data: dict[str, Any]) -> AppSetting:
        # The key itself is not renamed through the by-key route.
        data = {k: v for k, v in data.items() if k != "key"}
        return self._update(self.get_by_key(key), data)

    def _delete(self, setting: AppSetting) -> None:
        key = setting.key
        self.db.delete(setting)
        self._commit_and_refresh()
        logger.info("Deleted setting %s", key)

    def delete_by_id(self, setting_id: int) -> None:
        self._delete(self.get_by_id(setting_id))

    def delete_by_key(self, key: str) -> None:
        self._delete(self.get_by_key(key))
