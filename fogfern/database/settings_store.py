#!/usr/bin/env python3
"""
settings_store.py
--------------------
Key-value settings stored in the local catalog database.

Holds the dataset loader's version gate and the migration backup tripwire.
Reads and writes go through the caller's session, so a marker written by
the loader commits atomically with the rows it describes.

Usage:
    from fogfern.database.settings_store import SettingsStore, DATASET_VERSION_KEY

    settings = SettingsStore(session, logger)
    if settings.get(DATASET_VERSION_KEY) != dataset.version:
        ...
        settings.set(DATASET_VERSION_KEY, dataset.version)
"""
from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from fogfern.core.logging_manager import FogFernLogger, safe_logger
from fogfern.database.models import AppSetting

DATASET_VERSION_KEY = "last_applied_dataset_version"
BACKUP_VISIT_COUNT_KEY = "last_backup_visit_count"
BACKUP_USER_COUNT_KEY = "last_backup_user_count"
BACKUP_DATE_KEY = "last_backup_date"


class SettingsStore:
    """
    Read and write AppSetting rows.

    Attributes:
        session: Session bound to the catalog database
        logger: Optional logger for recording writes
    """

    def __init__(self, session: Session, logger: Optional[FogFernLogger] = None):
        self.session = session
        self.logger = logger

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Stored value for ``key``, or ``default`` when unset."""
        setting = self.session.get(AppSetting, key)
        if setting is None or setting.value is None:
            return default
        return setting.value

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key)
        return int(value) if value is not None else default

    def set(self, key: str, value: Optional[str]) -> AppSetting:
        """
        Insert or update a setting and flush it.

        Returns:
            The AppSetting row
        """
        setting = self.session.get(AppSetting, key)
        if setting is None:
            setting = AppSetting(key=key, value=value)
            self.session.add(setting)
        else:
            setting.value = value
        self.session.flush()

        safe_logger(self.logger).log_debug(f"Setting updated: {key}", {"value": value})
        return setting

    def delete(self, key: str) -> bool:
        """Remove a setting. Returns True if it existed."""
        setting = self.session.get(AppSetting, key)
        if setting is None:
            return False
        self.session.delete(setting)
        self.session.flush()
        return True

    def all(self) -> Dict[str, Optional[str]]:
        """Every stored setting, keyed by name."""
        rows = self.session.scalars(select(AppSetting).order_by(AppSetting.key))
        return {row.key: row.value for row in rows}
