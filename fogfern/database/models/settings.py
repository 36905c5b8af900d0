"""
Settings Model
---------------

Process-wide key-value rows stored in the local catalog database.

Keys in use:
    - last_applied_dataset_version: Version gate for the dataset loader
    - last_backup_visit_count, last_backup_user_count, last_backup_date:
      Pre-migration tripwire written by ``record_backup``
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import CatalogBase, UTCDateTime, utc_now


class AppSetting(CatalogBase):
    """
    A single string setting.

    Attributes:
        key: Setting name (primary key)
        value: Stored string value
        updated_at: Last write time
    """

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<AppSetting({self.key}={self.value!r})>"
