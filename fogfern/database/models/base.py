"""
Base Classes and Mixins
------------------------

Foundational ORM classes for the FogFern store.

Classes:
    - CatalogBase: Declarative base for local-only tables (cities, parks,
      app settings). Created with ``create_all`` and never versioned.
    - UserDataBase: Declarative base for synced tables (users, visits).
      Evolved exclusively through Alembic revisions.
    - UTCDateTime: Timestamp column type that always round-trips aware UTC
    - enum_values: ``values_callable`` for Enum columns, storing member values
    - TimestampMixin: created/last-updated columns

The two bases keep separate metadata so that each database only ever sees
its own tables, and Alembic only compares synced entities.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone
from enum import Enum
from typing import List, Type

# --- Third party ---
from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def enum_values(enum_class: Type[Enum]) -> List[str]:
    """Persist Enum columns by member value rather than member name."""
    return [member.value for member in enum_class]


class UTCDateTime(TypeDecorator):
    """
    DateTime stored as naive UTC and always returned timezone-aware.

    SQLite drops tzinfo on the way back, which would make freshly assigned
    and reloaded timestamps incomparable.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# --- Base ORM classes ---
class CatalogBase(DeclarativeBase):
    """
    Base class for local-only catalog models.

    Tables on this base are reference data rebuilt from the bundled dataset;
    they are never synced and never migrated.
    """

    pass


class UserDataBase(DeclarativeBase):
    """
    Base class for user-generated, synced models.

    Every change to these tables needs a new Alembic revision and a new
    entry in the schema version registry.
    """

    pass


# --- Timestamps ---
class TimestampMixin:
    """
    Mixin providing creation and last-update timestamps.

    Attributes:
        created_at: When the row was first inserted
        last_updated: When the row was last modified
    """

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now
    )
    last_updated: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now
    )

    def touch(self) -> None:
        """Mark the row as modified now."""
        self.last_updated = utc_now()
