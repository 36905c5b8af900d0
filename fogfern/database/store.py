#!/usr/bin/env python3
"""
store.py
--------------------
The FogFern store: two databases behind one session factory.

- Catalog database (local-only): cities, parks and app settings. Tables
  are created on open and never versioned.
- User-data database (synced): users and visits. Either a cloud-backed SQL
  database or a local SQLite file; migrated to the current schema version
  on open.

Sessions route each mapped class to its database through per-base binds,
so a single ``session_scope()`` can read a Visit and resolve its Park.

Key Features:
    - Transaction scope with commit/rollback/close and logging
    - Read-only scope for presentation reads
    - SQLite engines with foreign keys on and cross-thread use allowed, so
      repository work can run in worker threads

Usage:
    store = FogFernStore(StoreConfiguration.local(data_dir), logger).open()
    with store.session_scope() as session:
        parks = session.scalars(select(Park)).all()
    store.close()
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Union

# --- Third party ---
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

# --- Local imports ---
from fogfern.core.exceptions import DatabaseError, MigrationError
from fogfern.core.logging_manager import FogFernLogger, safe_logger
from fogfern.core.paths import DATA_DIR, catalog_db_path, sqlite_url, user_data_db_path
from .decorators import handle_db_errors, log_database_operation
from .models import CatalogBase, UserDataBase
from .schema_versions import DEFAULT_PLAN, MigrationPlan, MigrationResult, SchemaMigrator


class SyncBacking(str, Enum):
    """Where the user-data database lives."""

    CLOUD = "cloud"
    LOCAL = "local"


@dataclass(frozen=True)
class StoreConfiguration:
    """
    Connection settings for one store configuration.

    Both configurations share the same versioned schema; only the backing
    of the user-data database differs.

    Attributes:
        name: Configuration name for diagnostics
        catalog_url: SQLAlchemy URL of the local catalog database
        user_data_url: SQLAlchemy URL of the user-data database, or None
            when the configuration is not available
        sync_backing: CLOUD or LOCAL
    """

    name: str
    catalog_url: str
    user_data_url: Optional[str]
    sync_backing: SyncBacking

    @classmethod
    def local(cls, data_dir: Union[str, Path] = DATA_DIR) -> "StoreConfiguration":
        """Local-only configuration: both databases are files in ``data_dir``."""
        return cls(
            name="local",
            catalog_url=sqlite_url(catalog_db_path(Path(data_dir))),
            user_data_url=sqlite_url(user_data_db_path(Path(data_dir))),
            sync_backing=SyncBacking.LOCAL,
        )

    @classmethod
    def cloud(
        cls, user_data_url: Optional[str], data_dir: Union[str, Path] = DATA_DIR
    ) -> "StoreConfiguration":
        """Cloud-backed configuration; the catalog stays local."""
        return cls(
            name="cloud",
            catalog_url=sqlite_url(catalog_db_path(Path(data_dir))),
            user_data_url=user_data_url,
            sync_backing=SyncBacking.CLOUD,
        )


def create_store_engine(url: str) -> Engine:
    """
    Engine for a store database.

    SQLite files get their parent directory created, cross-thread access
    enabled and foreign keys switched on for every connection.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, future=True, pool_pre_ping=True)

    if parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        url,
        future=True,
        connect_args={"check_same_thread": False, "timeout": 15},
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class FogFernStore:
    """
    Engines, schema setup and session management for one configuration.

    Attributes:
        configuration: StoreConfiguration in use
        logger: Optional logger
        catalog_engine: Engine for the catalog database
        user_data_engine: Engine for the user-data database
        migration_result: Outcome of the schema migration run by ``open``
    """

    def __init__(
        self,
        configuration: StoreConfiguration,
        logger: Optional[FogFernLogger] = None,
        plan: MigrationPlan = DEFAULT_PLAN,
    ) -> None:
        self.configuration = configuration
        self.logger = logger
        self.plan = plan
        self.catalog_engine: Optional[Engine] = None
        self.user_data_engine: Optional[Engine] = None
        self.migration_result: Optional[MigrationResult] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def name(self) -> str:
        return self.configuration.name

    @property
    def is_open(self) -> bool:
        return self._session_factory is not None

    # ---- Setup ----
    @log_database_operation("store_open")
    def open(self) -> "FogFernStore":
        """
        Connect, create catalog tables and migrate the user-data schema.

        Returns:
            self, for chaining

        Raises:
            DatabaseError: If the configuration is incomplete or any step fails
        """
        if self.configuration.user_data_url is None:
            raise DatabaseError(
                f"Store configuration '{self.configuration.name}' has no user-data URL"
            )

        try:
            self.catalog_engine = create_store_engine(self.configuration.catalog_url)
            self.user_data_engine = create_store_engine(self.configuration.user_data_url)
            self._create_catalog_tables()
            self.migration_result = self.migrator.migrate()
        except MigrationError as e:
            self.close()
            raise DatabaseError(f"User-data schema migration failed: {e}") from e
        except DatabaseError:
            self.close()
            raise
        except Exception as e:
            self.close()
            raise DatabaseError(f"Could not open store '{self.name}': {e}") from e

        self._session_factory = sessionmaker(
            binds={
                CatalogBase: self.catalog_engine,
                UserDataBase: self.user_data_engine,
            },
            autoflush=True,
            expire_on_commit=False,
        )

        safe_logger(self.logger).log_operation(
            "store_ready",
            {
                "configuration": self.name,
                "sync_backing": self.configuration.sync_backing.value,
                "schema_changed": self.migration_result.changed,
            },
        )
        return self

    @handle_db_errors
    def _create_catalog_tables(self) -> None:
        CatalogBase.metadata.create_all(bind=self.catalog_engine, checkfirst=True)

    @property
    def migrator(self) -> SchemaMigrator:
        if self.user_data_engine is None:
            raise DatabaseError("Store is not open")
        return SchemaMigrator(self.user_data_engine, self.plan, self.logger)

    # ---- Session Management ----
    def _require_open(self) -> sessionmaker:
        if self._session_factory is None:
            raise DatabaseError(f"Store '{self.name}' is not open")
        return self._session_factory

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope around one unit of work.

        Usage:
            with store.session_scope() as session:
                session.add(park)
        """
        session = self._require_open()()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        log = safe_logger(self.logger)
        log.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
            log.log_debug("session_commit", {"session_id": session_id})
        except Exception as e:
            session.rollback()
            log.log_error(e, {"operation": "session_rollback", "session_id": session_id})
            raise
        finally:
            session.close()
            log.log_debug("session_close", {"session_id": session_id})

    @contextmanager
    def read_session(self) -> Iterator[Session]:
        """
        Read-only scope for presentation reads.

        Never flushes and always rolls back, so nothing read here can be
        written by accident.
        """
        session = self._require_open()()
        session.autoflush = False
        try:
            yield session
        finally:
            session.rollback()
            session.close()

    def close(self) -> None:
        """Dispose of both engines."""
        for engine in (self.catalog_engine, self.user_data_engine):
            if engine is not None:
                engine.dispose()
        self._session_factory = None

    def __enter__(self) -> "FogFernStore":
        return self.open() if not self.is_open else self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<FogFernStore(name='{self.name}', open={self.is_open})>"
