#!/usr/bin/env python3
"""
FogFern Database Package
---------------------------
Local-first catalog and synced user-data storage.

This package provides:
- The two-database store and its session scopes
- Cloud-then-local store bootstrap
- Versioned user-data schema evolution (Alembic)
- Bundled dataset reconciliation into the catalog
- Composite park identifiers shared by visits and parks
- Async catalog and account repositories
"""

from fogfern.core.exceptions import DatabaseError, StoreUnavailableError, ValidationError
from .store import FogFernStore, StoreConfiguration, SyncBacking
from .bootstrap import BootstrapAttempt, BootstrapState, StoreBootstrapper
from .dataset_loader import BundledDataset, DatasetLoader, LoadReport, ParkRecord, load_catalog
from .schema_versions import (
    CURRENT_VERSION,
    DEFAULT_PLAN,
    MigrationPlan,
    MigrationStage,
    SchemaMigrator,
    SchemaVersion,
    record_backup,
    validate_migration,
)
from .settings_store import SettingsStore
from .decorators import handle_db_errors, log_database_operation
from .repositories import AccountRepository, CatalogRepository

__all__ = [
    # Store
    "FogFernStore",
    "StoreConfiguration",
    "SyncBacking",
    "StoreBootstrapper",
    "BootstrapState",
    "BootstrapAttempt",
    # Exceptions
    "DatabaseError",
    "StoreUnavailableError",
    "ValidationError",
    # Dataset
    "BundledDataset",
    "DatasetLoader",
    "LoadReport",
    "ParkRecord",
    "load_catalog",
    # Schema
    "CURRENT_VERSION",
    "DEFAULT_PLAN",
    "MigrationPlan",
    "MigrationStage",
    "SchemaMigrator",
    "SchemaVersion",
    "record_backup",
    "validate_migration",
    # Settings
    "SettingsStore",
    # Decorators
    "log_database_operation",
    "handle_db_errors",
    # Repositories
    "AccountRepository",
    "CatalogRepository",
]
