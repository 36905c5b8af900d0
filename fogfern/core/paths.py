#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and default configuration for FogFern.

Package-relative paths (bundled dataset, Alembic scripts) are resolved from
this file. Per-device data (databases, logs) lives under ``DATA_DIR``, which
defaults to ``~/.fogfern`` and can be overridden through the CLI's
``--data-dir`` option or by passing paths to the store constructors.

Layout:
    DATA_DIR/
    ├── catalog.db      # Local-only reference data (cities, parks, settings)
    ├── userdata.db     # Local-only backing for users and visits
    └── logs/           # Rotating log files
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path

# ----- Package -----
PACKAGE_ROOT: Path = Path(__file__).resolve().parent.parent
BUNDLED_DATA_DIR: Path = PACKAGE_ROOT / "data"
BUNDLED_DATASET: Path = BUNDLED_DATA_DIR / "sf_parks.json"
MIGRATIONS_DIR: Path = PACKAGE_ROOT / "migrations"

# ----- Per-device data -----
DATA_DIR: Path = Path.home() / ".fogfern"
CATALOG_DB_NAME = "catalog.db"
USER_DATA_DB_NAME = "userdata.db"
LOG_DIR_NAME = "logs"


def catalog_db_path(data_dir: Path = DATA_DIR) -> Path:
    """Catalog database file under ``data_dir``."""
    return Path(data_dir).expanduser() / CATALOG_DB_NAME


def user_data_db_path(data_dir: Path = DATA_DIR) -> Path:
    """Local-only user-data database file under ``data_dir``."""
    return Path(data_dir).expanduser() / USER_DATA_DB_NAME


def log_dir(data_dir: Path = DATA_DIR) -> Path:
    """Log directory under ``data_dir``."""
    return Path(data_dir).expanduser() / LOG_DIR_NAME


def sqlite_url(path: Path) -> str:
    """SQLAlchemy URL for a SQLite file."""
    return f"sqlite:///{Path(path).expanduser().resolve()}"
