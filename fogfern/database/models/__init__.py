"""
Database Models Package
------------------------

SQLAlchemy ORM models for the FogFern store.

- base: Declarative bases (catalog vs. user data), timestamp mixin
- enums: ParkCategory, ParkSize, UnitSystem, PrivacyLevel
- catalog: City, Park (local-only)
- accounts: User, Visit (synced)
- settings: AppSetting key-value rows (local-only)

Usage:
    from fogfern.database.models import Park, Visit, ParkCategory
"""
# Base classes
from .base import CatalogBase, TimestampMixin, UserDataBase, UTCDateTime, utc_now

# Enumerations
from .enums import ParkCategory, ParkSize, PrivacyLevel, UnitSystem

# Catalog models
from .catalog import SAN_FRANCISCO, City, CityProfile, Park

# Synced models
from .accounts import User, Visit, compute_streaks

# Settings
from .settings import AppSetting

__all__ = [
    # Base
    "CatalogBase",
    "UserDataBase",
    "TimestampMixin",
    "UTCDateTime",
    "utc_now",
    # Enums
    "ParkCategory",
    "ParkSize",
    "PrivacyLevel",
    "UnitSystem",
    # Catalog
    "City",
    "CityProfile",
    "Park",
    "SAN_FRANCISCO",
    # Accounts
    "User",
    "Visit",
    "compute_streaks",
    # Settings
    "AppSetting",
]
