#!/usr/bin/env python3
"""
repositories package
--------------------
Async repositories over the FogFern store.

Each repository runs every operation in its own session and rewraps
storage failures into its own error family.

Available Repositories:
    BaseRepository: Abstract base with unit-of-work and retry helpers
    CatalogRepository: Park/City queries, self-healing loads, refreshes
    AccountRepository: Users, preferences, onboarding and visits

Usage:
    from fogfern.database.repositories import CatalogRepository

    catalog = CatalogRepository(store, loader, logger=logger)
    parks = await catalog.get_all("san_francisco")
"""
from .base_repository import BaseRepository
from .catalog_repository import CatalogRepository, CatalogStatistics
from .account_repository import AccountRepository, UserEngagementMetrics, UserPreferences

__all__ = [
    "BaseRepository",
    "CatalogRepository",
    "CatalogStatistics",
    "AccountRepository",
    "UserEngagementMetrics",
    "UserPreferences",
]
