#!/usr/bin/env python3
"""
app.py
--------------------
Top-level composition.

``bootstrap_application`` runs once per process:

1. Open a store through the StoreBootstrapper (cloud, then local).
2. Build the catalog and account repositories over it.
3. Resolve the current user id, creating the first user if needed.

The resulting AppContext is passed to whatever needs it; nothing here is
global.

Usage:
    context = await bootstrap_application(data_dir=Path("~/.fogfern"))
    parks = await context.catalog.get_all(context.city)
    context.close()
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

# --- Local imports ---
from fogfern.core.logging_manager import FogFernLogger
from fogfern.core.paths import BUNDLED_DATASET, DATA_DIR
from fogfern.database.bootstrap import StoreBootstrapper
from fogfern.database.dataset_loader import DatasetLoader
from fogfern.database.models import SAN_FRANCISCO, CityProfile
from fogfern.database.repositories import AccountRepository, CatalogRepository
from fogfern.database.store import FogFernStore, StoreConfiguration


@dataclass
class AppContext:
    """
    Everything the application layer needs after start-up.

    Attributes:
        store: Open store
        catalog: Catalog repository
        accounts: Account repository
        current_user_id: Id of the device's current user
        city: Default city profile
    """

    store: FogFernStore
    catalog: CatalogRepository
    accounts: AccountRepository
    current_user_id: uuid.UUID
    city: CityProfile

    def close(self) -> None:
        self.store.close()


def build_bootstrapper(
    data_dir: Union[str, Path] = DATA_DIR,
    cloud_url: Optional[str] = None,
    logger: Optional[FogFernLogger] = None,
) -> StoreBootstrapper:
    return StoreBootstrapper(
        cloud=StoreConfiguration.cloud(cloud_url, data_dir),
        local=StoreConfiguration.local(data_dir),
        logger=logger,
    )


async def bootstrap_application(
    data_dir: Union[str, Path] = DATA_DIR,
    cloud_url: Optional[str] = None,
    dataset_path: Union[str, Path] = BUNDLED_DATASET,
    city: CityProfile = SAN_FRANCISCO,
    logger: Optional[FogFernLogger] = None,
) -> AppContext:
    """
    Open the store and bootstrap the current user.

    Raises:
        StoreUnavailableError: If no store configuration opens
        AccountError: If the current user cannot be resolved
    """
    store = build_bootstrapper(data_dir, cloud_url, logger).start()
    loader = DatasetLoader(dataset_path, logger)
    catalog = CatalogRepository(store, loader, {city.name: city}, logger)
    accounts = AccountRepository(store, logger)
    try:
        current_user_id = await accounts.get_current_user_id()
    except Exception:
        store.close()
        raise
    return AppContext(store, catalog, accounts, current_user_id, city)
