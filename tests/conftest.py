"""
conftest.py
-----------
Shared pytest fixtures for FogFern tests.

Provides fixtures for:
- Temporary data directories and store setup/teardown
- Small bundled datasets written on demand
- Repository instances over a local-only store
- Test data factories for parks and cities
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from fogfern.database.dataset_loader import DatasetLoader
from fogfern.database.models import SAN_FRANCISCO, City, CityProfile, Park, ParkCategory
from fogfern.database.repositories import AccountRepository, CatalogRepository
from fogfern.database.store import FogFernStore, StoreConfiguration


# ----- Profiles -----

SF_TEST = CityProfile(
    name="sf",
    display_name="San Francisco",
    state="California",
    country="United States",
    timezone="America/Los_Angeles",
    north_lat=37.812,
    south_lat=37.708,
    east_lng=-122.357,
    west_lng=-122.515,
    center_latitude=37.7749,
    center_longitude=-122.4194,
)


# ----- Dataset Factories -----

def park_record(
    name: str,
    external_id: Optional[str],
    category: str = "neighborhood",
    acreage: float = 2.0,
    latitude: float = 37.76,
    longitude: float = -122.43,
    short: str = "",
    full: str = "",
    neighborhood: Optional[str] = None,
) -> Dict[str, Any]:
    """One park as it appears in the bundled JSON."""
    return {
        "name": name,
        "shortDescription": short or f"{name} short",
        "fullDescription": full or f"{name} full",
        "category": category,
        "latitude": latitude,
        "longitude": longitude,
        "address": f"{name} address",
        "neighborhood": neighborhood,
        "acreage": acreage,
        "externalPropertyID": external_id,
    }


def write_dataset(path: Path, version: str, parks: List[Dict[str, Any]]) -> Path:
    """Write a bundled dataset file and return its path."""
    path.write_text(
        json.dumps(
            {"version": version, "generatedDate": "2025-06-20T00:00:00Z", "parks": parks}
        ),
        encoding="utf-8",
    )
    return path


def default_records() -> List[Dict[str, Any]]:
    """Four parks with ids (one at (0, 0)) and one without an id."""
    return [
        park_record(
            "Featured Park",
            "FEA001",
            category="destination",
            acreage=120.0,
            latitude=37.7694,
            longitude=-122.4862,
            short="A featured destination",
            neighborhood="Sunset",
        ),
        park_record(
            "Dolores Park",
            "DOL002",
            category="destination",
            acreage=15.9,
            latitude=37.7596,
            longitude=-122.4269,
            short="Sunny lawns",
            neighborhood="Mission",
        ),
        park_record(
            "Alamo Square",
            "ALA003",
            acreage=12.7,
            latitude=37.7763,
            longitude=-122.4346,
            short="Painted Ladies",
            neighborhood="Western Addition",
        ),
        park_record(
            "Nowhere Lot",
            "NUL004",
            category="mini",
            acreage=0.3,
            latitude=0.0,
            longitude=0.0,
        ),
        park_record("Unnamed Garden", None, category="garden", acreage=0.4),
    ]


# ----- Path Fixtures -----

@pytest.fixture
def data_dir(tmp_path):
    """Per-test data directory for the databases."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def dataset_path(tmp_path):
    """Bundled dataset at version 1.0.0 with the default records."""
    return write_dataset(tmp_path / "parks.json", "1.0.0", default_records())


# ----- Store Fixtures -----

@pytest.fixture
def store(data_dir):
    """Open local-only store; closed after the test."""
    opened = FogFernStore(StoreConfiguration.local(data_dir)).open()
    yield opened
    opened.close()


@pytest.fixture
def session(store):
    """Session that commits when the test finishes."""
    with store.session_scope() as active:
        yield active


@pytest.fixture
def loader(dataset_path):
    """DatasetLoader over the test dataset."""
    return DatasetLoader(dataset_path)


@pytest.fixture
def catalog(store, loader):
    """CatalogRepository serving the test city."""
    return CatalogRepository(store, loader, {SF_TEST.name: SF_TEST})


@pytest.fixture
def accounts(store):
    """AccountRepository over the test store."""
    return AccountRepository(store)


# ----- Model Factories -----

@pytest.fixture
def sf_profile():
    return SF_TEST


@pytest.fixture
def bundled_profile():
    return SAN_FRANCISCO


def make_city(name: str = "sf") -> City:
    """Unsaved City with a minimal bounding box."""
    return City(
        name=name,
        display_name=name.upper(),
        north_lat=37.812,
        south_lat=37.708,
        east_lng=-122.357,
        west_lng=-122.515,
        center_latitude=37.7749,
        center_longitude=-122.4194,
    )


def make_park(
    name: str = "Test Park",
    external_id: Optional[str] = "INT123",
    city: Optional[City] = None,
    acreage: float = 3.0,
    category: ParkCategory = ParkCategory.NEIGHBORHOOD,
    **kwargs: Any,
) -> Park:
    """Unsaved Park."""
    return Park(
        name=name,
        external_id=external_id,
        city=city,
        acreage=acreage,
        category=category,
        **kwargs,
    )


@pytest.fixture
def city_factory():
    """Factory building unsaved cities."""
    return make_city


@pytest.fixture
def park_factory():
    """Factory building unsaved parks."""
    return make_park


@pytest.fixture
def record_factory():
    """Factory building dataset park records."""
    return park_record


@pytest.fixture
def dataset_writer():
    """Writes dataset files: ``dataset_writer(path, version, records)``."""
    return write_dataset
