#!/usr/bin/env python3
"""
dataset_loader.py
--------------------
Reconcile the bundled park dataset into the local catalog database.

The bundled file is JSON shaped as::

    {
      "version": "1.0.0",
      "generatedDate": "2025-06-20T00:00:00Z",
      "parks": [{"name": ..., "shortDescription": ..., "fullDescription": ...,
                 "category": ..., "latitude": ..., "longitude": ...,
                 "address": ..., "neighborhood": ..., "acreage": ...,
                 "externalPropertyID": ...}, ...]
    }

Algorithm (one call, inside the caller's transaction):
    1. Version gate: if the persisted marker equals the dataset version,
       stop. Checked on every call, not only when the catalog is empty.
    2. Resolve the City by machine name, creating it from its profile.
    3. For each record with an external id: insert new parks; for existing
       parks update only operational fields (name, address, neighborhood,
       acreage/size, coordinates, timestamps). Descriptions edited locally
       are kept; descriptions still matching what the dataset last shipped
       follow the new upstream text.
    4. Remove duplicate parks sharing an external id within the city,
       keeping the most recently updated one.
    5. Persist the dataset version as the new marker.

Records with an unknown category are skipped individually; the error is
collected on the LoadReport instead of aborting the load.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# --- Third party imports ---
from sqlalchemy import select
from sqlalchemy.orm import Session

# --- Local imports ---
from fogfern.core.exceptions import (
    DatasetLoaderError,
    DatasetLoaderErrorKind,
    ValidationError,
)
from fogfern.core.logging_manager import FogFernLogger, safe_logger
from fogfern.core.paths import BUNDLED_DATASET
from fogfern.core.validators import DataValidator
from .models import City, CityProfile, Park, ParkCategory, utc_now
from .settings_store import DATASET_VERSION_KEY, SettingsStore


# ----- Records -----
@dataclass
class ParkRecord:
    """
    One park as shipped in the bundled dataset.

    ``category`` stays a raw string until reconciliation so that a single
    bad value only rejects its own record.
    """

    name: str
    short_description: str
    full_description: str
    category: str
    latitude: float
    longitude: float
    address: str
    acreage: float
    neighborhood: Optional[str] = None
    external_id: Optional[str] = None
    zip_code: Optional[str] = None
    object_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParkRecord":
        """
        Build a record from its JSON object.

        ``externalPropertyID`` and the older ``sfParksPropertyID`` key are
        both accepted for the external id.

        Raises:
            DatasetLoaderError: INVALID_FORMAT on missing or mistyped fields
        """
        try:
            external_id = data.get("externalPropertyID", data.get("sfParksPropertyID"))
            return cls(
                name=str(data["name"]),
                short_description=data.get("shortDescription") or "",
                full_description=data.get("fullDescription") or "",
                category=str(data["category"]),
                latitude=DataValidator.normalize_float(data["latitude"]),
                longitude=DataValidator.normalize_float(data["longitude"]),
                address=data.get("address") or "",
                acreage=DataValidator.normalize_float(data.get("acreage")),
                neighborhood=DataValidator.normalize_string(data.get("neighborhood")),
                external_id=DataValidator.normalize_string(external_id),
                zip_code=DataValidator.normalize_string(data.get("zipCode")),
                object_id=data.get("sfParksObjectID"),
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise DatasetLoaderError(
                DatasetLoaderErrorKind.INVALID_FORMAT,
                f"bad park record {data.get('name', '?') if isinstance(data, dict) else data!r}: {e}",
                cause=e,
            ) from e

    def parsed_category(self) -> ParkCategory:
        """
        Raises:
            DatasetLoaderError: INVALID_CATEGORY for values outside ParkCategory
        """
        try:
            return ParkCategory(self.category)
        except ValueError as e:
            raise DatasetLoaderError(
                DatasetLoaderErrorKind.INVALID_CATEGORY,
                self.category,
                context={"park": self.name, "external_id": self.external_id},
                cause=e,
            ) from e


@dataclass
class BundledDataset:
    """A versioned set of park records."""

    version: str
    generated_date: str
    parks: List[ParkRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BundledDataset":
        """
        Raises:
            DatasetLoaderError: INVALID_FORMAT on a missing version or parks list
        """
        if not isinstance(data, dict):
            raise DatasetLoaderError(DatasetLoaderErrorKind.INVALID_FORMAT, "top level is not an object")
        try:
            version = data["version"]
            raw_parks = data["parks"]
        except KeyError as e:
            raise DatasetLoaderError(
                DatasetLoaderErrorKind.INVALID_FORMAT, f"missing key {e}", cause=e
            ) from e
        if not isinstance(raw_parks, list) or not version:
            raise DatasetLoaderError(
                DatasetLoaderErrorKind.INVALID_FORMAT, "version must be set and parks must be a list"
            )
        return cls(
            version=str(version),
            generated_date=str(data.get("generatedDate", "")),
            parks=[ParkRecord.from_dict(item) for item in raw_parks],
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "BundledDataset":
        """
        Read and decode a dataset file.

        Raises:
            DatasetLoaderError: FILE_NOT_FOUND if the file is absent,
                INVALID_FORMAT if it cannot be decoded
        """
        path = Path(path)
        if not path.is_file():
            raise DatasetLoaderError(DatasetLoaderErrorKind.FILE_NOT_FOUND, str(path))
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DatasetLoaderError(
                DatasetLoaderErrorKind.INVALID_FORMAT, f"{path.name}: {e}", cause=e
            ) from e
        return cls.from_dict(data)


# ----- Report -----
@dataclass
class LoadReport:
    """
    Outcome of one ``load_catalog`` call.

    Attributes:
        version: Dataset version that was read
        city_name: Machine name of the target city
        skipped: True when the version gate stopped the load
        inserted: New parks created
        updated: Existing parks reconciled
        skipped_missing_id: Records without an external id
        duplicates_removed: Parks deleted by duplicate cleanup
        failures: Per-record errors (unknown categories)
    """

    version: str
    city_name: str
    skipped: bool = False
    inserted: int = 0
    updated: int = 0
    skipped_missing_id: int = 0
    duplicates_removed: int = 0
    failures: List[DatasetLoaderError] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.inserted + self.updated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "city": self.city_name,
            "skipped": self.skipped,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped_missing_id": self.skipped_missing_id,
            "duplicates_removed": self.duplicates_removed,
            "failures": [failure.description for failure in self.failures],
        }


# ----- Loader -----
class DatasetLoader:
    """
    Reconcile a bundled dataset into the catalog.

    Attributes:
        dataset_path: Path of the bundled JSON file
        logger: Optional logger
    """

    def __init__(
        self,
        dataset_path: Union[str, Path] = BUNDLED_DATASET,
        logger: Optional[FogFernLogger] = None,
    ) -> None:
        self.dataset_path = Path(dataset_path)
        self.logger = logger

    def read_dataset(self) -> BundledDataset:
        return BundledDataset.from_file(self.dataset_path)

    def load_catalog(
        self, session: Session, default_city: CityProfile, force: bool = False
    ) -> LoadReport:
        """
        Reconcile the dataset into ``session``.

        Nothing is committed here; the caller's session scope commits the
        whole load as one transaction.

        Args:
            session: Session bound to the catalog database
            default_city: Profile of the city the dataset belongs to
            force: Ignore the version gate

        Returns:
            LoadReport

        Raises:
            DatasetLoaderError: FILE_NOT_FOUND or INVALID_FORMAT
        """
        log = safe_logger(self.logger)
        dataset = self.read_dataset()
        settings = SettingsStore(session, self.logger)
        report = LoadReport(version=dataset.version, city_name=default_city.name)

        applied = settings.get(DATASET_VERSION_KEY)
        if applied == dataset.version and not force:
            report.skipped = True
            log.log_debug("Dataset already applied", {"version": dataset.version})
            return report

        city = self.resolve_city(session, default_city)
        now = utc_now()

        for record in dataset.parks:
            if not record.external_id:
                report.skipped_missing_id += 1
                continue
            try:
                category = record.parsed_category()
            except DatasetLoaderError as e:
                report.failures.append(e)
                log.log_warning(
                    "Skipping park with unknown category",
                    {"park": record.name, "category": record.category},
                )
                continue
            self._reconcile(session, city, record, category, now, report)

        session.flush()
        report.duplicates_removed = self.remove_duplicates(session, city)
        settings.set(DATASET_VERSION_KEY, dataset.version)

        log.log_operation("catalog_loaded", report.to_dict())
        return report

    def resolve_city(self, session: Session, profile: CityProfile) -> City:
        """Existing City with the profile's machine name, or a new one."""
        city = session.scalars(select(City).where(City.name == profile.name)).first()
        if city is None:
            city = City.from_profile(profile)
            session.add(city)
            session.flush()
            safe_logger(self.logger).log_info(f"Created city {profile.name}")
        return city

    def _reconcile(
        self,
        session: Session,
        city: City,
        record: ParkRecord,
        category: ParkCategory,
        now: datetime,
        report: LoadReport,
    ) -> None:
        park = session.scalars(
            select(Park)
            .where(Park.city_id == city.id, Park.external_id == record.external_id)
            .order_by(Park.last_updated.desc())
        ).first()

        name = DataValidator.normalize_string(record.name) or record.name

        if park is None:
            park = Park(
                name=name,
                short_description=record.short_description,
                full_description=record.full_description,
                dataset_short_description=record.short_description,
                dataset_full_description=record.full_description,
                category=category,
                latitude=record.latitude,
                longitude=record.longitude,
                address=record.address,
                neighborhood=record.neighborhood,
                zip_code=record.zip_code,
                acreage=record.acreage,
                external_id=record.external_id,
                city=city,
                is_active=True,
                created_at=now,
                last_updated=now,
                last_sync=now,
            )
            session.add(park)
            report.inserted += 1
            return

        park.name = name
        park.address = record.address
        park.neighborhood = record.neighborhood
        park.acreage = record.acreage
        park.latitude = record.latitude
        park.longitude = record.longitude
        park.apply_dataset_descriptions(record.short_description, record.full_description)
        park.last_updated = now
        park.last_sync = now
        report.updated += 1

    def remove_duplicates(self, session: Session, city: City) -> int:
        """
        Delete all but the most recently updated park per external id.

        Returns:
            Number of parks deleted
        """
        parks = session.scalars(
            select(Park)
            .where(Park.city_id == city.id, Park.external_id.is_not(None))
            .order_by(Park.external_id, Park.last_updated.desc(), Park.created_at.desc())
        ).all()

        seen = set()
        removed = 0
        for park in parks:
            if park.external_id in seen:
                session.delete(park)
                removed += 1
            else:
                seen.add(park.external_id)

        if removed:
            session.flush()
            safe_logger(self.logger).log_info(
                "Removed duplicate parks", {"city": city.name, "removed": removed}
            )
        return removed


def load_catalog(
    session: Session,
    default_city: CityProfile,
    force: bool = False,
    dataset_path: Union[str, Path] = BUNDLED_DATASET,
    logger: Optional[FogFernLogger] = None,
) -> LoadReport:
    """Functional shortcut for ``DatasetLoader(dataset_path, logger).load_catalog(...)``."""
    return DatasetLoader(dataset_path, logger).load_catalog(session, default_city, force=force)
