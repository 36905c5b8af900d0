#!/usr/bin/env python3
"""
catalog_repository.py
--------------------
Query surface over the local park catalog.

Every query is scoped to a supported city. Reads are self-healing: when a
city has no active parks, the dataset loader runs inside the same unit of
work and the freshly loaded parks are returned.

Operations:
    get_all, get_near, get_near_current_location, get_by_category,
    get_by_size, search, get_park, find_park, sync_from_remote, refresh,
    get_visit_statistics, get_all_for_display (synchronous, read-only)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

# --- Third party imports ---
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# --- Local imports ---
from fogfern.core.exceptions import (
    CatalogError,
    CatalogErrorKind,
    DatabaseError,
    DatasetLoaderError,
    DatasetLoaderErrorKind,
)
from fogfern.core.location import Coordinate, LocationProvider, is_authorized
from fogfern.core.logging_manager import FogFernLogger, safe_logger
from fogfern.core.validators import DataValidator
from ..dataset_loader import DatasetLoader, LoadReport
from ..decorators import log_database_operation
from ..identifiers import find_park
from ..models import SAN_FRANCISCO, City, CityProfile, Park, ParkCategory, ParkSize
from ..store import FogFernStore
from .base_repository import BaseRepository

CityRef = Union[str, CityProfile, City]


@dataclass
class CatalogStatistics:
    """
    Aggregates over a city's active parks.

    Attributes:
        total_parks: Number of parks
        total_acreage: Sum of acreage
        category_breakdown: Park count per category
        size_breakdown: Park count per size class
    """

    total_parks: int = 0
    total_acreage: float = 0.0
    category_breakdown: Dict[ParkCategory, int] = field(default_factory=dict)
    size_breakdown: Dict[ParkSize, int] = field(default_factory=dict)

    @classmethod
    def from_parks(cls, parks: List[Park]) -> "CatalogStatistics":
        stats = cls(total_parks=len(parks))
        for park in parks:
            stats.total_acreage += park.acreage
            stats.category_breakdown[park.category] = (
                stats.category_breakdown.get(park.category, 0) + 1
            )
            stats.size_breakdown[park.size] = stats.size_breakdown.get(park.size, 0) + 1
        return stats

    @property
    def average_acreage(self) -> float:
        return self.total_acreage / self.total_parks if self.total_parks else 0.0


class CatalogRepository(BaseRepository):
    """
    Async catalog queries.

    Attributes:
        store: Open FogFernStore
        loader: DatasetLoader used for self-healing and refreshes
        cities: Supported city profiles keyed by machine name
        logger: Optional logger
    """

    error_class = CatalogError
    storage_failure = CatalogErrorKind.STORAGE_FAILURE

    def __init__(
        self,
        store: FogFernStore,
        loader: Optional[DatasetLoader] = None,
        cities: Optional[Mapping[str, CityProfile]] = None,
        logger: Optional[FogFernLogger] = None,
    ) -> None:
        super().__init__(store, logger)
        self.loader = loader or DatasetLoader(logger=logger)
        self.cities: Dict[str, CityProfile] = dict(
            cities or {SAN_FRANCISCO.name: SAN_FRANCISCO}
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def resolve_city(self, city: CityRef) -> CityProfile:
        """
        Profile for a city reference.

        Names are normalized first, so "San Francisco" finds san_francisco.

        Raises:
            CatalogError: UNSUPPORTED_CITY when no profile is registered
        """
        name = DataValidator.normalize_machine_name(city) if isinstance(city, str) else city.name
        profile = self.cities.get(name)
        if profile is None:
            raise CatalogError(CatalogErrorKind.UNSUPPORTED_CITY, name)
        return profile

    @staticmethod
    def _query_active(session: Session, profile: CityProfile) -> List[Park]:
        stmt = (
            select(Park)
            .join(City, Park.city_id == City.id)
            .where(City.name == profile.name, Park.is_active.is_(True))
            .order_by(Park.name)
        )
        return list(session.scalars(stmt).unique().all())

    def _load(self, session: Session, profile: CityProfile, force: bool) -> LoadReport:
        try:
            return self.loader.load_catalog(session, profile, force=force)
        except DatasetLoaderError as e:
            raise CatalogError(
                CatalogErrorKind.SYNC_FAILURE,
                e.description,
                context={"city": profile.name},
                cause=e,
            ) from e

    def _all_active(self, session: Session, profile: CityProfile) -> List[Park]:
        parks = self._query_active(session, profile)
        if parks:
            return parks

        log = safe_logger(self.logger)
        log.log_info("Catalog empty, loading bundled dataset", {"city": profile.name})
        try:
            self.loader.load_catalog(session, profile, force=True)
        except DatasetLoaderError as e:
            if e.kind is DatasetLoaderErrorKind.FILE_NOT_FOUND:
                log.log_warning(
                    "Bundled dataset missing; continuing with an empty catalog",
                    {"city": profile.name, "path": str(self.loader.dataset_path)},
                )
                return []
            raise CatalogError(
                CatalogErrorKind.SYNC_FAILURE,
                e.description,
                context={"city": profile.name},
                cause=e,
            ) from e
        session.flush()
        return self._query_active(session, profile)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @log_database_operation("catalog_get_all")
    async def get_all(self, city: CityRef) -> List[Park]:
        """
        Active parks of a city sorted by name.

        An empty catalog triggers a dataset load; a missing dataset file
        yields an empty list.
        """
        profile = self.resolve_city(city)
        return await self._run(
            "get_all",
            lambda session: self._all_active(session, profile),
            {"city": profile.name},
        )

    @log_database_operation("catalog_get_near")
    async def get_near(
        self, point: Coordinate, radius_meters: float, city: CityRef
    ) -> List[Park]:
        """
        Parks within ``radius_meters`` of ``point``, nearest first.

        Parks at (0, 0) have no real coordinate and are never returned.
        """
        profile = self.resolve_city(city)

        def work(session: Session) -> List[Park]:
            nearby = []
            for park in self._all_active(session, profile):
                if not park.has_coordinate:
                    continue
                distance = park.distance_to(point)
                if distance <= radius_meters:
                    nearby.append((distance, park.name, park))
            nearby.sort(key=lambda item: (item[0], item[1]))
            return [park for _, _, park in nearby]

        return await self._run(
            "get_near",
            work,
            {
                "city": profile.name,
                "latitude": point.latitude,
                "longitude": point.longitude,
                "radius_meters": radius_meters,
            },
        )

    async def get_near_current_location(
        self, provider: LocationProvider, radius_meters: float, city: CityRef
    ) -> List[Park]:
        """
        ``get_near`` around the provider's latest sample.

        Raises:
            CatalogError: MISSING_LOCATION_DATA when the provider is not
                authorized or has no sample yet
        """
        if not is_authorized(provider) or provider.latest_coordinate is None:
            raise CatalogError(
                CatalogErrorKind.MISSING_LOCATION_DATA,
                context={"authorization": provider.authorization_status.value},
            )
        return await self.get_near(provider.latest_coordinate, radius_meters, city)

    @log_database_operation("catalog_get_by_category")
    async def get_by_category(
        self, category: Union[ParkCategory, str], city: CityRef
    ) -> List[Park]:
        """Active parks in ``category``, sorted by name."""
        profile = self.resolve_city(city)
        try:
            category = ParkCategory(category)
        except ValueError as e:
            raise CatalogError(
                CatalogErrorKind.INVALID_INPUT, f"unknown category '{category}'", cause=e
            ) from e

        return await self._run(
            "get_by_category",
            lambda session: [
                park for park in self._all_active(session, profile) if park.category is category
            ],
            {"city": profile.name, "category": category.value},
        )

    @log_database_operation("catalog_get_by_size")
    async def get_by_size(self, size: Union[ParkSize, str], city: CityRef) -> List[Park]:
        """Active parks of a size class, largest acreage first, then by name."""
        profile = self.resolve_city(city)
        try:
            size = ParkSize(size)
        except ValueError as e:
            raise CatalogError(
                CatalogErrorKind.INVALID_INPUT, f"unknown size '{size}'", cause=e
            ) from e

        def work(session: Session) -> List[Park]:
            parks = [park for park in self._all_active(session, profile) if park.size is size]
            return sorted(parks, key=lambda park: (-park.acreage, park.name))

        return await self._run("get_by_size", work, {"city": profile.name, "size": size.value})

    @log_database_operation("catalog_search")
    async def search(self, query: str, city: CityRef) -> List[Park]:
        """
        Case-insensitive substring search over name, short description and
        neighborhood.

        Raises:
            CatalogError: INVALID_INPUT for an empty or whitespace-only query,
                before any storage access
        """
        if query is None or not query.strip():
            raise CatalogError(
                CatalogErrorKind.INVALID_INPUT,
                "search query is empty",
                context={"query": query},
            )
        profile = self.resolve_city(city)
        needle = query.strip().casefold()

        def matches(park: Park) -> bool:
            fields = (park.name, park.short_description, park.neighborhood)
            return any(needle in value.casefold() for value in fields if value)

        return await self._run(
            "search",
            lambda session: [
                park for park in self._all_active(session, profile) if matches(park)
            ],
            {"city": profile.name, "query": query},
        )

    async def get_park(self, park_id: uuid.UUID) -> Park:
        """
        Raises:
            CatalogError: NOT_FOUND if no park has this id
        """

        def work(session: Session) -> Park:
            park = session.get(Park, park_id)
            if park is None:
                raise CatalogError(CatalogErrorKind.NOT_FOUND, park_id)
            return park

        return await self._run("get_park", work, {"park_id": str(park_id)})

    async def find_park(self, identifier: str) -> Optional[Park]:
        """Resolve a composite identifier; None if the park is not loaded."""
        return await self._run(
            "find_park",
            lambda session: find_park(session, identifier),
            {"identifier": identifier},
        )

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    @log_database_operation("catalog_sync_from_remote")
    async def sync_from_remote(self, city: CityRef) -> LoadReport:
        """
        Run the dataset loader. The version gate applies.

        Raises:
            CatalogError: SYNC_FAILURE if the dataset cannot be read
        """
        profile = self.resolve_city(city)
        return await self._run(
            "sync_from_remote",
            lambda session: self._load(session, profile, force=False),
            {"city": profile.name},
        )

    @log_database_operation("catalog_refresh")
    async def refresh(self, city: CityRef) -> LoadReport:
        """
        Run the dataset loader ignoring the version gate.

        Raises:
            CatalogError: SYNC_FAILURE if the dataset cannot be read
        """
        profile = self.resolve_city(city)
        return await self._run(
            "refresh",
            lambda session: self._load(session, profile, force=True),
            {"city": profile.name},
        )

    # -------------------------------------------------------------------------
    # Aggregates and display
    # -------------------------------------------------------------------------

    async def get_visit_statistics(self, city: CityRef) -> CatalogStatistics:
        """Count, total acreage and category/size histograms over ``get_all``."""
        return CatalogStatistics.from_parks(await self.get_all(city))

    def get_all_for_display(self, city: CityRef) -> List[Park]:
        """
        Active parks for rendering, from the read-only handle.

        Never triggers a load; an empty catalog returns an empty list.
        """
        profile = self.resolve_city(city)
        try:
            with self.store.read_session() as session:
                return self._query_active(session, profile)
        except (SQLAlchemyError, DatabaseError) as e:
            raise self._wrap_storage_error(
                "get_all_for_display", e, {"city": profile.name}
            ) from e
