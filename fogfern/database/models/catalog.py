"""
Catalog Models
---------------

Local-only reference data reconciled from the bundled park dataset.

Models:
    - City: A supported city with its map bounds and open-data identifiers
    - Park: A curated park, optionally belonging to a City

Supporting types:
    - CityProfile: Immutable seed values used to create a City row
    - SAN_FRANCISCO: The bundled default city profile

Cities own their parks: deleting a City deletes its Parks through both the
ORM cascade and the ``ON DELETE CASCADE`` foreign key. Parks never hold a
reference to user data; visits point at parks through the composite
identifier instead (see ``fogfern.database.identifiers``).
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

# --- Third party ---
from sqlalchemy import (
    Boolean,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

# --- Local imports ---
from fogfern.core.exceptions import ValidationError
from fogfern.core.location import METERS_PER_MILE, Coordinate, haversine_meters
from .base import CatalogBase, TimestampMixin, UTCDateTime, enum_values
from .enums import ParkCategory, ParkSize


@dataclass(frozen=True)
class CityProfile:
    """
    Seed values for a City row.

    Profiles are the registry of supported cities: the dataset loader
    creates a City from its profile the first time that city is loaded.
    """

    name: str
    display_name: str
    state: str
    country: str
    timezone: str
    north_lat: float
    south_lat: float
    east_lng: float
    west_lng: float
    center_latitude: float
    center_longitude: float
    default_map_zoom: float = 12.0
    open_data_url: Optional[str] = None
    parks_dataset_id: Optional[str] = None
    facilities_dataset_id: Optional[str] = None

    @property
    def center(self) -> Coordinate:
        return Coordinate(self.center_latitude, self.center_longitude)


SAN_FRANCISCO = CityProfile(
    name="san_francisco",
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
    default_map_zoom=12.0,
    open_data_url="https://data.sfgov.org",
    parks_dataset_id="gtr9-ntp6",
    facilities_dataset_id="ib5c-xgwu",
)


class City(TimestampMixin, CatalogBase):
    """
    A city with a bundled park catalog.

    Attributes:
        id: Primary key (UUID)
        name: Machine name, lowercase without punctuation; unique lookup key
        display_name: Human-readable name
        state: State or region
        country: Country
        timezone: IANA timezone name
        north_lat, south_lat, east_lng, west_lng: Bounding box
        center_latitude, center_longitude: Map center
        default_map_zoom: Initial map zoom level
        open_data_url: Base URL of the city's open-data portal
        parks_dataset_id: Open-data dataset identifier for parks
        facilities_dataset_id: Open-data dataset identifier for facilities
        is_active: Whether the city is offered to users

    Relationships:
        parks: One-to-many with Park (cascade delete)

    Computed Properties:
        center: Map center as a Coordinate
        bounding_box: (northeast, southwest) coordinates
        park_count: Number of parks loaded for this city
    """

    __tablename__ = "cities"

    # --- Primary fields ---
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # --- Geography ---
    north_lat: Mapped[float] = mapped_column(Float, nullable=False)
    south_lat: Mapped[float] = mapped_column(Float, nullable=False)
    east_lng: Mapped[float] = mapped_column(Float, nullable=False)
    west_lng: Mapped[float] = mapped_column(Float, nullable=False)
    center_latitude: Mapped[float] = mapped_column(Float, nullable=False)
    center_longitude: Mapped[float] = mapped_column(Float, nullable=False)
    default_map_zoom: Mapped[float] = mapped_column(Float, nullable=False, default=12.0)

    # --- Open data ---
    open_data_url: Mapped[Optional[str]] = mapped_column(String(255))
    parks_dataset_id: Mapped[Optional[str]] = mapped_column(String(64))
    facilities_dataset_id: Mapped[Optional[str]] = mapped_column(String(64))

    # --- Relationships ---
    parks: Mapped[List["Park"]] = relationship(
        "Park",
        back_populates="city",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @classmethod
    def from_profile(cls, profile: CityProfile) -> "City":
        """Build a new City row seeded from a profile."""
        return cls(
            name=profile.name,
            display_name=profile.display_name,
            state=profile.state,
            country=profile.country,
            timezone=profile.timezone,
            north_lat=profile.north_lat,
            south_lat=profile.south_lat,
            east_lng=profile.east_lng,
            west_lng=profile.west_lng,
            center_latitude=profile.center_latitude,
            center_longitude=profile.center_longitude,
            default_map_zoom=profile.default_map_zoom,
            open_data_url=profile.open_data_url,
            parks_dataset_id=profile.parks_dataset_id,
            facilities_dataset_id=profile.facilities_dataset_id,
            is_active=True,
        )

    # --- Computed properties ---
    @property
    def center(self) -> Coordinate:
        return Coordinate(self.center_latitude, self.center_longitude)

    @property
    def bounding_box(self) -> Tuple[Coordinate, Coordinate]:
        """(northeast, southwest) corners."""
        return (
            Coordinate(self.north_lat, self.east_lng),
            Coordinate(self.south_lat, self.west_lng),
        )

    @property
    def park_count(self) -> int:
        return len(self.parks) if self.parks else 0

    def contains(self, point: Coordinate) -> bool:
        """Whether a coordinate falls inside the city's bounding box."""
        return (
            self.south_lat <= point.latitude <= self.north_lat
            and self.west_lng <= point.longitude <= self.east_lng
        )

    def __repr__(self) -> str:
        return f"<City(name='{self.name}')>"

    def __str__(self) -> str:
        return self.display_name


class Park(TimestampMixin, CatalogBase):
    """
    A curated park.

    ``size`` is never set directly: it is recomputed from ``acreage``
    whenever acreage is assigned, including at construction. A ``size``
    keyword is ignored and any other assignment raises ValidationError.

    Attributes:
        id: Primary key (UUID)
        name: Display name
        short_description: One-line summary (curated, preserved on reload)
        full_description: Long description (curated, preserved on reload)
        dataset_short_description, dataset_full_description: Description
            text as last shipped by the dataset
        category: ParkCategory
        size: ParkSize derived from acreage
        latitude, longitude: Coordinates; (0, 0) means "no coordinate"
        address: Street address
        neighborhood: Neighborhood name
        zip_code: Postal code
        acreage: Area in acres
        external_id: Stable property identifier from the open-data source
        is_active: Whether the park is listed
        last_sync: When the dataset loader last reconciled this row
        city_id: Owning city (nullable)

    Relationships:
        city: Many-to-one with City

    Computed Properties:
        coordinate: Coordinate of the park
        formatted_acreage: "0.5 acres" / "12 acres"
        image_name: Asset name derived from the park name
    """

    __tablename__ = "parks"
    __table_args__ = (Index("ix_parks_city_external_id", "city_id", "external_id"),)

    # --- Primary fields ---
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    short_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    full_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Last description text shipped by the dataset; differs once edited locally
    dataset_short_description: Mapped[Optional[str]] = mapped_column(Text)
    dataset_full_description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[ParkCategory] = mapped_column(
        SAEnum(
            ParkCategory,
            name="parkcategory",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=ParkCategory.DESTINATION,
        index=True,
    )
    size: Mapped[ParkSize] = mapped_column(
        SAEnum(ParkSize, name="parksize", values_callable=enum_values),
        nullable=False,
        default=ParkSize.POCKET,
        index=True,
    )

    # --- Location ---
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    neighborhood: Mapped[Optional[str]] = mapped_column(String(255))
    zip_code: Mapped[Optional[str]] = mapped_column(String(20))

    # --- Physical ---
    acreage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # --- Sync ---
    external_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_sync: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    # --- Relationships ---
    city_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("cities.id", ondelete="CASCADE"), nullable=True, index=True
    )
    city: Mapped[Optional["City"]] = relationship(
        "City", back_populates="parks", lazy="joined"
    )

    def __init__(self, **kwargs: Any) -> None:
        kwargs.pop("size", None)
        kwargs.setdefault("acreage", 0.0)
        super().__init__(**kwargs)

    @validates("acreage")
    def _derive_size(self, key: str, value: float) -> float:
        """Keep ``size`` in step with ``acreage``."""
        value = float(value or 0.0)
        self._derived_size = ParkSize.categorize(value)
        self.size = self._derived_size
        return value

    @validates("size")
    def _guard_size(self, key: str, value: ParkSize) -> ParkSize:
        if value is not getattr(self, "_derived_size", None):
            raise ValidationError(
                f"Park size is derived from acreage; cannot set it to {value!r}"
            )
        return value

    @property
    def has_curated_description(self) -> bool:
        """True when either description was edited after the dataset shipped it."""
        return (
            self.short_description != self.dataset_short_description
            or self.full_description != self.dataset_full_description
        )

    def apply_dataset_descriptions(self, short: str, full: str) -> None:
        """
        Take upstream description text without clobbering local edits.

        Each description follows the dataset only while it still equals the
        text the dataset shipped last time. Parks that never recorded
        dataset text count as curated.
        """
        if (
            self.dataset_short_description is not None
            and self.short_description == self.dataset_short_description
        ):
            self.short_description = short
        if (
            self.dataset_full_description is not None
            and self.full_description == self.dataset_full_description
        ):
            self.full_description = full
        self.dataset_short_description = short
        self.dataset_full_description = full

    # --- Computed properties ---
    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @property
    def has_coordinate(self) -> bool:
        return not self.coordinate.is_null_island

    @property
    def formatted_acreage(self) -> str:
        if self.acreage < 1.0:
            return "%.1f acres" % self.acreage
        return "%.0f acres" % self.acreage

    @property
    def image_name(self) -> str:
        return (
            self.name.lower()
            .replace(" ", "-")
            .replace("/", "-")
            .replace("&", "and")
            .replace("'", "")
            .replace(".", "")
        )

    def distance_to(self, point: Coordinate) -> float:
        """Great-circle distance in meters."""
        return haversine_meters(self.coordinate, point)

    def formatted_distance(self, point: Coordinate) -> str:
        """Distance in miles: "< 0.1 mi", "0.4 mi", "3 mi"."""
        miles = self.distance_to(point) / METERS_PER_MILE
        if miles < 0.1:
            return "< 0.1 mi"
        if miles < 1.0:
            return "%.1f mi" % miles
        return "%.0f mi" % miles

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for display and export."""
        return {
            "id": str(self.id),
            "name": self.name,
            "category": self.category.value,
            "size": self.size.value,
            "acreage": self.acreage,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "neighborhood": self.neighborhood,
            "external_id": self.external_id,
            "city": self.city.name if self.city else None,
        }

    def __repr__(self) -> str:
        return f"<Park(name='{self.name}', external_id={self.external_id!r})>"

    def __str__(self) -> str:
        return self.name
