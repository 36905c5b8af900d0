#!/usr/bin/env python3
"""
location.py
--------------------
Coordinates, great-circle distance and the location provider interface.

The store never drives location hardware. It only reads a provider's
authorization state and its latest coordinate sample.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

EARTH_RADIUS_METERS = 6_371_000.0
METERS_PER_MILE = 1609.344


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    @property
    def is_null_island(self) -> bool:
        """True for (0, 0), which the dataset uses for "no coordinate"."""
        return self.latitude == 0.0 and self.longitude == 0.0

    def distance_to(self, other: "Coordinate") -> float:
        """Great-circle distance in meters (haversine)."""
        return haversine_meters(self, other)


def haversine_meters(a: Coordinate, b: Coordinate) -> float:
    """
    Great-circle distance between two coordinates.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Distance in meters
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlng = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


class AuthorizationStatus(str, Enum):
    """Location permission states reported by a provider."""

    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    RESTRICTED = "restricted"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"

    @property
    def is_authorized(self) -> bool:
        return self in (
            AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
            AuthorizationStatus.AUTHORIZED_ALWAYS,
        )


@runtime_checkable
class LocationProvider(Protocol):
    """Source of coordinate samples and a permission state."""

    @property
    def authorization_status(self) -> AuthorizationStatus: ...

    @property
    def latest_coordinate(self) -> Optional[Coordinate]: ...


def is_authorized(provider: LocationProvider) -> bool:
    """Whether the provider may be read."""
    return provider.authorization_status.is_authorized


@dataclass
class StaticLocationProvider:
    """
    Provider with a fixed state, for the CLI and tests.

    Attributes:
        authorization_status: Reported permission state
        latest_coordinate: Last sample, or None before the first fix
    """

    authorization_status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED_WHEN_IN_USE
    latest_coordinate: Optional[Coordinate] = None
