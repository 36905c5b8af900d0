"""
Enumeration Types
------------------

Enum classes for the FogFern models.

Enums:
    - ParkCategory: Curated park category (closed set plus legacy values)
    - ParkSize: Size class derived from acreage
    - UnitSystem: Preferred measurement units
    - PrivacyLevel: Default visibility of logged visits

These enums are stored by value (``"destination"``, ``"pocket"``...) so
that the bundled dataset strings and the database agree.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import List


class ParkCategory(str, Enum):
    """
    Park categories.

    The first five are surfaced in the app:
    - DESTINATION: Major parks worth travelling to
    - NEIGHBORHOOD: Local parks serving a neighborhood
    - MINI: Small lots and pocket parks
    - PLAZA: Civic plazas
    - GARDEN: Community gardens

    SCENIC, RECREATIONAL, HISTORIC and WATERFRONT are legacy values that
    older datasets may still contain. They decode but are not offered as
    filters.
    """

    DESTINATION = "destination"
    NEIGHBORHOOD = "neighborhood"
    MINI = "mini"
    PLAZA = "plaza"
    GARDEN = "garden"
    SCENIC = "scenic"
    RECREATIONAL = "recreational"
    HISTORIC = "historic"
    WATERFRONT = "waterfront"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all decodable category values."""
        return [category.value for category in cls]

    @classmethod
    def main_categories(cls) -> List["ParkCategory"]:
        """Categories offered in the main experience, in display order."""
        return [
            cls.DESTINATION,
            cls.NEIGHBORHOOD,
            cls.MINI,
            cls.PLAZA,
            cls.GARDEN,
        ]

    @property
    def is_legacy(self) -> bool:
        return self not in ParkCategory.main_categories()

    @property
    def is_shown_by_default(self) -> bool:
        """Only destination parks are shown before the user filters."""
        return self is ParkCategory.DESTINATION

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        display_map = {
            ParkCategory.DESTINATION: "Major Parks",
            ParkCategory.NEIGHBORHOOD: "Neighborhood Parks",
            ParkCategory.MINI: "Mini Parks",
            ParkCategory.PLAZA: "Civic Plazas",
            ParkCategory.GARDEN: "Community Gardens",
        }
        return display_map.get(self, self.value.title())


class ParkSize(str, Enum):
    """
    Park size classes by acreage.

    - POCKET: under 1 acre
    - SMALL: 1 to under 5 acres
    - MEDIUM: 5 to under 20 acres
    - LARGE: 20 to under 100 acres
    - MASSIVE: 100 acres and above
    """

    POCKET = "pocket"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    MASSIVE = "massive"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available size choices."""
        return [size.value for size in cls]

    @classmethod
    def categorize(cls, acres: float) -> "ParkSize":
        """
        Size class for an acreage.

        Examples:
            >>> ParkSize.categorize(0.99)
            <ParkSize.POCKET: 'pocket'>
            >>> ParkSize.categorize(100.0)
            <ParkSize.MASSIVE: 'massive'>
        """
        if acres < 1:
            return cls.POCKET
        if acres < 5:
            return cls.SMALL
        if acres < 20:
            return cls.MEDIUM
        if acres < 100:
            return cls.LARGE
        return cls.MASSIVE

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        display_map = {
            ParkSize.POCKET: "Pocket Park",
            ParkSize.SMALL: "Small Park",
            ParkSize.MEDIUM: "Medium Park",
            ParkSize.LARGE: "Large Park",
            ParkSize.MASSIVE: "Major Park",
        }
        return display_map[self]


class UnitSystem(str, Enum):
    """Preferred measurement system for distances."""

    IMPERIAL = "imperial"
    METRIC = "metric"

    @classmethod
    def choices(cls) -> List[str]:
        return [unit.value for unit in cls]


class PrivacyLevel(str, Enum):
    """
    Default visibility for newly logged visits.

    - PRIVATE: Only visible on the user's devices
    - FRIENDS: Shared with friends
    - PUBLIC: Shared publicly
    """

    PRIVATE = "private"
    FRIENDS = "friends"
    PUBLIC = "public"

    @classmethod
    def choices(cls) -> List[str]:
        return [level.value for level in cls]
