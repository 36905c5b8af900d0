"""
Account Models
---------------

User-generated records that sync to the remote backing store.

Models:
    - User: The person using the app, with counters and preferences
    - Visit: One logged visit to a park

Visits do not hold a foreign key to Park. The catalog is local-only and may
not contain the park on every device, so each Visit stores the composite
identifier ``"{city}:{external_id}"`` plus the park's name at visit time.

These tables belong to ``UserDataBase`` and change only through Alembic
revisions registered in ``fogfern.database.schema_versions``.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

# --- Third party ---
from sqlalchemy import (
    JSON,
    Boolean,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

# --- Local imports ---
from fogfern.core.exceptions import ValidationError
from .base import UTCDateTime, UserDataBase, enum_values, utc_now
from .enums import PrivacyLevel, UnitSystem

if TYPE_CHECKING:
    from .catalog import Park


class User(UserDataBase):
    """
    A user of the app.

    The oldest user by ``created_at`` is the device's current user.

    Attributes:
        id: Primary key (UUID)
        created_at: Creation timestamp; orders users for "current user"
        last_active: Last time the user did anything
        display_name: Optional display name (required for onboarding)
        email: Optional email address
        has_completed_onboarding: Whether onboarding finished
        current_city_name: Machine name of the selected city
        total_visits, unique_parks_visited, journal_entry_count: Counters
        current_streak_days, longest_streak_days: Daily visit streaks
        preferred_units ... preferred_visit_duration: Preferences

    Relationships:
        visits: One-to-many with Visit (cascade delete)
    """

    __tablename__ = "users"

    # --- Identity ---
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now, index=True
    )
    last_active: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now
    )

    # --- Profile ---
    display_name: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    has_completed_onboarding: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    current_city_name: Mapped[Optional[str]] = mapped_column(String(100))

    # --- Counters ---
    total_visits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unique_parks_visited: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    journal_entry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # --- Preferences ---
    preferred_units: Mapped[UnitSystem] = mapped_column(
        SAEnum(UnitSystem, name="unitsystem", values_callable=enum_values),
        nullable=False,
        default=UnitSystem.IMPERIAL,
    )
    default_privacy_level: Mapped[PrivacyLevel] = mapped_column(
        SAEnum(PrivacyLevel, name="privacylevel", values_callable=enum_values),
        nullable=False,
        default=PrivacyLevel.PRIVATE,
    )
    enable_location_tracking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_analytics: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enable_weather_data: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # seconds
    preferred_visit_duration: Mapped[float] = mapped_column(
        Float, nullable=False, default=3600.0
    )

    # --- Relationships ---
    visits: Mapped[List["Visit"]] = relationship(
        "Visit",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Visit.timestamp",
    )

    def update_activity(self) -> None:
        self.last_active = utc_now()

    def update_stats(self, today: Optional[date] = None) -> None:
        """
        Recompute counters and streaks from active visits.

        Args:
            today: Reference day for the current streak (defaults to UTC today)
        """
        visits = [visit for visit in self.visits if visit.is_active]
        self.total_visits = len(visits)
        self.unique_parks_visited = len({visit.park_unique_id for visit in visits})
        self.journal_entry_count = sum(
            1 for visit in visits if visit.journal_entry and visit.journal_entry.strip()
        )
        current, longest = compute_streaks(
            (visit.timestamp.date() for visit in visits),
            today or utc_now().date(),
        )
        self.current_streak_days = current
        self.longest_streak_days = max(longest, self.longest_streak_days or 0)
        self.update_activity()

    @property
    def visit_count(self) -> int:
        return len(self.visits) if self.visits else 0

    def __repr__(self) -> str:
        return f"<User(id={self.id}, display_name={self.display_name!r})>"


def compute_streaks(days: Iterable[date], today: date) -> Tuple[int, int]:
    """
    Daily streaks over a set of visit days.

    The current streak counts consecutive days ending today, or ending
    yesterday when there is no visit yet today.

    Returns:
        (current_streak, longest_streak)
    """
    unique_days = sorted(set(days))
    if not unique_days:
        return 0, 0

    longest = run = 1
    for previous, day in zip(unique_days, unique_days[1:]):
        run = run + 1 if day - previous == timedelta(days=1) else 1
        longest = max(longest, run)

    day_set = set(unique_days)
    anchor = today if today in day_set else today - timedelta(days=1)
    current = 0
    while anchor in day_set:
        current += 1
        anchor -= timedelta(days=1)

    return current, longest


class Visit(UserDataBase):
    """
    One logged visit to a park.

    Attributes:
        id: Primary key (UUID)
        timestamp: When the visit happened
        journal_entry: Optional free-text note
        park_unique_id: Composite identifier "{city}:{external_id}"
        park_name: Park display name captured at visit time
        is_active: Soft-hide flag
        user_id: Owning user (nullable)
        photo_urls: Attached photo URLs (schema v2)
        weather: Weather summary at visit time (schema v2)
        rating: 1-5 rating (schema v2)

    Relationships:
        user: Many-to-one with User
    """

    __tablename__ = "visits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now, index=True
    )
    journal_entry: Mapped[Optional[str]] = mapped_column(Text)
    park_unique_id: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", index=True
    )
    park_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # --- Schema v2 ---
    photo_urls: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    weather: Mapped[Optional[str]] = mapped_column(String(100))
    rating: Mapped[Optional[int]] = mapped_column(Integer)

    # --- Relationships ---
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    user: Mapped[Optional["User"]] = relationship(
        "User", back_populates="visits", lazy="joined"
    )

    @classmethod
    def for_park(
        cls,
        park: "Park",
        user: Optional[User],
        timestamp: Optional[datetime] = None,
        journal_entry: Optional[str] = None,
    ) -> "Visit":
        """
        Build a visit referencing ``park`` by composite identifier.

        The park's current name is copied so the visit still displays if
        the park later disappears from the local catalog.
        """
        from fogfern.database.identifiers import generate

        return cls(
            timestamp=timestamp or utc_now(),
            park_unique_id=generate(park),
            park_name=park.name,
            journal_entry=journal_entry,
            is_active=True,
            photo_urls=[],
            user=user,
        )

    @validates("rating")
    def _validate_rating(self, key: str, value: Optional[int]) -> Optional[int]:
        if value is not None and not 1 <= int(value) <= 5:
            raise ValidationError(f"Rating must be between 1 and 5, got {value}")
        return value

    @property
    def has_journal_entry(self) -> bool:
        return bool(self.journal_entry and self.journal_entry.strip())

    def __repr__(self) -> str:
        return f"<Visit(park_unique_id='{self.park_unique_id}', timestamp={self.timestamp})>"
