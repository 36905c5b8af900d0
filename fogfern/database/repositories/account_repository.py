#!/usr/bin/env python3
"""
account_repository.py
--------------------
Users, preferences, onboarding and visit logging over the user-data store.

The device's current user is the oldest User by creation time. There is no
process-wide singleton: the application composition calls
``get_current_user_id`` once and passes the id along. Concurrent first
calls are serialized so that only one user is ever auto-created.

Validation (malformed email, incomplete profile) fails fast before any
storage access. Mutations fail with ``NOT_FOUND`` if the user was deleted
between read and write.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import asyncio
import threading
import uuid
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

# --- Third party imports ---
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

# --- Local imports ---
from fogfern.core.exceptions import (
    AccountError,
    AccountErrorKind,
    ValidationError,
)
from fogfern.core.logging_manager import safe_logger
from fogfern.core.validators import DataValidator
from ..decorators import log_database_operation
from ..identifiers import find_park
from ..models import City, CityProfile, Park, PrivacyLevel, UnitSystem, User, Visit
from .base_repository import BaseRepository

REQUIRED_PROFILE_FIELDS = ["display_name"]


@dataclass
class UserPreferences:
    """
    Editable per-user preferences.

    Attributes:
        preferred_units: Imperial or metric distances
        default_privacy_level: Default visibility of new visits
        enable_location_tracking: Allow nearby-park lookups
        enable_notifications: Allow reminders
        enable_analytics: Allow anonymous usage analytics
        enable_weather_data: Attach weather to new visits
        preferred_visit_duration: Typical visit length in seconds
    """

    preferred_units: UnitSystem = UnitSystem.IMPERIAL
    default_privacy_level: PrivacyLevel = PrivacyLevel.PRIVATE
    enable_location_tracking: bool = True
    enable_notifications: bool = True
    enable_analytics: bool = False
    enable_weather_data: bool = True
    preferred_visit_duration: float = 3600.0

    @classmethod
    def from_user(cls, user: User) -> "UserPreferences":
        return cls(**{f.name: getattr(user, f.name) for f in fields(cls)})

    def apply_to(self, user: User) -> None:
        user.preferred_units = UnitSystem(self.preferred_units)
        user.default_privacy_level = PrivacyLevel(self.default_privacy_level)
        user.enable_location_tracking = DataValidator.normalize_bool(self.enable_location_tracking)
        user.enable_notifications = DataValidator.normalize_bool(self.enable_notifications)
        user.enable_analytics = DataValidator.normalize_bool(self.enable_analytics)
        user.enable_weather_data = DataValidator.normalize_bool(self.enable_weather_data)
        user.preferred_visit_duration = float(self.preferred_visit_duration)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["preferred_units"] = UnitSystem(self.preferred_units).value
        data["default_privacy_level"] = PrivacyLevel(self.default_privacy_level).value
        return data


@dataclass
class UserEngagementMetrics:
    """Snapshot of a user's counters."""

    total_visits: int
    unique_parks_visited: int
    journal_entry_count: int
    current_streak_days: int
    longest_streak_days: int
    days_since_joined: int
    last_active: datetime

    @property
    def journal_rate(self) -> float:
        """Share of visits carrying a journal entry."""
        return self.journal_entry_count / self.total_visits if self.total_visits else 0.0


class AccountRepository(BaseRepository):
    """Async user and visit operations."""

    error_class = AccountError
    storage_failure = AccountErrorKind.STORAGE_FAILURE

    # Shared by every instance: two repositories over one store must agree
    _bootstrap_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _oldest_user(session: Session) -> Optional[User]:
        return session.scalars(
            select(User).order_by(User.created_at.asc(), User.id.asc()).limit(1)
        ).first()

    @staticmethod
    def _require_user(session: Session, user_id: uuid.UUID) -> User:
        user = session.scalars(
            select(User).where(User.id == user_id).options(selectinload(User.visits))
        ).first()
        if user is None:
            raise AccountError(AccountErrorKind.NOT_FOUND, user_id)
        return user

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @log_database_operation("account_get_current_user_id")
    async def get_current_user_id(self) -> uuid.UUID:
        """
        Id of the oldest user, creating the first user when none exists.

        Called once per session by the application composition.
        """

        def work(session: Session) -> uuid.UUID:
            user = self._oldest_user(session)
            if user is None:
                created = User()
                session.add(created)
                session.flush()
                # Another process may have committed an older user meanwhile
                user = self._oldest_user(session)
                if user is not created:
                    session.delete(created)
                else:
                    safe_logger(self.logger).log_operation(
                        "user_bootstrapped", {"user_id": str(user.id)}
                    )
            else:
                user.update_activity()
            return user.id

        def serialized() -> uuid.UUID:
            with self._bootstrap_lock:
                return self._call("get_current_user_id", work)

        return await asyncio.to_thread(serialized)

    async def get_user(self, user_id: uuid.UUID) -> User:
        """
        User with its visits loaded.

        Raises:
            AccountError: NOT_FOUND
        """
        return await self._run(
            "get_user",
            lambda session: self._require_user(session, user_id),
            {"user_id": str(user_id)},
        )

    @log_database_operation("account_create_user")
    async def create_user(
        self, display_name: Optional[str] = None, email: Optional[str] = None
    ) -> User:
        """
        Create a user.

        Raises:
            AccountError: INVALID_INPUT for a malformed email, before any
                storage access
        """
        try:
            email = DataValidator.validate_email(email)
        except ValidationError as e:
            raise AccountError(
                AccountErrorKind.INVALID_INPUT, str(e), context={"email": email}, cause=e
            ) from e
        display_name = DataValidator.normalize_string(display_name)

        def work(session: Session) -> User:
            user = User(display_name=display_name, email=email)
            session.add(user)
            session.flush()
            return user

        return await self._run("create_user", work, {"display_name": display_name})

    @log_database_operation("account_update_preferences")
    async def update_preferences(
        self,
        user_id: uuid.UUID,
        preferences: Union[UserPreferences, Dict[str, Any]],
    ) -> User:
        """
        Replace a user's preferences.

        A dict updates only the keys it names.

        Raises:
            AccountError: INVALID_INPUT for unknown keys or values, NOT_FOUND
        """

        def work(session: Session) -> User:
            user = self._require_user(session, user_id)
            if isinstance(preferences, UserPreferences):
                updated = preferences
            else:
                current = asdict(UserPreferences.from_user(user))
                unknown = set(preferences) - set(current)
                if unknown:
                    raise AccountError(
                        AccountErrorKind.INVALID_INPUT,
                        f"unknown preferences {sorted(unknown)}",
                    )
                current.update(preferences)
                updated = UserPreferences(**current)
            try:
                updated.apply_to(user)
            except (ValueError, TypeError, ValidationError) as e:
                raise AccountError(AccountErrorKind.INVALID_INPUT, str(e), cause=e) from e
            user.update_activity()
            return user

        return await self._run("update_preferences", work, {"user_id": str(user_id)})

    @log_database_operation("account_update_stats")
    async def update_stats(self, user_id: uuid.UUID, today: Optional[date] = None) -> User:
        """
        Recompute counters and streaks from the user's visits.

        Raises:
            AccountError: NOT_FOUND
        """

        def work(session: Session) -> User:
            user = self._require_user(session, user_id)
            user.update_stats(today)
            return user

        return await self._run("update_stats", work, {"user_id": str(user_id)})

    @log_database_operation("account_delete_user")
    async def delete_user(self, user_id: uuid.UUID) -> None:
        """
        Delete a user and, by cascade, its visits.

        Raises:
            AccountError: NOT_FOUND
        """

        def work(session: Session) -> None:
            session.delete(self._require_user(session, user_id))

        await self._run("delete_user", work, {"user_id": str(user_id)})

    @log_database_operation("account_complete_onboarding")
    async def complete_onboarding(
        self, user_id: uuid.UUID, city: Union[str, CityProfile, City]
    ) -> User:
        """
        Mark onboarding complete and record the chosen city.

        Raises:
            AccountError: INCOMPLETE_PROFILE listing the unset required
                fields, NOT_FOUND
        """
        city_name = city if isinstance(city, str) else city.name

        def work(session: Session) -> User:
            user = self._require_user(session, user_id)
            missing = DataValidator.missing_fields(
                {name: getattr(user, name) for name in REQUIRED_PROFILE_FIELDS},
                REQUIRED_PROFILE_FIELDS,
            )
            if missing:
                raise AccountError(
                    AccountErrorKind.INCOMPLETE_PROFILE,
                    missing,
                    context={"user_id": str(user_id)},
                )
            user.has_completed_onboarding = True
            user.current_city_name = city_name
            user.update_activity()
            return user

        return await self._run(
            "complete_onboarding", work, {"user_id": str(user_id), "city": city_name}
        )

    # -------------------------------------------------------------------------
    # Visits
    # -------------------------------------------------------------------------

    @log_database_operation("account_log_visit")
    async def log_visit(
        self,
        user_id: uuid.UUID,
        park: Park,
        journal_entry: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        rating: Optional[int] = None,
    ) -> Visit:
        """
        Record a visit to ``park`` and refresh the user's counters.

        Raises:
            AccountError: INVALID_INPUT for a rating outside 1-5, NOT_FOUND
        """
        if rating is not None and not 1 <= rating <= 5:
            raise AccountError(
                AccountErrorKind.INVALID_INPUT, f"rating must be between 1 and 5, got {rating}"
            )

        def work(session: Session) -> Visit:
            user = self._require_user(session, user_id)
            visit = Visit.for_park(park, user, timestamp=timestamp, journal_entry=journal_entry)
            visit.rating = rating
            session.add(visit)
            session.flush()
            user.update_stats()
            return visit

        return await self._run(
            "log_visit",
            work,
            {"user_id": str(user_id), "park": park.name},
        )

    async def get_visits(self, user_id: uuid.UUID) -> List[Visit]:
        """Active visits of a user, newest first."""

        def work(session: Session) -> List[Visit]:
            self._require_user(session, user_id)
            stmt = (
                select(Visit)
                .where(Visit.user_id == user_id, Visit.is_active.is_(True))
                .order_by(Visit.timestamp.desc())
            )
            return list(session.scalars(stmt).unique().all())

        return await self._run("get_visits", work, {"user_id": str(user_id)})

    async def find_park_for_visit(self, visit_id: uuid.UUID) -> Optional[Park]:
        """
        Catalog park a visit refers to, or None if it is not loaded locally.

        Raises:
            AccountError: NOT_FOUND if the visit itself does not exist
        """

        def work(session: Session) -> Optional[Park]:
            visit = session.get(Visit, visit_id)
            if visit is None:
                raise AccountError(
                    AccountErrorKind.NOT_FOUND, visit_id, context={"entity": "visit"}
                )
            return find_park(session, visit.park_unique_id)

        return await self._run("find_park_for_visit", work, {"visit_id": str(visit_id)})

    async def get_engagement_metrics(
        self, user_id: uuid.UUID, today: Optional[date] = None
    ) -> UserEngagementMetrics:
        """Counters after a fresh recompute."""
        user = await self.update_stats(user_id, today)
        reference = today or datetime.now(user.created_at.tzinfo).date()
        return UserEngagementMetrics(
            total_visits=user.total_visits,
            unique_parks_visited=user.unique_parks_visited,
            journal_entry_count=user.journal_entry_count,
            current_streak_days=user.current_streak_days,
            longest_streak_days=user.longest_streak_days,
            days_since_joined=max((reference - user.created_at.date()).days, 0),
            last_active=user.last_active,
        )
