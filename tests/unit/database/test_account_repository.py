"""Tests for AccountRepository."""
import asyncio
import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from fogfern.core.exceptions import AccountError, AccountErrorKind
from fogfern.database.models import PrivacyLevel, UnitSystem, User
from fogfern.database.repositories import AccountRepository, UserPreferences


@pytest.fixture
def dolores(park_factory, city_factory):
    """Unsaved park whose composite id is sf:DOL002."""
    return park_factory(name="Dolores Park", external_id="DOL002", city=city_factory("sf"))


class TestCurrentUser:
    """Tests for get_current_user_id."""

    @pytest.mark.asyncio
    async def test_first_call_creates_user(self, accounts):
        user_id = await accounts.get_current_user_id()
        user = await accounts.get_user(user_id)

        assert user.id == user_id
        assert not user.has_completed_onboarding
        assert user.total_visits == 0

    @pytest.mark.asyncio
    async def test_stable_across_calls(self, accounts):
        first = await accounts.get_current_user_id()
        assert await accounts.get_current_user_id() == first

    @pytest.mark.asyncio
    async def test_oldest_user_wins(self, accounts):
        """Later users never replace the device's first user."""
        oldest = await accounts.create_user("First")
        await accounts.create_user("Second")

        assert await accounts.get_current_user_id() == oldest.id

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_create_one_user(self, accounts, store):
        """Simultaneous first calls on an empty store agree on a single user."""
        ids = await asyncio.gather(*[accounts.get_current_user_id() for _ in range(6)])

        assert len(set(ids)) == 1
        with store.session_scope() as session:
            assert session.scalar(select(func.count(User.id))) == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_across_repositories(self, store):
        """Separate repositories over one store still share the bootstrap."""
        repositories = [AccountRepository(store) for _ in range(4)]
        ids = await asyncio.gather(*[repo.get_current_user_id() for repo in repositories])

        assert len(set(ids)) == 1


class TestUsers:
    """Tests for user creation, lookup and deletion."""

    @pytest.mark.asyncio
    async def test_create_user(self, accounts):
        user = await accounts.create_user("  Ana  ", " ana@example.com ")
        assert user.display_name == "Ana"
        assert user.email == "ana@example.com"

    @pytest.mark.asyncio
    async def test_invalid_email_fails_before_storage(self, accounts, store):
        store.close()
        with pytest.raises(AccountError) as exc_info:
            await accounts.create_user("Ana", "not-an-email")
        assert exc_info.value.kind is AccountErrorKind.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_get_missing_user(self, accounts):
        with pytest.raises(AccountError) as exc_info:
            await accounts.get_user(uuid.uuid4())
        assert exc_info.value.kind is AccountErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_deleted_user_is_not_found(self, accounts):
        """Mutations after a delete fail with NOT_FOUND."""
        user = await accounts.create_user("Ana")
        await accounts.delete_user(user.id)

        with pytest.raises(AccountError) as exc_info:
            await accounts.update_stats(user.id)
        assert exc_info.value.kind is AccountErrorKind.NOT_FOUND

        with pytest.raises(AccountError):
            await accounts.delete_user(user.id)

    @pytest.mark.asyncio
    async def test_storage_failure_wrapped(self, accounts, store):
        store.close()
        with pytest.raises(AccountError) as exc_info:
            await accounts.get_current_user_id()
        assert exc_info.value.kind is AccountErrorKind.STORAGE_FAILURE


class TestOnboarding:
    """Tests for complete_onboarding."""

    @pytest.mark.asyncio
    async def test_incomplete_profile(self, accounts):
        """Missing fields are listed on the error."""
        user = await accounts.create_user()

        with pytest.raises(AccountError) as exc_info:
            await accounts.complete_onboarding(user.id, "sf")

        assert exc_info.value.kind is AccountErrorKind.INCOMPLETE_PROFILE
        assert exc_info.value.missing_fields == ["display_name"]
        assert "display_name" in exc_info.value.description
        assert not (await accounts.get_user(user.id)).has_completed_onboarding

    @pytest.mark.asyncio
    async def test_complete(self, accounts, sf_profile):
        user = await accounts.create_user("Ana")
        updated = await accounts.complete_onboarding(user.id, sf_profile)

        assert updated.has_completed_onboarding
        assert updated.current_city_name == "sf"


class TestPreferences:
    """Tests for update_preferences."""

    @pytest.mark.asyncio
    async def test_partial_update(self, accounts):
        """A dict changes only the keys it names."""
        user = await accounts.create_user("Ana")
        updated = await accounts.update_preferences(user.id, {"preferred_units": "metric"})

        assert updated.preferred_units is UnitSystem.METRIC
        assert updated.default_privacy_level is PrivacyLevel.PRIVATE
        assert updated.enable_notifications

    @pytest.mark.asyncio
    async def test_full_replace(self, accounts):
        user = await accounts.create_user("Ana")
        preferences = UserPreferences(
            default_privacy_level=PrivacyLevel.PUBLIC,
            enable_analytics=True,
            preferred_visit_duration=1800,
        )
        updated = await accounts.update_preferences(user.id, preferences)

        assert UserPreferences.from_user(updated) == UserPreferences(
            default_privacy_level=PrivacyLevel.PUBLIC,
            enable_analytics=True,
            preferred_visit_duration=1800.0,
        )
        assert preferences.to_dict()["default_privacy_level"] == "public"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [{"favorite_color": "green"}, {"preferred_units": "furlongs"}],
    )
    async def test_invalid(self, accounts, changes):
        user = await accounts.create_user("Ana")
        with pytest.raises(AccountError) as exc_info:
            await accounts.update_preferences(user.id, changes)
        assert exc_info.value.kind is AccountErrorKind.INVALID_INPUT


class TestVisits:
    """Tests for visit logging and lookups."""

    @pytest.mark.asyncio
    async def test_log_visit(self, accounts, dolores):
        """The visit stores the composite id and updates counters."""
        user_id = await accounts.get_current_user_id()
        visit = await accounts.log_visit(user_id, dolores, journal_entry="Sunny", rating=5)

        assert visit.park_unique_id == "sf:DOL002"
        assert visit.park_name == "Dolores Park"
        assert visit.rating == 5
        user = await accounts.get_user(user_id)
        assert user.total_visits == 1
        assert user.journal_entry_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6])
    async def test_log_visit_bad_rating(self, accounts, dolores, rating):
        user_id = await accounts.get_current_user_id()
        with pytest.raises(AccountError) as exc_info:
            await accounts.log_visit(user_id, dolores, rating=rating)
        assert exc_info.value.kind is AccountErrorKind.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_log_visit_unknown_user(self, accounts, dolores):
        with pytest.raises(AccountError) as exc_info:
            await accounts.log_visit(uuid.uuid4(), dolores)
        assert exc_info.value.kind is AccountErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_get_visits_newest_first(self, accounts, dolores, park_factory, city_factory):
        user_id = await accounts.get_current_user_id()
        now = datetime.now(timezone.utc)
        alamo = park_factory(name="Alamo Square", external_id="ALA003", city=city_factory("sf"))
        await accounts.log_visit(user_id, dolores, timestamp=now - timedelta(days=1))
        await accounts.log_visit(user_id, alamo, timestamp=now)

        visits = await accounts.get_visits(user_id)

        assert [visit.park_name for visit in visits] == ["Alamo Square", "Dolores Park"]

    @pytest.mark.asyncio
    async def test_find_park_for_visit(self, accounts, catalog):
        """Visits resolve to the local catalog park when it is loaded."""
        parks = {park.name: park for park in await catalog.get_all("sf")}
        user_id = await accounts.get_current_user_id()
        visit = await accounts.log_visit(user_id, parks["Dolores Park"])

        park = await accounts.find_park_for_visit(visit.id)

        assert park.id == parks["Dolores Park"].id

    @pytest.mark.asyncio
    async def test_find_park_for_visit_not_loaded(self, accounts, dolores):
        """A visit to a park missing from this catalog resolves to None."""
        user_id = await accounts.get_current_user_id()
        visit = await accounts.log_visit(user_id, dolores)

        assert await accounts.find_park_for_visit(visit.id) is None

    @pytest.mark.asyncio
    async def test_find_park_for_missing_visit(self, accounts):
        with pytest.raises(AccountError) as exc_info:
            await accounts.find_park_for_visit(uuid.uuid4())
        assert exc_info.value.kind is AccountErrorKind.NOT_FOUND


class TestEngagement:
    """Tests for get_engagement_metrics."""

    @pytest.mark.asyncio
    async def test_metrics(self, accounts, dolores):
        user_id = await accounts.get_current_user_id()
        today = date(2025, 6, 20)
        noon = datetime(2025, 6, 20, 12, tzinfo=timezone.utc)
        for days_ago, note in [(0, "again"), (1, None), (2, "first")]:
            await accounts.log_visit(
                user_id, dolores, journal_entry=note, timestamp=noon - timedelta(days=days_ago)
            )

        metrics = await accounts.get_engagement_metrics(user_id, today=today)

        assert metrics.total_visits == 3
        assert metrics.unique_parks_visited == 1
        assert metrics.journal_entry_count == 2
        assert metrics.current_streak_days == 3
        assert metrics.longest_streak_days == 3
        assert metrics.journal_rate == pytest.approx(2 / 3)
        assert metrics.days_since_joined == 0
