"""Tests for catalog and account models."""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from fogfern.core.exceptions import ValidationError
from fogfern.core.location import Coordinate
from fogfern.database.models import (
    City,
    Park,
    ParkCategory,
    ParkSize,
    User,
    Visit,
    compute_streaks,
)
from fogfern.database.models.base import enum_values


class TestParkSize:
    """Tests for the acreage to size-class step function."""

    @pytest.mark.parametrize(
        "acres,expected",
        [
            (0.99, ParkSize.POCKET),
            (1.0, ParkSize.SMALL),
            (4.99, ParkSize.SMALL),
            (5.0, ParkSize.MEDIUM),
            (19.99, ParkSize.MEDIUM),
            (20.0, ParkSize.LARGE),
            (99.99, ParkSize.LARGE),
            (100.0, ParkSize.MASSIVE),
        ],
    )
    def test_boundaries(self, acres, expected):
        """Each boundary belongs to the larger class."""
        assert ParkSize.categorize(acres) is expected

    def test_negative_acreage_is_pocket(self):
        """Nonsense acreage still maps to a class."""
        assert ParkSize.categorize(-3.0) is ParkSize.POCKET

    def test_monotonic(self):
        """Size never shrinks as acreage grows."""
        order = list(ParkSize)
        samples = [0, 0.5, 1, 2, 5, 10, 20, 50, 100, 1000]
        indexes = [order.index(ParkSize.categorize(a)) for a in samples]
        assert indexes == sorted(indexes)


class TestEnumColumns:
    """Enum columns persist member values."""

    def test_enum_values(self):
        assert enum_values(ParkSize) == ["pocket", "small", "medium", "large", "massive"]

    def test_columns_share_helper(self):
        """Catalog and account enum columns store the same value form."""
        assert Park.__table__.c.size.type.enums == enum_values(ParkSize)
        assert User.__table__.c.preferred_units.type.enums == ["imperial", "metric"]


class TestParkCategory:
    """Tests for ParkCategory."""

    def test_main_categories_exclude_legacy(self):
        """Legacy values decode but are not surfaced."""
        main = ParkCategory.main_categories()
        assert len(main) == 5
        assert ParkCategory.SCENIC not in main
        assert ParkCategory("waterfront").is_legacy

    def test_display_names(self):
        """Main categories have curated labels; legacy ones are titled."""
        assert ParkCategory.GARDEN.display_name == "Community Gardens"
        assert ParkCategory.HISTORIC.display_name == "Historic"

    def test_unknown_value_rejected(self):
        """Values outside the closed set do not decode."""
        with pytest.raises(ValueError):
            ParkCategory("skatepark")


class TestPark:
    """Tests for Park invariants and helpers."""

    def test_size_derived_at_construction(self, park_factory):
        """Size is computed from the constructor acreage."""
        park = park_factory(acreage=25.0)
        assert park.size is ParkSize.LARGE

    def test_size_recomputed_on_acreage_change(self, park_factory):
        """Assigning acreage recomputes size."""
        park = park_factory(acreage=0.5)
        assert park.size is ParkSize.POCKET
        park.acreage = 150.0
        assert park.size is ParkSize.MASSIVE

    def test_size_keyword_ignored(self):
        """An explicit size never overrides the acreage."""
        park = Park(name="Lot", acreage=0.5, size=ParkSize.MASSIVE)
        assert park.size is ParkSize.POCKET

    def test_direct_size_write_rejected(self, park_factory):
        park = park_factory(acreage=0.5)
        with pytest.raises(ValidationError):
            park.size = ParkSize.MASSIVE
        assert park.size is ParkSize.POCKET

    def test_loaded_park_size_guarded(self, session, park_factory):
        """A park read back from the store still refuses direct size writes."""
        session.add(park_factory(name="Stored", acreage=30.0))
        session.flush()
        session.expunge_all()

        stored = session.scalars(select(Park).where(Park.name == "Stored")).one()
        assert stored.size is ParkSize.LARGE
        with pytest.raises(ValidationError):
            stored.size = ParkSize.POCKET

    def test_default_acreage(self):
        """A park without acreage is a pocket park."""
        park = Park(name="Tiny")
        assert park.acreage == 0.0
        assert park.size is ParkSize.POCKET

    def test_null_island_has_no_coordinate(self, park_factory):
        """(0, 0) means the dataset had no coordinate."""
        assert not park_factory(latitude=0.0, longitude=0.0).has_coordinate
        assert park_factory(latitude=37.7, longitude=-122.4).has_coordinate

    def test_formatted_acreage(self, park_factory):
        """Small parks show a decimal, larger ones do not."""
        assert park_factory(acreage=0.4).formatted_acreage == "0.4 acres"
        assert park_factory(acreage=15.9).formatted_acreage == "16 acres"

    def test_formatted_distance(self, park_factory):
        """Distances render in miles."""
        park = park_factory(latitude=37.7596, longitude=-122.4269)
        assert park.formatted_distance(Coordinate(37.7596, -122.4269)) == "< 0.1 mi"
        assert park.formatted_distance(Coordinate(37.7694, -122.4862)).endswith(" mi")

    def test_image_name(self, park_factory):
        """Image names are slugged from the park name."""
        park = park_factory(name="Joe DiMaggio's Playground & Field")
        assert park.image_name == "joe-dimaggios-playground-and-field"

    def test_uncurated_description_follows_dataset(self, park_factory):
        """Untouched descriptions take new dataset text."""
        park = park_factory(
            short_description="old",
            full_description="old full",
            dataset_short_description="old",
            dataset_full_description="old full",
        )
        park.apply_dataset_descriptions("new", "new full")
        assert park.short_description == "new"
        assert park.full_description == "new full"
        assert not park.has_curated_description

    def test_curated_description_preserved(self, park_factory):
        """Local edits survive new dataset text."""
        park = park_factory(
            short_description="hand written",
            full_description="old full",
            dataset_short_description="old",
            dataset_full_description="old full",
        )
        park.apply_dataset_descriptions("new", "new full")
        assert park.short_description == "hand written"
        assert park.full_description == "new full"
        assert park.dataset_short_description == "new"
        assert park.has_curated_description

    def test_description_without_dataset_text_is_curated(self, park_factory):
        """Parks that never recorded dataset text keep their descriptions."""
        park = park_factory(short_description="local", full_description="local full")
        park.apply_dataset_descriptions("upstream", "upstream full")
        assert park.short_description == "local"
        assert park.full_description == "local full"


class TestCity:
    """Tests for City helpers and cascade."""

    def test_from_profile(self, sf_profile):
        """A city seeded from a profile copies its geography."""
        city = City.from_profile(sf_profile)
        assert city.name == "sf"
        assert city.center == Coordinate(37.7749, -122.4194)

    def test_contains(self, city_factory):
        """Bounding box containment."""
        city = city_factory()
        assert city.contains(Coordinate(37.76, -122.43))
        assert not city.contains(Coordinate(40.7, -74.0))

    def test_delete_cascades_to_parks(self, store, city_factory, park_factory):
        """Deleting a city deletes its parks."""
        with store.session_scope() as session:
            city = city_factory()
            session.add(park_factory(name="A", external_id="A1", city=city))
            session.add(park_factory(name="B", external_id="B1", city=city))

        with store.session_scope() as session:
            city = session.scalars(select(City).where(City.name == "sf")).one()
            session.delete(city)

        with store.session_scope() as session:
            assert session.scalars(select(Park)).all() == []


class TestVisit:
    """Tests for Visit."""

    def test_rating_range(self):
        """Ratings outside 1-5 are rejected."""
        visit = Visit(park_unique_id="sf:X")
        visit.rating = 5
        with pytest.raises(ValidationError):
            visit.rating = 6

    def test_for_park_copies_name_and_identifier(self, city_factory, park_factory):
        """Visits store the composite id and the park name."""
        park = park_factory(name="Dolores", external_id="INT123", city=city_factory("sf"))
        visit = Visit.for_park(park, None, journal_entry="  ")
        assert visit.park_unique_id == "sf:INT123"
        assert visit.park_name == "Dolores"
        assert not visit.has_journal_entry

    def test_user_delete_cascades_to_visits(self, store, park_factory):
        """Deleting a user deletes its visits."""
        with store.session_scope() as session:
            user = User(display_name="Ana")
            session.add(user)
            session.add(Visit.for_park(park_factory(), user))

        with store.session_scope() as session:
            session.delete(session.scalars(select(User)).one())

        with store.session_scope() as session:
            assert session.scalars(select(Visit)).all() == []


class TestStreaks:
    """Tests for compute_streaks and User.update_stats."""

    def test_empty(self):
        assert compute_streaks([], date(2025, 6, 20)) == (0, 0)

    def test_current_streak_includes_today(self):
        today = date(2025, 6, 20)
        days = [today - timedelta(days=n) for n in range(3)]
        assert compute_streaks(days, today) == (3, 3)

    def test_current_streak_from_yesterday(self):
        """No visit yet today keeps yesterday's streak alive."""
        today = date(2025, 6, 20)
        days = [today - timedelta(days=n) for n in (1, 2)]
        assert compute_streaks(days, today) == (2, 2)

    def test_broken_streak(self):
        """A gap resets the current streak but not the longest one."""
        today = date(2025, 6, 20)
        days = [date(2025, 6, 1), date(2025, 6, 2), date(2025, 6, 3), date(2025, 6, 18)]
        assert compute_streaks(days, today) == (0, 3)

    def test_update_stats(self, park_factory):
        """Counters reflect active visits only."""
        user = User()
        now = datetime(2025, 6, 20, 12, tzinfo=timezone.utc)
        a = park_factory(name="A", external_id="A1")
        b = park_factory(name="B", external_id="B1")
        Visit.for_park(a, user, timestamp=now, journal_entry="lovely")
        Visit.for_park(a, user, timestamp=now - timedelta(days=1))
        hidden = Visit.for_park(b, user, timestamp=now - timedelta(days=2))
        hidden.is_active = False

        user.update_stats(today=now.date())

        assert user.total_visits == 2
        assert user.unique_parks_visited == 1
        assert user.journal_entry_count == 1
        assert user.current_streak_days == 2
        assert user.longest_streak_days == 2
