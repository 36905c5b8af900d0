"""Tests for composite park identifiers."""
import uuid

import pytest

from fogfern.database.identifiers import find_park, generate, parse


class TestGenerate:
    """Tests for generate()."""

    def test_city_and_external_id(self, park_factory, city_factory):
        park = park_factory(external_id="INT123", city=city_factory("sf"))
        assert generate(park) == "sf:INT123"

    def test_no_city(self, park_factory):
        """Parks without a city use 'unknown'."""
        assert generate(park_factory(external_id="X9")) == "unknown:X9"

    def test_no_external_id_uses_identity(self, park_factory, city_factory):
        """Without an external id the park's UUID stands in."""
        park = park_factory(external_id=None, city=city_factory("sf"))
        identifier = generate(park)
        assert identifier == f"sf:{park.id}"
        assert isinstance(park.id, uuid.UUID)
        # Stable once assigned
        assert generate(park) == identifier

    @pytest.mark.parametrize("city,external_id", [("sf", "INT123"), ("oakland", "A-1"), ("nyc", "42")])
    def test_parse_inverts_generate(self, park_factory, city_factory, city, external_id):
        park = park_factory(external_id=external_id, city=city_factory(city))
        parsed = parse(generate(park))
        assert parsed == (city, external_id)


class TestParse:
    """Tests for parse()."""

    @pytest.mark.parametrize("value", ["", None, "noColon", "a:b:c", ":b", "a:"])
    def test_malformed(self, value):
        """Malformed input is invalid, never truncated."""
        assert parse(value) is None

    def test_valid(self):
        parsed = parse("sf:INT123")
        assert parsed.city_name == "sf"
        assert parsed.external_id == "INT123"


class TestFindPark:
    """Tests for find_park()."""

    def test_found_by_external_id(self, session, park_factory, city_factory):
        park = park_factory(external_id="INT123", city=city_factory("sf"))
        session.add(park)
        session.flush()

        assert find_park(session, "sf:INT123") is park

    def test_scoped_to_city(self, session, park_factory, city_factory):
        """The same external id in another city does not match."""
        session.add(park_factory(external_id="INT123", city=city_factory("oakland")))
        session.flush()

        assert find_park(session, "sf:INT123") is None

    def test_unknown_city(self, session, park_factory):
        """'unknown' matches parks without a city."""
        park = park_factory(external_id="LONE1")
        session.add(park)
        session.flush()

        assert find_park(session, "unknown:LONE1") is park

    def test_identity_fallback(self, session, park_factory, city_factory):
        """Identifiers built from the park UUID resolve too."""
        park = park_factory(external_id=None, city=city_factory("sf"))
        session.add(park)
        identifier = generate(park)
        session.flush()

        assert find_park(session, identifier) is park

    def test_not_loaded_returns_none(self, session):
        """A park that is not in the catalog yet is not an error."""
        assert find_park(session, "sf:INT123") is None

    def test_malformed_returns_none(self, session):
        assert find_park(session, "sf:INT:123") is None
