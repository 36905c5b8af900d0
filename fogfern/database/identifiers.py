#!/usr/bin/env python3
"""
identifiers.py
--------------------
Composite park identifiers shared between the catalog and user data.

Visits live in the synced user-data store while parks live in the
local-only catalog, so a visit cannot hold a foreign key to its park.
It stores ``"{city}:{external_id}"`` instead:

- ``city`` is the park's City machine name, or ``"unknown"`` without a city
- ``external_id`` is the park's stable property identifier, or the park's
  own UUID when the dataset did not provide one

Functions:
    generate: Build the identifier for a park (pure, never fails)
    parse: Split an identifier into its two parts, or None if malformed
    find_park: Resolve an identifier against the local catalog, or None
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from typing import NamedTuple, Optional

# --- Third party imports ---
from sqlalchemy import select
from sqlalchemy.orm import Session

# --- Local imports ---
from .models.catalog import City, Park

SEPARATOR = ":"
UNKNOWN_CITY = "unknown"


class ParsedIdentifier(NamedTuple):
    """The two halves of a composite park identifier."""

    city_name: str
    external_id: str


def generate(park: Park) -> str:
    """
    Build the composite identifier for a park.

    Args:
        park: Park, persisted or not

    Returns:
        ``"{city}:{external_id}"``

    Examples:
        >>> generate(Park(name="Dolores", external_id="INT123", city=City(name="sf")))
        'sf:INT123'
    """
    city_name = park.city.name if park.city is not None and park.city.name else UNKNOWN_CITY
    if park.external_id:
        external_id = park.external_id
    else:
        if park.id is None:
            # Not flushed yet; assign now so the identifier is stable
            park.id = uuid.uuid4()
        external_id = str(park.id)
    return f"{city_name}{SEPARATOR}{external_id}"


def parse(identifier: Optional[str]) -> Optional[ParsedIdentifier]:
    """
    Split a composite identifier on its single colon.

    Multi-colon input is malformed; it is never truncated to its first
    segments.

    Returns:
        ParsedIdentifier, or None for empty input, zero or several colons,
        or an empty half
    """
    if not identifier:
        return None
    parts = identifier.split(SEPARATOR)
    if len(parts) != 2:
        return None
    city_name, external_id = parts
    if not city_name or not external_id:
        return None
    return ParsedIdentifier(city_name, external_id)


def find_park(session: Session, identifier: Optional[str]) -> Optional[Park]:
    """
    Resolve a composite identifier against the local catalog.

    Looks up the park by external id scoped to its city (``unknown`` means
    parks without a city). When that fails and the external id part is a
    UUID, it falls back to the park's own identity, which is what
    ``generate`` emits for parks without an external id.

    Args:
        session: Session bound to the catalog database
        identifier: Composite identifier from a Visit

    Returns:
        The Park, or None if the identifier is malformed or the park is not
        in the local catalog (yet)
    """
    parsed = parse(identifier)
    if parsed is None:
        return None

    stmt = select(Park).where(Park.external_id == parsed.external_id)
    if parsed.city_name == UNKNOWN_CITY:
        stmt = stmt.where(Park.city_id.is_(None))
    else:
        stmt = stmt.join(City, Park.city_id == City.id).where(City.name == parsed.city_name)

    park = session.scalars(stmt.limit(1)).unique().first()
    if park is not None:
        return park

    try:
        park_id = uuid.UUID(parsed.external_id)
    except ValueError:
        return None

    park = session.get(Park, park_id)
    if park is None:
        return None
    expected_city = park.city.name if park.city is not None else UNKNOWN_CITY
    return park if expected_city == parsed.city_name else None
