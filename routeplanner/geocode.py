"""
Geocoding utilities for the route planner.

This module provides a thin wrapper around the `geopy` library to
turn place names into coordinates and back. It uses OpenStreetMap's
Nominatim service via geopy's API. Forward lookups are cached in
memory to avoid repeated queries for the same text.

Example usage:

    from routeplanner.geocode import geocode_place
    place = geocode_place("India Gate")
    place.point  # GeoPoint(lat=28.61..., lon=77.22...)

Unlike a bare geopy call, failures are raised: ``PlaceNotFoundError``
when the service has no match and ``GeocodingError`` when the service
itself could not be reached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import Nominatim

from routeplanner.routing import GeoPoint

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "RoutePlanner/1.0"
DEFAULT_TIMEOUT = 10.0
RETRY_TIMEOUT = 20.0


class GeocodingError(RuntimeError):
    """The geocoding service failed or could not be reached."""


class PlaceNotFoundError(GeocodingError):
    """The geocoding service returned no match."""


@dataclass(frozen=True)
class Place:
    name: str
    point: GeoPoint


_geocoder: Optional[Nominatim] = None
_user_agent = DEFAULT_USER_AGENT


def configure(user_agent: str) -> None:
    """Set the user agent sent to Nominatim and drop the cached geocoder."""
    global _geocoder, _user_agent
    if user_agent != _user_agent:
        _user_agent = user_agent
        _geocoder = None
        geocode_place.cache_clear()


def _get_geocoder() -> Nominatim:
    """Return a singleton Nominatim geocoder instance."""
    global _geocoder
    if _geocoder is None:
        # Nominatim's usage policy requires an identifying user agent.
        _geocoder = Nominatim(user_agent=_user_agent)
    return _geocoder


def _to_place(location) -> Place:
    return Place(name=location.address, point=GeoPoint(location.latitude, location.longitude))


@lru_cache(maxsize=128)
def geocode_place(query: str, timeout: float = DEFAULT_TIMEOUT) -> Place:
    """Resolve free text to the best matching place.

    A timed out request is retried once with a longer timeout.

    Raises:
        PlaceNotFoundError: If the service has no result for ``query``.
        GeocodingError: If the lookup failed.
    """
    geocoder = _get_geocoder()
    try:
        location = geocoder.geocode(query, exactly_one=True, timeout=timeout)
    except GeocoderTimedOut:
        logger.warning("Geocoding %r timed out, retrying", query)
        try:
            location = geocoder.geocode(query, exactly_one=True, timeout=RETRY_TIMEOUT)
        except GeocoderServiceError as exc:
            raise GeocodingError("Geocoding failed") from exc
    except GeocoderServiceError as exc:
        logger.warning("Geocoding %r failed: %s", query, exc)
        raise GeocodingError("Geocoding failed") from exc
    if not location:
        raise PlaceNotFoundError("No results found")
    place = _to_place(location)
    logger.info("Geocoded %r to %s", query, place.point)
    return place


def suggest_places(
    query: str,
    limit: int = 5,
    viewbox: Optional[Tuple[GeoPoint, GeoPoint]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Place]:
    """Return up to ``limit`` candidate places for ``query``.

    Args:
        query: Free text typed by the user.
        limit: Maximum number of suggestions.
        viewbox: Optional pair of opposite corners. When given, results
            are restricted to that box (the visible map area).

    Raises:
        GeocodingError: If the lookup failed. No match is an empty list.
    """
    query = query.strip()
    if not query:
        return []
    kwargs = {"exactly_one": False, "limit": limit, "timeout": timeout}
    if viewbox is not None:
        first, second = viewbox
        kwargs["viewbox"] = [(first.lat, first.lon), (second.lat, second.lon)]
        kwargs["bounded"] = True
    try:
        locations = _get_geocoder().geocode(query, **kwargs)
    except GeocoderServiceError as exc:
        raise GeocodingError("suggestions failed") from exc
    return [_to_place(loc) for loc in (locations or [])]


def reverse_geocode(point: GeoPoint, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Return a display name for ``point``.

    Falls back to the coordinates formatted to five decimals when the
    service knows no name for the location.

    Raises:
        GeocodingError: If the lookup failed.
    """
    try:
        location = _get_geocoder().reverse((point.lat, point.lon), exactly_one=True, timeout=timeout)
    except GeocoderServiceError as exc:
        raise GeocodingError("Reverse geocoding failed") from exc
    if location and location.address:
        return location.address
    return f"{point.lat:.5f}, {point.lon:.5f}"
