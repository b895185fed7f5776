"""
Distance utilities for the route planner.

This module holds the geographic primitives the rest of the package is
built on: an immutable ``GeoPoint``, the haversine great‑circle
distance between two points, the length of an open path through a
sequence of points, and a helper that hands a computed route over to
Google Maps for turn‑by‑turn directions.

Any object exposing ``lat`` and ``lon`` attributes in decimal degrees
can be passed where a point is expected, so destinations can be
measured directly without unwrapping them first.

Example usage:

    delhi = GeoPoint(28.6139, 77.2090)
    mumbai = GeoPoint(19.0760, 72.8777)
    distance_km(delhi, mumbai)  # ~1148 km

Distances are straight‑line over a sphere of radius 6371 km. They are
not drivable distances.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence
from urllib.parse import urlencode

EARTH_RADIUS_KM = 6371.0

GOOGLE_MAPS_DIR_URL = "https://www.google.com/maps/dir/?api=1"


class Located(Protocol):
    """Anything with ``lat`` and ``lon`` in decimal degrees."""

    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    def __str__(self) -> str:
        return f"{self.lat},{self.lon}"


def distance_km(a: Located, b: Located) -> float:
    """Compute the great‑circle distance between two points in kilometers.

    No range validation is performed; out of range degrees still produce
    a (possibly non‑physical) number.
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    h = math.sin(d_lat / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lon / 2) ** 2
    # keep h in [0, 1]: rounding near antipodes and out of range latitudes leave it
    h = min(max(h, 0.0), 1.0)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def path_length_km(points: Sequence[Located], origin: Optional[Located] = None) -> float:
    """Total length of the open path through ``points`` in order.

    Args:
        points: Points (or destinations) in visiting order.
        origin: Optional starting point. When given, the leg from the
            origin to the first point is included.

    Returns:
        The summed leg distances in kilometers; ``0.0`` for an empty path.
    """
    length = 0.0
    if origin is not None and points:
        length += distance_km(origin, points[0])
    for i in range(len(points) - 1):
        length += distance_km(points[i], points[i + 1])
    return length


def _latlon(point: Located) -> str:
    return f"{point.lat},{point.lon}"


def google_maps_directions_url(route: Sequence[Located], origin: Optional[Located] = None) -> str:
    """Build a Google Maps directions URL for a visiting order.

    The trip starts at ``origin`` when one is known, otherwise at the
    first stop. The last stop is the destination and every stop before
    it is passed as a waypoint.

    Raises:
        ValueError: If ``route`` is empty.
    """
    if not route:
        raise ValueError("Add at least one site.")
    start = _latlon(origin) if origin is not None else _latlon(route[0])
    params = {
        "origin": start,
        "destination": _latlon(route[-1]),
        "travelmode": "driving",
        "waypoints": "|".join(_latlon(p) for p in route[:-1]),
    }
    return f"{GOOGLE_MAPS_DIR_URL}&{urlencode(params)}"
