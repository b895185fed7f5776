"""
Route optimisation heuristics for the route planner.

This module orders a small set of destinations into an approximately
shortest open path starting near an origin. It provides:

    - ``nearest_neighbor``: build an initial route by starting at the
      destination closest to the anchor and repeatedly visiting the
      nearest unvisited destination.
    - ``two_opt``: improve a route with first‑improvement 2‑opt edge
      swaps until no swap shortens it.
    - ``optimise_route``: both phases plus the handling of empty and
      single‑destination input.
    - ``find_nearest``: the destination closest to the origin.

Items are measured with :func:`routeplanner.routing.distance_km`, so
anything exposing ``lat`` and ``lon`` can be ordered. Inputs are never
mutated; every call returns a fresh list holding the caller's items.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, TypeVar

from routeplanner.routing import Located, distance_km

logger = logging.getLogger(__name__)

# swaps must shorten the path by more than this (km) to be accepted
IMPROVEMENT_TOLERANCE = 1e-6

L = TypeVar("L", bound=Located)


@dataclass(frozen=True)
class NearestDestination(Generic[L]):
    destination: L
    distance_km: float


def _nearest_index(point: Located, pool: Sequence[Located]) -> int:
    # min() keeps the first minimal element, so earlier items win ties
    return min(range(len(pool)), key=lambda i: distance_km(point, pool[i]))


def nearest_neighbor(anchor: Located, destinations: Sequence[L]) -> List[L]:
    """Construct an initial route using the nearest neighbor heuristic.

    Args:
        anchor: Reference point the first leg is measured from.
        destinations: Items to visit, in input order.

    Returns:
        A new list containing every destination exactly once. The first
        element is the destination nearest to ``anchor``; each following
        element is the nearest not yet visited from its predecessor.
    """
    remaining = list(destinations)
    if not remaining:
        return []
    route = [remaining.pop(_nearest_index(anchor, remaining))]
    while remaining:
        route.append(remaining.pop(_nearest_index(route[-1], remaining)))
    return route


def two_opt_gain(route: Sequence[Located], i: int, k: int) -> float:
    """Change in path length from reversing ``route[i..k]``.

    Negative values mean the reversal shortens the path.
    """
    a, b = route[i - 1], route[i]
    c, d = route[k], route[k + 1]
    current = distance_km(a, b) + distance_km(c, d)
    swapped = distance_km(a, c) + distance_km(b, d)
    return swapped - current


def reverse_segment(route: List, i: int, k: int) -> None:
    """Reverse ``route[i..k]`` (inclusive) in place."""
    while i < k:
        route[i], route[k] = route[k], route[i]
        i += 1
        k -= 1


def two_opt(route: Sequence[L]) -> List[L]:
    """Perform 2‑opt optimisation on an open path.

    Index pairs are scanned with ascending ``i`` then ascending ``k``
    for ``1 <= i < k <= n - 2``; every improving swap is applied as soon
    as it is found and the scan continues. Passes repeat until one
    completes without a swap. The first and last stops never move.

    Args:
        route: Initial visiting order.

    Returns:
        A new list, locally optimal under 2‑opt.
    """
    best = list(route)
    n = len(best)
    improved = True
    passes = 0
    swaps = 0
    while improved:
        improved = False
        passes += 1
        for i in range(1, n - 2):
            for k in range(i + 1, n - 1):
                if two_opt_gain(best, i, k) < -IMPROVEMENT_TOLERANCE:
                    reverse_segment(best, i, k)
                    improved = True
                    swaps += 1
    logger.debug("2-opt converged after %d passes with %d swaps", passes, swaps)
    return best


def optimise_route(origin: Optional[Located], destinations: Sequence[L]) -> List[L]:
    """Order destinations into a short open path starting near ``origin``.

    Args:
        origin: The live or manually set start, or ``None``. Without an
            origin the route is anchored at the first destination.
        destinations: Items to visit. Not modified.

    Returns:
        A permutation of ``destinations``. Empty and single element
        input is returned as a copy without optimisation.
    """
    if len(destinations) <= 1:
        return list(destinations)
    anchor = origin if origin is not None else destinations[0]
    route = nearest_neighbor(anchor, destinations)
    return two_opt(route)


def find_nearest(origin: Optional[Located], destinations: Sequence[L]) -> Optional[NearestDestination[L]]:
    """Return the destination closest to ``origin``.

    Ties go to the earliest destination. ``None`` is returned when there
    is no origin or no destinations.
    """
    if origin is None or not destinations:
        return None
    idx = _nearest_index(origin, destinations)
    return NearestDestination(destinations[idx], distance_km(origin, destinations[idx]))
