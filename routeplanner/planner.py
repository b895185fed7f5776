"""
Planning session for the route planner.

``RoutePlanner`` is the caller side of the optimiser. It owns the
destination set and the origin state, enforces the destination cap,
resolves place names, persists changes and, after every change to the
destinations or the origin, recomputes the visiting order and the
nearest destination from scratch.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from routeplanner.config import Settings
from routeplanner.destinations import (
    Destination,
    DestinationLimitError,
    DestinationSet,
    Origin,
    OriginState,
)
from routeplanner.geocode import Place, geocode_place, reverse_geocode
from routeplanner.optimisation import NearestDestination, find_nearest, optimise_route
from routeplanner.routing import GeoPoint, google_maps_directions_url, path_length_km
from routeplanner.storage import DestinationStore

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"


class RoutePlanner:
    """Holds one user's destinations and origin and keeps the route current.

    Args:
        settings: Configuration; defaults are used when omitted.
        store: Where destinations and the manual start are saved. Nothing
            is persisted when ``None``.
        geocoder: Callable resolving free text to a :class:`Place`.
        reverser: Callable resolving a :class:`GeoPoint` to a display name.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[DestinationStore] = None,
        geocoder: Callable[[str], Place] = geocode_place,
        reverser: Callable[[GeoPoint], str] = reverse_geocode,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store
        self._geocode = geocoder
        self._reverse = reverser
        self.destinations = DestinationSet(max_size=self.settings.max_destinations)
        self.origins = OriginState()
        self.route: List[Destination] = []
        self.nearest: Optional[NearestDestination] = None

    # -- persistence -------------------------------------------------

    def restore(self) -> None:
        """Load saved destinations and manual start, then recompute."""
        if self.store is None:
            return
        state = self.store.load()
        self.destinations.restore(state.destinations, state.next_id)
        self.origins.manual = state.manual_start
        logger.info("Restored %d destinations", len(self.destinations))
        self.refresh()

    def _persist(self) -> None:
        if self.store is None:
            return
        self.store.save(self.destinations.items(), self.destinations.next_id, self.origins.manual)

    # -- recomputation -----------------------------------------------

    @property
    def origin(self) -> Optional[Origin]:
        return self.origins.current

    def refresh(self) -> None:
        """Recompute the visiting order and the nearest destination."""
        items = self.destinations.items()
        self.route = optimise_route(self.origin, items)
        self.nearest = find_nearest(self.origin, items)

    def _changed(self, persist: bool = True) -> None:
        self.refresh()
        if persist:
            self._persist()

    # -- destinations ------------------------------------------------

    def _check_capacity(self) -> None:
        if self.destinations.is_full:
            raise DestinationLimitError(f"Maximum {self.destinations.max_size} sites allowed.")

    def add_place(self, text: str) -> Optional[Destination]:
        """Resolve ``text`` and add it under the name the user typed.

        Returns ``None`` for blank input.

        Raises:
            DestinationLimitError: If the set is full; checked before any lookup.
            GeocodingError: If the lookup failed or found nothing.
        """
        name = text.strip()
        if not name:
            return None
        self._check_capacity()
        place = self._geocode(name)
        return self._add(name, place.point)

    def add_suggestion(self, place: Place) -> Destination:
        """Add a place picked from the suggestion list."""
        self._check_capacity()
        return self._add(place.name, place.point)

    def add_point(self, point: GeoPoint, name: Optional[str] = None) -> Destination:
        """Add a point picked on the map, naming it by reverse lookup if needed."""
        self._check_capacity()
        if name is None:
            name = self._reverse(point)
        return self._add(name, point)

    def _add(self, name: str, point: GeoPoint) -> Destination:
        destination = self.destinations.add(name, point)
        self._changed()
        return destination

    def remove(self, destination_id: int) -> bool:
        if not self.destinations.remove(destination_id):
            return False
        self._changed()
        return True

    def move(self, destination_id: int, delta: int) -> bool:
        if not self.destinations.move(destination_id, delta):
            return False
        self._changed()
        return True

    # -- origin ------------------------------------------------------

    def set_start_from_text(self, text: str) -> Optional[Origin]:
        name = text.strip()
        if not name:
            return None
        place = self._geocode(name)
        return self.set_start(place.point, name)

    def set_start_from_point(self, point: GeoPoint) -> Origin:
        return self.set_start(point, self._reverse(point))

    def set_start(self, point: GeoPoint, name: Optional[str] = None) -> Origin:
        origin = self.origins.set_manual(point, name)
        self._changed()
        return origin

    def clear_start(self) -> None:
        self.origins.clear_manual()
        self._changed()

    def update_live_position(self, point: GeoPoint, accuracy_m: Optional[float] = None) -> Origin:
        origin = self.origins.update_live(point, accuracy_m)
        # live fixes are not saved
        self._changed(persist=False)
        return origin

    def clear_live_position(self) -> None:
        self.origins.clear_live()
        self._changed(persist=False)

    # -- presentation helpers ----------------------------------------

    def route_text(self) -> str:
        if not self.route:
            return PLACEHOLDER
        return " → ".join(d.name for d in self.route)

    def nearest_text(self) -> Tuple[str, str]:
        """Return the nearest destination's name and distance for display."""
        if self.nearest is None:
            return PLACEHOLDER, PLACEHOLDER
        return self.nearest.destination.name, f"{self.nearest.distance_km:.2f} km"

    def route_length_km(self) -> float:
        return path_length_km(self.route, origin=self.origin)

    def directions_url(self) -> str:
        """Google Maps directions for the current route.

        Raises:
            ValueError: If there are no destinations.
        """
        origin = self.origin
        return google_maps_directions_url(self.route, origin.point if origin is not None else None)
