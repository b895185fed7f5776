"""
Destination and origin state for a planning session.

``DestinationSet`` owns the ordered list of destinations the user has
added. It hands out identifiers that only ever increase, so an id is
never reused after its destination is deleted, and it refuses to grow
past the configured cap. ``OriginState`` tracks the two possible
starting points, a live position fix and a manually chosen start, and
reports which one is authoritative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from routeplanner.routing import GeoPoint

logger = logging.getLogger(__name__)

MAX_DESTINATIONS = 10


class DestinationLimitError(ValueError):
    """Raised when adding a destination to a full set."""


@dataclass(frozen=True)
class Destination:
    id: int
    name: str
    point: GeoPoint

    @property
    def lat(self) -> float:
        return self.point.lat

    @property
    def lon(self) -> float:
        return self.point.lon


@dataclass(frozen=True)
class Origin:
    name: str
    point: GeoPoint
    accuracy_m: Optional[float] = None
    is_live: bool = False

    @property
    def lat(self) -> float:
        return self.point.lat

    @property
    def lon(self) -> float:
        return self.point.lon


class DestinationSet:
    """Ordered, capped collection of destinations."""

    def __init__(self, max_size: int = MAX_DESTINATIONS, next_id: int = 1) -> None:
        self.max_size = max_size
        self.next_id = next_id
        self._items: List[Destination] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Destination]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Destination:
        return self._items[index]

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.max_size

    def items(self) -> List[Destination]:
        """Return a copy of the destinations in their current order."""
        return list(self._items)

    def add(self, name: str, point: GeoPoint) -> Destination:
        """Append a destination and return it.

        Raises:
            DestinationLimitError: If the set already holds ``max_size``
                destinations.
        """
        if self.is_full:
            raise DestinationLimitError(f"Maximum {self.max_size} sites allowed.")
        destination = Destination(id=self.next_id, name=name, point=point)
        self.next_id += 1
        self._items.append(destination)
        logger.info("Added destination %d (%s) at %s", destination.id, name, point)
        return destination

    def restore(self, destinations: List[Destination], next_id: Optional[int] = None) -> None:
        """Replace the contents with previously saved destinations.

        Entries beyond ``max_size`` are dropped. ``next_id`` never falls
        at or below an id already in use.
        """
        self._items = list(destinations[: self.max_size])
        highest = max((d.id for d in self._items), default=0)
        self.next_id = max(next_id or 1, highest + 1, self.next_id)

    def index_of(self, destination_id: int) -> int:
        for idx, destination in enumerate(self._items):
            if destination.id == destination_id:
                return idx
        return -1

    def remove(self, destination_id: int) -> bool:
        idx = self.index_of(destination_id)
        if idx == -1:
            return False
        removed = self._items.pop(idx)
        logger.info("Removed destination %d (%s)", removed.id, removed.name)
        return True

    def move(self, destination_id: int, delta: int) -> bool:
        """Shift a destination ``delta`` places; moves off either end are ignored."""
        idx = self.index_of(destination_id)
        if idx == -1:
            return False
        new_idx = idx + delta
        if new_idx < 0 or new_idx >= len(self._items):
            return False
        item = self._items.pop(idx)
        self._items.insert(new_idx, item)
        return True


class OriginState:
    """Live position and manual start; the live fix wins when both exist."""

    def __init__(self) -> None:
        self.live: Optional[Origin] = None
        self.manual: Optional[Origin] = None

    def update_live(self, point: GeoPoint, accuracy_m: Optional[float] = None) -> Origin:
        self.live = Origin(name="You", point=point, accuracy_m=accuracy_m, is_live=True)
        return self.live

    def clear_live(self) -> None:
        self.live = None

    def set_manual(self, point: GeoPoint, name: Optional[str] = None) -> Origin:
        self.manual = Origin(name=name or "Start", point=point)
        logger.info("Manual start set to %s at %s", self.manual.name, point)
        return self.manual

    def clear_manual(self) -> None:
        self.manual = None

    @property
    def current(self) -> Optional[Origin]:
        if self.live is not None:
            return self.live
        return self.manual
