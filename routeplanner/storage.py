"""File-based persistence for saved destinations and the manual start."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from routeplanner.destinations import Destination, Origin
from routeplanner.routing import GeoPoint

logger = logging.getLogger(__name__)


@dataclass
class StoredState:
    destinations: List[Destination] = field(default_factory=list)
    next_id: int = 1
    manual_start: Optional[Origin] = None


def _destination_from_dict(raw: Any) -> Destination:
    return Destination(
        id=int(raw["id"]),
        name=str(raw["name"]),
        point=GeoPoint(float(raw["lat"]), float(raw["lon"])),
    )


class DestinationStore:
    """Thin wrapper around a JSON file holding the planner state."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> StoredState:
        """Read the saved state; a missing or unreadable file gives an empty state."""
        if not self.path.exists():
            return StoredState()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return StoredState()
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed store %s", self.path)
            return StoredState()

        state = StoredState()
        state.destinations = self._load_destinations(data.get("sites", []))
        try:
            state.next_id = int(data.get("nextSiteId", 1)) or 1
        except (TypeError, ValueError):
            state.next_id = 1
        start = data.get("manualStart")
        if isinstance(start, dict) and isinstance(start.get("lat"), (int, float)) and isinstance(
            start.get("lon"), (int, float)
        ):
            state.manual_start = Origin(
                name=start.get("name") or "Start",
                point=GeoPoint(float(start["lat"]), float(start["lon"])),
            )
        return state

    def _load_destinations(self, raw_sites: Any) -> List[Destination]:
        """Parse saved sites one by one, skipping malformed or duplicate entries."""
        if not isinstance(raw_sites, list):
            logger.warning("Ignoring malformed destinations in %s", self.path)
            return []
        destinations: List[Destination] = []
        seen = set()
        for position, item in enumerate(raw_sites):
            try:
                destination = _destination_from_dict(item)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed destination #%d in %s: %r", position, self.path, exc)
                continue
            if destination.id in seen:
                logger.warning("Skipping duplicate destination id %d in %s", destination.id, self.path)
                continue
            seen.add(destination.id)
            destinations.append(destination)
        return destinations

    def save(self, destinations: List[Destination], next_id: int, manual_start: Optional[Origin]) -> None:
        """Write the state to a sibling temp file, then swap it over the store."""
        payload = {
            "sites": [{"id": d.id, "name": d.name, "lat": d.lat, "lon": d.lon} for d in destinations],
            "nextSiteId": next_id,
            "manualStart": (
                {"name": manual_start.name, "lat": manual_start.lat, "lon": manual_start.lon}
                if manual_start is not None
                else None
            ),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
