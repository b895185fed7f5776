import json
import tempfile
import unittest
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from routeplanner.config import Settings
from routeplanner.destinations import DestinationLimitError
from routeplanner.geocode import Place, PlaceNotFoundError
from routeplanner.planner import RoutePlanner
from routeplanner.routing import GeoPoint
from routeplanner.storage import DestinationStore

PLACES = {
    "A": GeoPoint(0, 1),
    "B": GeoPoint(0, 3),
    "C": GeoPoint(0, 2),
    "Home": GeoPoint(0, 0),
    "Far": GeoPoint(0, 4),
}


class FakeResolver:
    def __init__(self):
        self.lookups = []

    def geocode(self, text):
        self.lookups.append(text)
        if text not in PLACES:
            raise PlaceNotFoundError("No results found")
        return Place(name=f"{text}, Somewhere", point=PLACES[text])

    def reverse(self, point):
        return f"Picked {point.lat:.1f},{point.lon:.1f}"


class TestRoutePlanner(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = DestinationStore(Path(self._tmp.name) / "planner.json")
        self.resolver = FakeResolver()
        self.planner = self._new_planner()

    def tearDown(self):
        self._tmp.cleanup()

    def _new_planner(self, **settings):
        return RoutePlanner(
            settings=Settings(**settings),
            store=self.store,
            geocoder=self.resolver.geocode,
            reverser=self.resolver.reverse,
        )

    def _names(self):
        return [d.name for d in self.planner.route]

    def test_empty_planner(self):
        self.assertEqual(self.planner.route, [])
        self.assertIsNone(self.planner.nearest)
        self.assertEqual(self.planner.route_text(), "—")
        self.assertEqual(self.planner.nearest_text(), ("—", "—"))
        with self.assertRaises(ValueError):
            self.planner.directions_url()

    def test_add_recomputes_route(self):
        self.planner.set_start_from_text("Home")
        for name in ("A", "B", "C"):
            self.planner.add_place(name)
        self.assertEqual(self._names(), ["A", "C", "B"])
        self.assertEqual(self.planner.route_text(), "A → C → B")
        self.assertEqual(self.planner.nearest.destination.name, "A")
        name, distance = self.planner.nearest_text()
        self.assertEqual(name, "A")
        self.assertTrue(distance.endswith(" km"))
        self.assertAlmostEqual(self.planner.route_length_km(), 3 * 111.195, delta=0.1)

    def test_blank_input_is_ignored(self):
        self.assertIsNone(self.planner.add_place("   "))
        self.assertIsNone(self.planner.set_start_from_text(""))
        self.assertEqual(self.resolver.lookups, [])

    def test_lookup_failure_leaves_state_unchanged(self):
        with self.assertRaises(PlaceNotFoundError):
            self.planner.add_place("Nowhere")
        self.assertEqual(len(self.planner.destinations), 0)

    def test_cap_checked_before_lookup(self):
        planner = self._new_planner(max_destinations=2)
        planner.add_place("A")
        planner.add_place("B")
        with self.assertRaises(DestinationLimitError):
            planner.add_place("C")
        with self.assertRaises(DestinationLimitError):
            planner.add_point(GeoPoint(5, 5))
        self.assertEqual(self.resolver.lookups, ["A", "B"])

    def test_live_position_overrides_manual_start(self):
        for name in ("A", "B", "C"):
            self.planner.add_place(name)
        self.planner.set_start(GeoPoint(0, 0), "Home")
        self.assertEqual(self._names()[0], "A")
        self.planner.update_live_position(GeoPoint(0, 3.5), accuracy_m=10)
        self.assertEqual(self._names(), ["B", "C", "A"])
        self.assertEqual(self.planner.nearest.destination.name, "B")
        self.planner.clear_live_position()
        self.assertEqual(self._names()[0], "A")

    def test_without_origin_route_starts_at_first_destination(self):
        for name in ("B", "A", "C"):
            self.planner.add_place(name)
        self.assertEqual(self._names(), ["B", "C", "A"])
        self.assertIsNone(self.planner.nearest)

    def test_move_and_remove(self):
        a = self.planner.add_place("A")
        b = self.planner.add_place("B")
        self.assertTrue(self.planner.move(b.id, -1))
        self.assertEqual(self._names(), ["B", "A"])
        self.assertFalse(self.planner.move(b.id, -1))
        self.assertTrue(self.planner.remove(a.id))
        self.assertEqual(self._names(), ["B"])
        self.assertFalse(self.planner.remove(a.id))

    def test_add_point_uses_reverse_lookup(self):
        site = self.planner.add_point(GeoPoint(1, 2))
        self.assertEqual(site.name, "Picked 1.0,2.0")
        named = self.planner.add_point(GeoPoint(3, 4), name="Cafe")
        self.assertEqual(named.name, "Cafe")

    def test_add_suggestion_uses_display_name(self):
        site = self.planner.add_suggestion(Place("Long display name", GeoPoint(1, 1)))
        self.assertEqual(site.name, "Long display name")

    def test_start_from_point(self):
        origin = self.planner.set_start_from_point(GeoPoint(0, 4))
        self.assertEqual(origin.name, "Picked 0.0,4.0")
        self.planner.clear_start()
        self.assertIsNone(self.planner.origin)

    def test_state_survives_restart(self):
        self.planner.set_start_from_text("Home")
        self.planner.add_place("A")
        removed = self.planner.add_place("B")
        self.planner.remove(removed.id)
        self.planner.update_live_position(GeoPoint(9, 9))

        restored = self._new_planner()
        restored.restore()
        self.assertEqual([d.name for d in restored.route], ["A"])
        self.assertEqual(restored.origin.name, "Home")
        self.assertFalse(restored.origin.is_live)
        self.assertEqual(restored.add_place("C").id, 3)

    def test_one_bad_saved_site_does_not_erase_the_rest(self):
        payload = {
            "sites": [
                {"id": 1, "name": "A", "lat": 0, "lon": 1},
                {"id": 2, "name": "B", "lat": 0, "lon": 3},
                {"id": 3, "name": "C", "lat": None, "lon": 2},
            ],
            "nextSiteId": 4,
        }
        self.store.path.write_text(json.dumps(payload), encoding="utf-8")
        with self.assertLogs("routeplanner.storage", level="WARNING"):
            self.planner.restore()
        self.assertEqual(len(self.planner.destinations), 2)
        added = self.planner.add_point(GeoPoint(5, 5), name="New")
        self.assertEqual(added.id, 4)
        on_disk = json.loads(self.store.path.read_text(encoding="utf-8"))
        self.assertEqual([s["name"] for s in on_disk["sites"]], ["A", "B", "New"])

    def test_directions_url(self):
        self.planner.set_start(GeoPoint(0, 0), "Home")
        self.planner.add_place("A")
        self.planner.add_place("B")
        query = parse_qs(urlsplit(self.planner.directions_url()).query)
        self.assertEqual(query["origin"], ["0,0"])
        self.assertEqual(query["destination"], ["0,3"])
        self.assertEqual(query["waypoints"], ["0,1"])


if __name__ == "__main__":
    unittest.main()
