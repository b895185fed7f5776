import random
import unittest

from routeplanner.destinations import Destination
from routeplanner.optimisation import nearest_neighbor, optimise_route, two_opt, two_opt_gain
from routeplanner.routing import GeoPoint, path_length_km


def _random_destinations(rng, n):
    destinations = []
    for i in range(n):
        # random coordinates near Delhi (lat 28.5-28.7, lon 77.1-77.3)
        lat = 28.5 + rng.random() * 0.2
        lon = 77.1 + rng.random() * 0.2
        destinations.append(Destination(id=i + 1, name=f"Site {i + 1}", point=GeoPoint(lat, lon)))
    return destinations


class TestSimulation(unittest.TestCase):
    def setUp(self):
        self.rng = random.Random(20240601)

    def test_random_cases(self):
        # Run a batch of random instances and check the properties every
        # optimised route must have.
        for _ in range(50):
            n = self.rng.randint(2, 10)
            destinations = _random_destinations(self.rng, n)
            snapshot = list(destinations)
            origin = None if self.rng.random() < 0.2 else GeoPoint(28.6139, 77.2090)

            route = optimise_route(origin, destinations)

            self.assertEqual(destinations, snapshot)
            self.assertEqual(len(route), n)
            self.assertEqual(sorted(d.id for d in route), sorted(d.id for d in destinations))

            anchor = origin if origin is not None else destinations[0]
            initial = nearest_neighbor(anchor, destinations)
            self.assertEqual(route, two_opt(initial))
            self.assertLessEqual(path_length_km(route, origin), path_length_km(initial, origin) + 1e-9)

            for i in range(1, n - 2):
                for k in range(i + 1, n - 1):
                    self.assertGreaterEqual(two_opt_gain(route, i, k), -1e-6)

            again = optimise_route(origin, route)
            self.assertLessEqual(path_length_km(again, origin), path_length_km(route, origin) + 1e-9)
            self.assertEqual(optimise_route(origin, destinations), route)


if __name__ == "__main__":
    unittest.main()
