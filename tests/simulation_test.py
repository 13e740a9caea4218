import random
import unittest
from unittest.mock import MagicMock

from mapnav.config import MapConfig
from mapnav.models import Coordinate, Route, RouteStep
from mapnav.navigation import Navigator, ProgressStatus
from mapnav.positions import ManualPositionSource


class TestSimulation(unittest.TestCase):
    def test_random_walks_along_route(self):
        # Walk a handful of random routes, jittering each fix by a few
        # metres, and check the navigator ends on the final step.
        for _ in range(10):
            n = random.randint(3, 6)
            steps = []
            for i in range(n):
                # steps roughly 100 m apart near Saint Petersburg
                lat = 59.93 + i * 0.001
                lon = 30.31 + random.random() * 0.0005
                steps.append(RouteStep(Coordinate(lat, lon), f"Step {i}"))
            route = Route(polyline=tuple(s.maneuver_location for s in steps), steps=tuple(steps))

            source = ManualPositionSource()
            router = MagicMock()
            navigator = Navigator(router, source, MapConfig())
            navigator.start(route)
            statuses = []
            for step in steps:
                jitter = random.uniform(-0.00002, 0.00002)  # about 2 m
                fix = Coordinate(step.maneuver_location.latitude + jitter, step.maneuver_location.longitude)
                statuses.append(navigator.on_position_update(fix).status)

            self.assertEqual(navigator.current_step_index, n - 1)
            self.assertEqual(statuses.count(ProgressStatus.ADVANCED), n - 1)
            router.build_route.assert_not_called()
            navigator.stop()
            self.assertEqual(source.listener_count, 0)


if __name__ == "__main__":
    unittest.main()
