import math
import unittest
from unittest.mock import MagicMock

from mapnav.config import MapConfig
from mapnav.exceptions import InvalidRouteError, NotFound, ServiceError
from mapnav.models import Coordinate, Route, RouteStep
from mapnav.navigation import (
    NavigationSession,
    NavigationState,
    Navigator,
    ProgressStatus,
    RerouteRequest,
    transition,
)
from mapnav.positions import ManualPositionSource
from mapnav.routing import RoutingClient

METRES_PER_DEGREE = 6371000.0 * math.pi / 180.0


def make_route(*points):
    steps = tuple(RouteStep(Coordinate(lat, lon), f"step {i}") for i, (lat, lon) in enumerate(points))
    return Route(polyline=tuple(s.maneuver_location for s in steps), steps=steps)


class TestTransition(unittest.TestCase):
    def setUp(self):
        self.config = MapConfig()
        self.route = make_route((0, 0), (0, 0.001))
        self.session = NavigationSession(route=self.route, destination=Coordinate(0, 0.001))

    def test_advance_one_step(self):
        result = transition(self.session, Coordinate(0, 0), self.config)
        self.assertTrue(result.advanced)
        self.assertEqual(result.session.current_step_index, 1)
        self.assertEqual(result.effects, ())
        # the input snapshot is untouched
        self.assertEqual(self.session.current_step_index, 0)

    def test_reroute_effect_uses_position_as_origin(self):
        offset = (self.config.reroute_threshold_m + 6) / METRES_PER_DEGREE
        position = Coordinate(offset, 0)
        result = transition(self.session, position, self.config)
        self.assertEqual(result.effects, (RerouteRequest(origin=position, destination=Coordinate(0, 0.001)),))
        self.assertEqual(result.session, self.session)

    def test_between_thresholds_changes_nothing(self):
        position = Coordinate(20 / METRES_PER_DEGREE, 0)
        result = transition(self.session, position, self.config)
        self.assertFalse(result.advanced)
        self.assertEqual(result.effects, ())

    def test_invalid_index_rejected(self):
        with self.assertRaises(InvalidRouteError):
            NavigationSession(route=self.route, destination=Coordinate(0, 0), current_step_index=2)

    def test_detached_snapshot_skips_index_check(self):
        empty = Route(polyline=(), steps=())
        snapshot = NavigationSession(route=empty, destination=Coordinate(0, 0), active=False)
        self.assertFalse(snapshot.active)
        self.assertTrue(self.session.active)


class TestNavigator(unittest.TestCase):
    def setUp(self):
        self.config = MapConfig()
        self.router = MagicMock()
        self.source = ManualPositionSource()
        self.notices = []
        self.navigator = Navigator(self.router, self.source, self.config, on_notice=self.notices.append)
        self.route = make_route((0, 0), (0, 0.001))

    def test_start_rejects_empty_route(self):
        with self.assertRaises(InvalidRouteError):
            self.navigator.start(Route(polyline=(), steps=()))
        self.assertEqual(self.navigator.state, NavigationState.IDLE)
        self.assertEqual(self.source.listener_count, 0)

    def test_start_subscribes_once(self):
        self.navigator.start(self.route)
        self.assertEqual(self.navigator.state, NavigationState.ACTIVE)
        self.assertEqual(self.navigator.current_step_index, 0)
        self.navigator.start(self.route)
        self.assertEqual(self.source.listener_count, 1)

    def test_advance_then_stay_on_last_step(self):
        self.navigator.start(self.route)
        self.source.push(Coordinate(0, 0))
        self.assertEqual(self.navigator.current_step_index, 1)
        result = self.navigator.on_position_update(Coordinate(0, 0.001))
        self.assertEqual(self.navigator.current_step_index, 1)
        self.assertEqual(result.status, ProgressStatus.PROGRESSING)
        # reaching the final step does not end navigation
        self.assertTrue(self.navigator.is_active)

    def test_never_skips_more_than_one_step(self):
        route = make_route((0, 0), (0, 0), (0, 0))
        self.navigator.start(route)
        result = self.navigator.on_position_update(Coordinate(0, 0))
        self.assertEqual(result.status, ProgressStatus.ADVANCED)
        self.assertEqual(self.navigator.current_step_index, 1)

    def test_reroute_replaces_route(self):
        new_route = make_route((1, 1), (1, 1.001), (1, 1.002))
        self.router.build_route.return_value = new_route
        self.navigator.start(self.route, destination=Coordinate(0, 0.001))
        self.source.push(Coordinate(0, 0))
        position = Coordinate((self.config.reroute_threshold_m + 6) / METRES_PER_DEGREE, 0.001)

        result = self.navigator.on_position_update(position)

        self.router.build_route.assert_called_once_with(position, Coordinate(0, 0.001))
        self.assertEqual(result.status, ProgressStatus.REROUTED)
        self.assertIs(self.navigator.session.route, new_route)
        self.assertEqual(self.navigator.current_step_index, 0)
        self.assertEqual(self.navigator.session.destination, Coordinate(0, 0.001))

    def test_failed_reroute_keeps_stale_route(self):
        for error in (ServiceError("down"), NotFound("no route")):
            self.router.build_route.side_effect = error
            self.navigator.start(self.route)
            result = self.navigator.on_position_update(Coordinate(1, 1))
            self.assertEqual(result.status, ProgressStatus.REROUTE_FAILED)
            self.assertTrue(self.navigator.is_active)
            self.assertIs(self.navigator.session.route, self.route)
        self.assertEqual(len(self.notices), 2)

    def test_reroute_without_steps_keeps_stale_route(self):
        self.router.build_route.return_value = Route(polyline=(Coordinate(1, 1),), steps=())
        self.navigator.start(self.route)
        result = self.navigator.on_position_update(Coordinate(1, 1))
        self.assertEqual(result.status, ProgressStatus.REROUTE_FAILED)
        self.assertTrue(self.navigator.is_active)
        self.assertIs(self.navigator.session.route, self.route)
        self.assertEqual(self.navigator.current_step_index, 0)
        self.assertEqual(len(self.notices), 1)

    def test_malformed_reroute_reply_keeps_session(self):
        reply = MagicMock(status_code=200)
        reply.json.return_value = {"code": "Ok", "routes": [{"geometry": {"coordinates": None}, "distance": None}]}
        http = MagicMock()
        http.get.return_value = reply
        updates = []
        navigator = Navigator(RoutingClient(self.config, session=http), self.source, self.config,
                              on_notice=self.notices.append, on_update=updates.append)
        navigator.start(self.route)

        self.source.push(Coordinate(1, 1))

        self.assertEqual([u.status for u in updates], [ProgressStatus.REROUTE_FAILED])
        self.assertTrue(navigator.is_active)
        self.assertIs(navigator.session.route, self.route)
        self.assertEqual(len(self.notices), 1)
        navigator.stop()

    def test_stop_is_idempotent(self):
        self.navigator.start(self.route)
        self.navigator.stop()
        self.navigator.stop()
        self.assertEqual(self.navigator.state, NavigationState.IDLE)
        self.assertEqual(self.source.listener_count, 0)
        self.assertEqual(self.navigator.on_position_update(Coordinate(0, 0)).status, ProgressStatus.INACTIVE)

    def test_handle_cancel_only_stops_its_own_session(self):
        first = self.navigator.start(self.route)
        self.navigator.start(self.route)
        first.cancel()
        self.assertTrue(self.navigator.is_active)
        second = self.navigator.start(self.route)
        second.cancel()
        second.cancel()
        self.assertFalse(self.navigator.is_active)
        self.assertEqual(self.source.listener_count, 0)

    def test_context_manager_releases_subscription(self):
        with Navigator(self.router, self.source, self.config) as navigator:
            navigator.start(self.route)
            self.assertEqual(self.source.listener_count, 1)
        self.assertEqual(self.source.listener_count, 0)

    def test_updates_published(self):
        updates = []
        navigator = Navigator(self.router, self.source, self.config, on_update=updates.append)
        navigator.start(self.route)
        self.source.push(Coordinate(0, 0))
        self.assertEqual([u.status for u in updates], [ProgressStatus.ADVANCED])
        self.assertEqual(updates[0].step_index, 1)


if __name__ == "__main__":
    unittest.main()
