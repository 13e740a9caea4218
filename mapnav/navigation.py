"""
Turn-by-turn navigation for MapNav.

The decision logic is the pure :func:`transition` function: given the
current session and a new position it returns the next session and the
side effects to perform (at most one reroute request). The
:class:`Navigator` owns the live session, the position subscription and
the routing client, and carries those effects out.

Usage:
    navigator = Navigator(routing_client, position_source, config)
    navigator.start(route, destination)

    # Positions now arrive through the subscription; or feed them directly:
    result = navigator.on_position_update(current_coord)

    navigator.stop()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from mapnav.config import MapConfig
from mapnav.exceptions import InvalidRouteError, MapNavError
from mapnav.geo import distance_meters
from mapnav.models import Coordinate, Route, RouteStep
from mapnav.positions import PositionSource, Subscription

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class NavigationState(Enum):
    IDLE   = "idle"
    ACTIVE = "active"


class ProgressStatus(Enum):
    INACTIVE       = "inactive"
    PROGRESSING    = "progressing"
    ADVANCED       = "advanced"
    REROUTED       = "rerouted"
    REROUTE_FAILED = "reroute_failed"


@dataclass(frozen=True)
class NavigationSession:
    """Immutable snapshot of one navigation session.

    The navigator only ever stores active sessions; IDLE is the absence
    of a session. ``active=False`` builds a detached snapshot (for example
    to describe a finished session) that skips the step index check.
    """

    route: Route
    destination: Coordinate
    current_step_index: int = 0
    active: bool = True

    def __post_init__(self) -> None:
        if self.active and not 0 <= self.current_step_index < len(self.route.steps):
            raise InvalidRouteError(
                f"Step index {self.current_step_index} out of range for "
                f"a route with {len(self.route.steps)} steps"
            )

    @property
    def current_step(self) -> RouteStep:
        return self.route.steps[self.current_step_index]

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index == len(self.route.steps) - 1


@dataclass(frozen=True)
class RerouteRequest:
    """Side effect: fetch a new route from ``origin`` to ``destination``."""

    origin: Coordinate
    destination: Coordinate


@dataclass(frozen=True)
class Transition:
    session: NavigationSession
    effects: Tuple[RerouteRequest, ...]
    distance_m: float
    advanced: bool = False


@dataclass
class ProgressResult:
    """Returned by Navigator.on_position_update() for every position."""

    status: ProgressStatus
    message: str
    position: Coordinate
    distance_to_step: Optional[float] = None   # metres
    current_step: Optional[RouteStep] = None
    step_index: Optional[int] = None


# ---------------------------------------------------------------------------
# Pure transition
# ---------------------------------------------------------------------------

def transition(session: NavigationSession, position: Coordinate, config: MapConfig) -> Transition:
    """
    Decide what a new position means for ``session``.

    Advance is checked first: closer than ``advance_threshold_m`` to the
    current maneuver moves to the next step (one step per update, never
    past the last). Only when no advance happened is the reroute check
    made: farther than ``reroute_threshold_m`` requests a new route from
    ``position`` to the session's destination.

    Args:
        session: The active session.
        position: Latest position fix.
        config: Thresholds.

    Returns:
        The next session, the effects to run and the distance measured.
    """
    dist = distance_meters(position, session.current_step.maneuver_location)

    if dist < config.advance_threshold_m and not session.is_last_step:
        advanced = replace(session, current_step_index=session.current_step_index + 1)
        return Transition(session=advanced, effects=(), distance_m=dist, advanced=True)

    if dist > config.reroute_threshold_m:
        request = RerouteRequest(origin=position, destination=session.destination)
        return Transition(session=session, effects=(request,), distance_m=dist)

    return Transition(session=session, effects=(), distance_m=dist)


def apply_reroute(session: NavigationSession, route: Route) -> NavigationSession:
    """Swap in a freshly built route and restart from its first step."""
    return replace(session, route=route, current_step_index=0)


# ---------------------------------------------------------------------------
# Navigator
# ---------------------------------------------------------------------------

class Navigator:
    """
    Stateful owner of a navigation session and its position subscription.

    At most one subscription exists at a time: starting a new session
    stops the previous one first, and every path back to IDLE releases
    the subscription.

    Args:
        router: Anything with ``build_route(origin, destination) -> Route``.
        position_source: Where live positions come from.
        config: Optional MapConfig; defaults to MapConfig().
        on_notice: Called with user-facing text for non-fatal problems
            (failed reroutes).
        on_update: Called with every ProgressResult.
    """

    def __init__(
        self,
        router,
        position_source: PositionSource,
        config: Optional[MapConfig] = None,
        on_notice: Optional[Callable[[str], None]] = None,
        on_update: Optional[Callable[[ProgressResult], None]] = None,
    ) -> None:
        self.config = config or MapConfig()
        self._router = router
        self._source = position_source
        self._on_notice = on_notice
        self._on_update = on_update
        self._session: Optional[NavigationSession] = None
        self._subscription: Optional[Subscription] = None
        # bumped by every start() so stale handles can be told apart
        self._generation = 0

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavigationState:
        return NavigationState.ACTIVE if self._session is not None else NavigationState.IDLE

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[NavigationSession]:
        return self._session

    @property
    def current_step(self) -> Optional[RouteStep]:
        return self._session.current_step if self._session else None

    @property
    def current_step_index(self) -> Optional[int]:
        return self._session.current_step_index if self._session else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, route: Route, destination: Optional[Coordinate] = None) -> Subscription:
        """
        Begin navigating ``route`` and subscribe to live positions.

        Args:
            route: Route to follow; must have at least one step.
            destination: Where reroutes should lead. Defaults to the
                route's last maneuver location.

        Returns:
            A handle that stops this session when cancelled. Cancelling
            it after a newer session has started does nothing.

        Raises:
            InvalidRouteError: If the route has no steps.
        """
        if not route.steps:
            raise InvalidRouteError("Cannot navigate a route without steps")

        self.stop()

        self._generation += 1
        generation = self._generation
        self._session = NavigationSession(route=route, destination=destination or route.final_location)
        self._subscription = self._source.subscribe(self.on_position_update)
        logger.info("Navigation started - %d steps. First: %s",
                    len(route.steps), route.steps[0].directive_text)
        return Subscription(lambda: self._stop_if_current(generation))

    def stop(self) -> None:
        """End navigation. Safe to call at any time, any number of times."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()
        if self._session is not None:
            self._session = None
            logger.info("Navigation stopped.")

    def close(self) -> None:
        """Release the position subscription on teardown."""
        self.stop()

    def __enter__(self) -> "Navigator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _stop_if_current(self, generation: int) -> None:
        if generation == self._generation:
            self.stop()

    # ------------------------------------------------------------------
    # Core method, called on every position update
    # ------------------------------------------------------------------

    def on_position_update(self, position: Coordinate) -> ProgressResult:
        """
        Process a new position and return the navigation status.

        Args:
            position: Latest position fix.

        Returns:
            ProgressResult with status, message, and step info.
        """
        if self._session is None:
            result = ProgressResult(
                status=ProgressStatus.INACTIVE,
                message="Navigation is not active.",
                position=position,
            )
            self._publish(result)
            return result

        step = transition(self._session, position, self.config)
        self._session = step.session

        if step.advanced:
            current = self._session.current_step
            logger.info("Step %d reached (%.1f m). Next: %s",
                        self._session.current_step_index - 1, step.distance_m, current.directive_text)
            result = self._result(ProgressStatus.ADVANCED, current.directive_text, position, step.distance_m)
        elif step.effects:
            result = self._reroute(step.effects[0], step.distance_m)
        else:
            current = self._session.current_step
            result = self._result(
                ProgressStatus.PROGRESSING,
                f"{int(step.distance_m)} m to next maneuver: {current.directive_text}",
                position,
                step.distance_m,
            )

        self._publish(result)
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reroute(self, request: RerouteRequest, distance_m: float) -> ProgressResult:
        logger.info("Off route by %.1f m, rerouting from %s", distance_m, request.origin)
        try:
            route = self._router.build_route(request.origin, request.destination)
            session = apply_reroute(self._session, route)
        except MapNavError as exc:
            logger.warning("Reroute failed, keeping previous route: %s", exc)
            message = "Could not recalculate the route; continuing on the previous route."
            if self._on_notice is not None:
                self._on_notice(message)
            return self._result(ProgressStatus.REROUTE_FAILED, message, request.origin, distance_m)

        self._session = session
        first = session.current_step
        logger.info("Rerouted - %d steps. First: %s", len(route.steps), first.directive_text)
        return self._result(
            ProgressStatus.REROUTED,
            f"Route recalculated. {first.directive_text}",
            request.origin,
            distance_meters(request.origin, first.maneuver_location),
        )

    def _result(
        self,
        status: ProgressStatus,
        message: str,
        position: Coordinate,
        distance: Optional[float] = None,
    ) -> ProgressResult:
        session = self._session
        return ProgressResult(
            status=status,
            message=message,
            position=position,
            distance_to_step=distance,
            current_step=session.current_step if session else None,
            step_index=session.current_step_index if session else None,
        )

    def _publish(self, result: ProgressResult) -> None:
        logger.debug("Position %s -> %s", result.position, result.status.value)
        if self._on_update is not None:
            self._on_update(result)
