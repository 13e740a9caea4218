"""
Application state for the MapNav page.

Everything the page shows (search text, suggestions, destination
marker, route, current position, notices) lives on a single
``AppState`` owned by a ``MapController``. Each user action is one
controller method. Service failures never leave half-updated state:
the marker and route only change once a call has succeeded, and the
problem is queued as a user-facing notice instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from mapnav.config import MapConfig
from mapnav.exceptions import InvalidRouteError, NotFound, ServiceError
from mapnav.geocode import Geocoder
from mapnav.indoor import IndoorOverlay
from mapnav.models import Coordinate, PlaceResult, Route, RouteStep
from mapnav.navigation import Navigator, ProgressResult
from mapnav.positions import ManualPositionSource
from mapnav.routing import RoutingClient

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    search_query: str = ""
    suggestions: List[PlaceResult] = field(default_factory=list)
    marker: Optional[PlaceResult] = None
    current_position: Optional[Coordinate] = None
    route: Optional[Route] = None
    last_progress: Optional[ProgressResult] = None
    notices: List[str] = field(default_factory=list)


class MapController:
    """Handles the page's user actions against the geocoder, router and navigator.

    Args:
        geocoder: Geocoding client.
        router: Routing client.
        position_source: Source of live positions; also used for one-off
            position reports outside navigation.
        config: Optional MapConfig; defaults to MapConfig().
        indoor: Optional indoor overlay for the campus variant.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        router: RoutingClient,
        position_source: ManualPositionSource,
        config: Optional[MapConfig] = None,
        indoor: Optional[IndoorOverlay] = None,
    ) -> None:
        self.config = config or MapConfig()
        self.state = AppState()
        self.geocoder = geocoder
        self.router = router
        self.position_source = position_source
        self.indoor = indoor
        self.navigator = Navigator(
            router,
            position_source,
            self.config,
            on_notice=self._notify,
            on_update=self._on_progress,
        )

    @classmethod
    def from_config(cls, config: MapConfig) -> "MapController":
        """Wire up real clients and load the indoor dataset."""
        try:
            indoor = IndoorOverlay.from_config(config)
        except (OSError, ValueError) as exc:
            logger.warning("Indoor overlay disabled: %s", exc)
            indoor = None
        return cls(
            Geocoder(config),
            RoutingClient(config),
            ManualPositionSource(),
            config,
            indoor,
        )

    # ------------------------------------------------------------------
    # Read-only helpers
    # ------------------------------------------------------------------

    @property
    def navigating(self) -> bool:
        return self.navigator.is_active

    @property
    def current_instruction(self) -> Optional[RouteStep]:
        return self.navigator.current_step

    def drain_notices(self) -> List[str]:
        """Return queued notices and clear the queue."""
        notices, self.state.notices = self.state.notices, []
        return notices

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------

    def report_position(self, position: Coordinate) -> None:
        """Record a position fix and forward it to any live subscriber."""
        self.state.current_position = position
        self.position_source.push(position)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def change_query(self, text: str) -> None:
        """Update the search text and refresh autocomplete suggestions."""
        self.state.search_query = text
        self.state.suggestions = self.geocoder.suggest(text)

    def search(self) -> bool:
        """Geocode the current query and drop the destination marker there."""
        query = self.state.search_query.strip()
        if not query:
            self._notify("Enter a place name to search.")
            return False
        try:
            place = self.geocoder.search(query)
        except NotFound:
            self._notify("Place not found.")
            return False
        except ServiceError:
            self._notify("Error while searching.")
            return False
        self._set_destination(PlaceResult(place.coordinate, query, place.place_id))
        return True

    def select_suggestion(self, place: PlaceResult) -> None:
        """Use an autocomplete entry as the destination."""
        self.state.search_query = place.label
        self.state.suggestions = []
        self._set_destination(place)

    def tap_map(self, coordinate: Coordinate) -> bool:
        """Drop the destination marker where the user tapped."""
        try:
            place = self.geocoder.reverse_lookup(coordinate)
        except ServiceError:
            self._notify("Could not look up the selected location.")
            return False
        self._set_destination(place)
        return True

    def clear(self) -> None:
        """Reset search, marker, route and navigation."""
        self.navigator.stop()
        position = self.state.current_position
        self.state = AppState(current_position=position, notices=self.state.notices)

    # ------------------------------------------------------------------
    # Routing and navigation
    # ------------------------------------------------------------------

    def build_route(self) -> bool:
        """Route from the current position to the marker."""
        if self.state.current_position is None or self.state.marker is None:
            self._notify("Location not found or destination not selected.")
            return False
        try:
            route = self.router.build_route(self.state.current_position, self.state.marker.coordinate)
        except NotFound:
            self._notify("Route not found.")
            return False
        except ServiceError:
            self._notify("Error building route.")
            return False
        self.navigator.stop()
        self.state.route = route
        self.state.last_progress = None
        return True

    def start_navigation(self) -> bool:
        if self.state.route is None or self.state.marker is None:
            self._notify("Build a route first.")
            return False
        try:
            self.navigator.start(self.state.route, self.state.marker.coordinate)
        except InvalidRouteError:
            self._notify("This route has no directions to follow.")
            return False
        return True

    def stop_navigation(self) -> None:
        """Stop navigating and discard the route."""
        self.navigator.stop()
        self.state.route = None
        self.state.last_progress = None

    # ------------------------------------------------------------------
    # Indoor overlay
    # ------------------------------------------------------------------

    def set_floor(self, floor: int) -> None:
        if self.indoor is not None:
            self.indoor = self.indoor.with_floor(floor)

    def indoor_visible(self, center: Coordinate, zoom: float) -> bool:
        return self.indoor is not None and self.indoor.is_visible(center, zoom)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _set_destination(self, place: PlaceResult) -> None:
        # A new destination invalidates the old route
        self.navigator.stop()
        self.state.marker = place
        self.state.route = None
        self.state.last_progress = None

    def _on_progress(self, result: ProgressResult) -> None:
        self.state.current_position = result.position
        self.state.last_progress = result
        session = self.navigator.session
        if session is not None:
            self.state.route = session.route

    def _notify(self, message: str) -> None:
        logger.info("Notice: %s", message)
        self.state.notices.append(message)
