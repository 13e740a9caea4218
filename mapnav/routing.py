"""
Routing client for MapNav.

This module wraps network calls to OSRM (Open Source Routing Machine)
to produce a drivable route between two coordinates: the full road
geometry for drawing and the ordered list of maneuvers for turn-by-turn
narration. Routing itself is entirely OSRM's job; this module only
builds the request and parses the reply.

Example usage:

    from mapnav.models import Coordinate
    from mapnav.routing import RoutingClient

    route = RoutingClient().build_route(
        Coordinate(59.9386, 30.3141), Coordinate(59.9343, 30.3351)
    )
    for step in route.steps:
        print(step.directive_text)

The public demo server at ``router.project-osrm.org`` is subject to
usage limits. Point ``MapConfig.osrm_base_url`` at your own OSRM
server in production.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from mapnav.config import MapConfig
from mapnav.exceptions import NotFound, ServiceError
from mapnav.models import Coordinate, Route, RouteStep

logger = logging.getLogger(__name__)

# OSRM response codes meaning "valid request, nothing to return"
_NO_RESULT_CODES = frozenset({"NoRoute", "NoSegment"})

_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def _ordinal(n: int) -> str:
    # 11th, 12th, 13th, 111th ... are the exceptions to the last-digit rule
    if n % 100 in (11, 12, 13):
        return f"{n}th"
    return f"{n}{_SUFFIXES.get(n % 10, 'th')}"


def _number(value: Any) -> float:
    """OSRM may send null for distance or duration; treat it as zero."""
    return 0.0 if value is None else float(value)


def format_directive(step: Dict[str, Any]) -> str:
    """Turn one OSRM step into a short English directive.

    Args:
        step: A step object from ``routes[].legs[].steps[]``.

    Returns:
        Text such as ``"Turn left onto Nevsky Prospect"``.
    """
    maneuver = step.get("maneuver") or {}
    kind = maneuver.get("type", "")
    modifier = maneuver.get("modifier")
    name = step.get("name") or ""
    onto = f" onto {name}" if name else ""

    if kind == "depart":
        return f"Head out{onto}" if name else "Depart"
    if kind == "arrive":
        if modifier in ("left", "right"):
            return f"Arrive at your destination on the {modifier}"
        return "Arrive at your destination"
    if kind in ("roundabout", "rotary"):
        exit_number = maneuver.get("exit")
        if exit_number:
            return f"At the roundabout take the {_ordinal(int(exit_number))} exit{onto}"
        return f"Enter the roundabout{onto}"
    if modifier == "uturn":
        return f"Make a U-turn{onto}"
    if kind in ("continue", "new name") or modifier == "straight":
        return f"Continue straight{onto}" if modifier in (None, "straight") else f"Continue {modifier}{onto}"
    if kind in ("merge", "fork", "on ramp", "off ramp"):
        verb = {"merge": "Merge", "fork": "Keep", "on ramp": "Take the ramp", "off ramp": "Take the exit"}[kind]
        return f"{verb} {modifier}{onto}" if modifier else f"{verb}{onto}"
    if modifier:
        return f"Turn {modifier}{onto}"
    return f"Continue{onto}" if name else "Continue"


def _parse_step(step: Dict[str, Any]) -> RouteStep:
    maneuver = step["maneuver"]
    return RouteStep(
        maneuver_location=Coordinate.from_lon_lat(maneuver["location"]),
        directive_text=format_directive(step),
        modifier=maneuver.get("modifier"),
        distance_m=_number(step.get("distance")),
        duration_s=_number(step.get("duration")),
        road_name=step.get("name") or None,
    )


def parse_route(data: Dict[str, Any]) -> Route:
    """Build a ``Route`` from a decoded OSRM ``route`` response.

    Only the first (best) route is used. Steps of every leg are kept in
    itinerary order.

    Raises:
        NotFound: If the response holds no route.
        ServiceError: If the response is malformed.
    """
    code = data.get("code")
    routes = data.get("routes") or []
    if code in _NO_RESULT_CODES or (code == "Ok" and not routes):
        raise NotFound(data.get("message") or "No route found")
    if code not in (None, "Ok"):
        raise ServiceError(f"OSRM error {code}: {data.get('message', '')}".strip())
    if not routes:
        raise NotFound("No route found")

    try:
        best = routes[0]
        polyline = tuple(Coordinate.from_lon_lat(c) for c in best["geometry"]["coordinates"])
        steps: List[RouteStep] = []
        for leg in best.get("legs", []):
            steps.extend(_parse_step(s) for s in leg.get("steps", []))
        route = Route(
            polyline=polyline,
            steps=tuple(steps),
            distance_m=_number(best.get("distance")),
            duration_s=_number(best.get("duration")),
        )
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
        raise ServiceError(f"Malformed OSRM route: {exc}") from exc
    return route


class RoutingClient:
    """Request driving routes from an OSRM server.

    Args:
        config: Optional MapConfig; defaults to MapConfig().
        session: A ``requests.Session`` to reuse connections (tests pass
            a mock here).
    """

    def __init__(self, config: Optional[MapConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or MapConfig()
        self._session = session or requests.Session()

    def route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        # OSRM expects lon,lat order and a semicolon separated list
        locs = f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        base = self.config.osrm_base_url.rstrip("/")
        return f"{base}/route/v1/{self.config.routing_profile}/{locs}"

    def build_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """Fetch the best route from ``origin`` to ``destination``.

        Args:
            origin: Start of the route, usually the user's position.
            destination: Selected destination.

        Returns:
            The route with full geometry and step-level maneuvers.

        Raises:
            NotFound: If OSRM finds no route.
            ServiceError: On transport failure or a malformed response.
        """
        url = self.route_url(origin, destination)
        params = {"overview": "full", "geometries": "geojson", "steps": "true"}
        logger.info("Requesting route %s -> %s", origin, destination)
        try:
            resp = self._session.get(url, params=params, timeout=self.config.request_timeout_s)
        except requests.RequestException as exc:
            logger.warning("Routing request failed: %s", exc)
            raise ServiceError(f"Routing request failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise ServiceError(f"OSRM returned HTTP {resp.status_code} with an unreadable body") from exc
        if not isinstance(data, dict):
            raise ServiceError("OSRM returned an unexpected payload")
        # OSRM answers NoRoute with HTTP 400, so inspect the body before the status
        if resp.status_code != 200 and data.get("code") not in _NO_RESULT_CODES:
            raise ServiceError(f"OSRM returned HTTP {resp.status_code}: {data.get('message', '')}".strip())

        route = parse_route(data)
        logger.info("Route ready - %d steps, %.0f m", len(route.steps), route.distance_m)
        return route
