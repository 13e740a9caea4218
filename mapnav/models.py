"""
Shared data structures for MapNav.

Every value here is immutable once produced. Routes in particular are
replaced wholesale when a new one is built and are never edited in
place, so a ``Route`` can be handed to the map renderer and to the
navigator at the same time without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Coordinate:
    """Immutable geographic coordinate in decimal degrees."""

    latitude: float
    longitude: float

    @classmethod
    def from_lon_lat(cls, pair: Sequence[float]) -> "Coordinate":
        """Build a coordinate from a GeoJSON / OSRM ``[lon, lat]`` pair."""
        lon, lat = pair[0], pair[1]
        return cls(latitude=float(lat), longitude=float(lon))

    def to_lat_lon(self) -> List[float]:
        """Return ``[lat, lon]``, the order folium expects."""
        return [self.latitude, self.longitude]


@dataclass(frozen=True)
class PlaceResult:
    """A geocoded place: where it is and what to call it."""

    coordinate: Coordinate
    label: str
    place_id: Optional[str] = None


@dataclass(frozen=True)
class RouteStep:
    """A single maneuver of a route, anchored at a coordinate."""

    maneuver_location: Coordinate
    directive_text: str
    modifier: Optional[str] = None       # "left" | "slight right" | "straight" | ...
    distance_m: float = 0.0
    duration_s: float = 0.0
    road_name: Optional[str] = None


@dataclass(frozen=True)
class Route:
    """Road geometry plus the ordered maneuver list of one itinerary."""

    polyline: Tuple[Coordinate, ...]
    steps: Tuple[RouteStep, ...]
    distance_m: float = 0.0
    duration_s: float = 0.0

    @property
    def final_location(self) -> Optional[Coordinate]:
        """Last point of the itinerary, or ``None`` for an empty route."""
        if self.steps:
            return self.steps[-1].maneuver_location
        if self.polyline:
            return self.polyline[-1]
        return None
