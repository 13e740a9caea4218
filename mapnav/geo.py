"""
Geographic helpers for MapNav.

Only closed-form math lives here: the haversine great-circle distance
used for every proximity check in the app (step advancement, reroute
detection, indoor overlay activation) and a bounding box helper used
to fit the map to a route.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple

from mapnav.models import Coordinate

EARTH_RADIUS_KM = 6371.0


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Compute the great-circle distance between two coordinates in metres."""
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c * 1000.0


def bounding_box(coordinates: Iterable[Coordinate]) -> Optional[Tuple[Coordinate, Coordinate]]:
    """Return the (south-west, north-east) corners enclosing ``coordinates``.

    Args:
        coordinates: Any iterable of coordinates.

    Returns:
        A pair of corner coordinates, or ``None`` when the input is empty.
    """
    points = list(coordinates)
    if not points:
        return None
    lats = [p.latitude for p in points]
    lons = [p.longitude for p in points]
    return Coordinate(min(lats), min(lons)), Coordinate(max(lats), max(lons))
