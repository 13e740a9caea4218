"""
Geocoding client for MapNav.

This module provides a thin wrapper around the `geopy` library to
turn free-form place names into coordinates and tapped map points
into human-readable labels. It uses OpenStreetMap's Nominatim service
via geopy's API.

Example usage:

    from mapnav.geocode import Geocoder
    place = Geocoder().search("Hermitage Museum")
    print(place.label, place.coordinate)

``search`` raises :class:`~mapnav.exceptions.NotFound` when nothing
matches and :class:`~mapnav.exceptions.ServiceError` when Nominatim
cannot be reached. ``suggest`` is best effort and never raises.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from mapnav.config import MapConfig
from mapnav.exceptions import NotFound, ServiceError
from mapnav.models import Coordinate, PlaceResult

logger = logging.getLogger(__name__)

PLACEHOLDER_LABEL = "Dropped pin"

# Structured address keys tried, in order, for the locality part of a label
_LOCALITY_KEYS = ("city", "town", "village", "suburb", "county")


def _to_place(location: Any) -> PlaceResult:
    """Convert a geopy ``Location`` into a ``PlaceResult``."""
    raw = getattr(location, "raw", None) or {}
    place_id = raw.get("place_id")
    return PlaceResult(
        coordinate=Coordinate(float(location.latitude), float(location.longitude)),
        label=location.address or PLACEHOLDER_LABEL,
        place_id=str(place_id) if place_id is not None else None,
    )


def format_address_label(address: Any) -> Optional[str]:
    """Build a short label such as ``"Nevsky Prospect 28, Saint Petersburg"``.

    Args:
        address: The ``address`` block of a Nominatim reverse result.

    Returns:
        The label, or ``None`` when the block has no road or locality.
    """
    if not isinstance(address, dict):
        return None
    street = address.get("road") or address.get("pedestrian") or address.get("footway")
    if street and address.get("house_number"):
        street = f"{street} {address['house_number']}"
    locality = next((address[k] for k in _LOCALITY_KEYS if address.get(k)), None)
    parts = [p for p in (street, locality) if p]
    return ", ".join(parts) if parts else None


class Geocoder:
    """Forward search, autocomplete and reverse lookup against Nominatim.

    Args:
        config: Optional MapConfig; defaults to MapConfig().
        geocoder: A geopy geocoder to use instead of building a
            ``Nominatim`` instance (tests pass a mock here).
    """

    def __init__(self, config: Optional[MapConfig] = None, geocoder: Any = None) -> None:
        self.config = config or MapConfig()
        if geocoder is None:
            # Nominatim's usage policy requires a custom user agent.
            geocoder = Nominatim(
                user_agent=self.config.user_agent,
                domain=self.config.nominatim_domain,
                timeout=self.config.request_timeout_s,
            )
        self._geocoder = geocoder

    def search(self, query: str) -> PlaceResult:
        """Resolve ``query`` to its single best match.

        Args:
            query: Free-form place name; must not be blank.

        Returns:
            The best matching place.

        Raises:
            ValueError: If ``query`` is blank.
            NotFound: If Nominatim has no match.
            ServiceError: If the request fails.
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        try:
            location = self._geocoder.geocode(query.strip(), exactly_one=True)
        except (GeopyError, ValueError) as exc:
            logger.warning("Search for %r failed: %s", query, exc)
            raise ServiceError(f"Geocoding request failed: {exc}") from exc
        if location is None:
            logger.info("No match for %r", query)
            raise NotFound(f"No place found for {query!r}")
        place = _to_place(location)
        logger.debug("Search %r -> %s", query, place)
        return place

    def suggest(self, query: str) -> List[PlaceResult]:
        """Return up to ``suggestion_limit`` candidates in Nominatim's ranking.

        Short queries (fewer than ``suggestion_min_length`` characters)
        return an empty list without touching the network. Errors are
        logged and swallowed since suggestions are best effort.
        """
        if len(query) < self.config.suggestion_min_length:
            return []
        try:
            locations = self._geocoder.geocode(
                query,
                exactly_one=False,
                limit=self.config.suggestion_limit,
            )
            if not locations:
                return []
            return [_to_place(loc) for loc in locations[: self.config.suggestion_limit]]
        except (GeopyError, ValueError) as exc:
            logger.info("Suggestions for %r unavailable: %s", query, exc)
            return []

    def reverse_lookup(self, coordinate: Coordinate) -> PlaceResult:
        """Find a label for ``coordinate``.

        The returned place always sits at ``coordinate`` itself, not at
        the address Nominatim snapped to, so a tapped pin stays where
        the user put it.

        Raises:
            ServiceError: If the request fails.
        """
        try:
            location = self._geocoder.reverse(
                (coordinate.latitude, coordinate.longitude),
                exactly_one=True,
                addressdetails=True,
            )
        except (GeopyError, ValueError) as exc:
            logger.warning("Reverse lookup at %s failed: %s", coordinate, exc)
            raise ServiceError(f"Reverse geocoding request failed: {exc}") from exc

        if location is None:
            return PlaceResult(coordinate=coordinate, label=PLACEHOLDER_LABEL)

        raw = getattr(location, "raw", None) or {}
        label = format_address_label(raw.get("address")) or location.address or PLACEHOLDER_LABEL
        place_id = raw.get("place_id")
        return PlaceResult(
            coordinate=coordinate,
            label=label,
            place_id=str(place_id) if place_id is not None else None,
        )
