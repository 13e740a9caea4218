"""
Map visualisation utilities for MapNav.

This module builds the interactive map with the Folium library: the
basemap tiles from the configured URL template, a marker for the
selected destination, the user's position, the route as a polyline,
the maneuver currently being narrated, and the indoor floor plan as a
GeoJSON layer. The map is embedded in the Streamlit page via
``streamlit_folium``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import folium

from mapnav.config import MapConfig
from mapnav.geo import bounding_box
from mapnav.models import Coordinate, PlaceResult, Route, RouteStep

ROUTE_COLOR = "#ff0000"


def _floor_style(_feature: Dict[str, Any]) -> Dict[str, Any]:
    return {"color": "#555555", "weight": 1, "fillColor": "#f4d03f", "fillOpacity": 0.5}


def create_navigation_map(
    config: MapConfig,
    center: Optional[Coordinate] = None,
    zoom: Optional[int] = None,
    marker: Optional[PlaceResult] = None,
    position: Optional[Coordinate] = None,
    route: Optional[Route] = None,
    current_step: Optional[RouteStep] = None,
    floor_plan: Optional[Dict[str, Any]] = None,
) -> folium.Map:
    """Create a Folium map with everything the page needs to show.

    Args:
        config: Tile template, attribution and zoom limits.
        center: Map centre; defaults to the user position, then the
            configured default centre.
        zoom: Initial zoom; defaults to ``config.default_zoom``.
        marker: Destination marker.
        position: The user's current position.
        route: Route to draw; the map is fitted to it.
        current_step: Maneuver being narrated, highlighted on the map.
        floor_plan: GeoJSON FeatureCollection for the indoor overlay.

    Returns:
        A Folium Map object ready for display.
    """
    if center is None:
        center = position or Coordinate(*config.default_center)
    m = folium.Map(
        location=center.to_lat_lon(),
        zoom_start=zoom or config.default_zoom,
        min_zoom=config.min_zoom,
        max_zoom=config.max_zoom,
        tiles=None,
    )
    folium.TileLayer(
        tiles=config.tile_url_template,
        attr=config.tile_attribution,
        max_zoom=config.max_zoom,
        name="Basemap",
    ).add_to(m)

    if floor_plan and floor_plan.get("features"):
        folium.GeoJson(floor_plan, name="Floor plan", style_function=_floor_style).add_to(m)

    if route is not None and route.polyline:
        folium.PolyLine(
            [c.to_lat_lon() for c in route.polyline],
            color=ROUTE_COLOR,
            weight=5,
        ).add_to(m)
        corners = bounding_box(route.polyline)
        if corners is not None:
            south_west, north_east = corners
            m.fit_bounds([south_west.to_lat_lon(), north_east.to_lat_lon()], padding=(50, 50))

    if current_step is not None:
        folium.CircleMarker(
            location=current_step.maneuver_location.to_lat_lon(),
            radius=7,
            color="#ff8800",
            fill=True,
            fill_opacity=0.9,
            tooltip=current_step.directive_text,
        ).add_to(m)

    if marker is not None:
        folium.Marker(
            location=marker.coordinate.to_lat_lon(),
            popup=folium.Popup(marker.label, parse_html=True),
            tooltip=marker.label,
        ).add_to(m)

    if position is not None:
        folium.CircleMarker(
            location=position.to_lat_lon(),
            radius=8,
            color="#007bff",
            fill=True,
            fill_opacity=1.0,
            tooltip="You are here",
        ).add_to(m)
    return m
