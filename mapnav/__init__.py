"""
MapNav package initialization.

This package provides the core functionality for the MapNav map and
turn-by-turn navigation application: place search, routing, live
position tracking, and an indoor floor-plan overlay for the campus.

Modules:
    models        – Immutable value types (coordinates, places, routes).
    geo           – Haversine distance and bounding boxes.
    geocode       – Place search, autocomplete and reverse lookup via Nominatim.
    routing       – Route building via OSRM.
    indoor        – Floor filtering of the static indoor dataset.
    positions     – Live position stream and subscription handles.
    navigation    – Navigation state machine.
    controller    – Page state and user actions.
    visualisation – Folium based map creation utilities.
    app           – Streamlit user interface.
"""

__all__ = [
    "models",
    "geo",
    "geocode",
    "routing",
    "indoor",
    "positions",
    "navigation",
    "controller",
    "visualisation",
    "app",
]
