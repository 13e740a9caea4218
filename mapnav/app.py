"""
Streamlit application for MapNav.

This script defines the user interface and wires it to the
``MapController``: search a place (with autocomplete), or tap the map
to pick a destination, build a route from your current position,
then start turn-by-turn navigation and report positions as you move.
Zooming into the campus shows the indoor floor plan with a floor
selector.

To run this app locally, install the package and execute:

    streamlit run mapnav/app.py

Settings can be overridden in ``.streamlit/secrets.toml``, for
example ``OSRM_BASE_URL = "http://localhost:5000"``.
"""

from __future__ import annotations

import logging

import streamlit as st
from streamlit_folium import st_folium

import os
import sys
# Ensure the package can be imported when run as a script
# (`streamlit run mapnav/app.py` only puts mapnav/ itself on sys.path).
parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if parent_dir not in sys.path:
    sys.path.append(parent_dir)

from mapnav.config import MapConfig
from mapnav.controller import MapController
from mapnav.logging_config import setup_logging
from mapnav.models import Coordinate
from mapnav.visualisation import create_navigation_map

logger = logging.getLogger("mapnav.app")


def load_config() -> MapConfig:
    """Build the config from Streamlit secrets, falling back to defaults."""
    try:
        return MapConfig.from_secrets(st.secrets)
    except FileNotFoundError:
        logger.info("No secrets.toml found, using default settings")
        return MapConfig()


def get_controller() -> MapController:
    """Return the controller for this browser session, creating it once."""
    if "controller" not in st.session_state:
        config = load_config()
        if not st.session_state.get("logging_ready"):
            setup_logging(config.log_dir)
            st.session_state["logging_ready"] = True
        st.session_state["controller"] = MapController.from_config(config)
        st.session_state["last_click"] = None
        st.session_state["map_view"] = None
    return st.session_state["controller"]


def render_search(controller: MapController) -> None:
    state = controller.state
    # Widget state can only be set before the widget is created in a run
    if "pending_query" in st.session_state:
        st.session_state["query_input"] = st.session_state.pop("pending_query")
    query = st.text_input("Enter place name", key="query_input")
    if query != state.search_query:
        controller.change_query(query)

    col_search, col_clear = st.columns(2)
    with col_search:
        if st.button("Search", use_container_width=True):
            controller.search()
    with col_clear:
        if st.button("Clear", use_container_width=True):
            controller.clear()
            st.session_state["pending_query"] = ""
            st.rerun()

    for i, place in enumerate(controller.state.suggestions):
        if st.button(place.label, key=f"suggestion_{place.place_id or i}"):
            controller.select_suggestion(place)
            st.session_state["pending_query"] = place.label
            st.rerun()


def render_position_form(controller: MapController) -> None:
    config = controller.config
    current = controller.state.current_position or Coordinate(*config.default_center)
    with st.form("position_form"):
        st.subheader("Current position")
        lat = st.number_input("Latitude", value=float(current.latitude), format="%.6f")
        lon = st.number_input("Longitude", value=float(current.longitude), format="%.6f")
        if st.form_submit_button("Report position"):
            controller.report_position(Coordinate(lat, lon))


def render_navigation(controller: MapController) -> None:
    state = controller.state
    if state.marker is None:
        return
    st.markdown(f"**Destination:** {state.marker.label}")
    if st.button("Build Route"):
        controller.build_route()
    if controller.state.route is not None and not controller.navigating:
        route = controller.state.route
        st.caption(f"{route.distance_m / 1000:.1f} km, {int(route.duration_s // 60)} min")
        if st.button("Start Navigation"):
            controller.start_navigation()
    if controller.navigating:
        if st.button("Stop Navigation", type="primary"):
            controller.stop_navigation()


def render_instruction(controller: MapController) -> None:
    step = controller.current_instruction
    if step is None:
        return
    text = f"Next: {step.directive_text}"
    progress = controller.state.last_progress
    if progress is not None and progress.distance_to_step is not None:
        text += f" ({int(progress.distance_to_step)} m)"
    st.info(text)


def main():
    st.set_page_config(page_title="MapNav", layout="wide")
    st.title("🧭 MapNav")
    controller = get_controller()

    with st.sidebar:
        render_search(controller)
        render_navigation(controller)
        render_position_form(controller)

    view = st.session_state.get("map_view")
    show_indoor = False
    if view and controller.indoor is not None:
        center = Coordinate(view["center"]["lat"], view["center"]["lng"])
        show_indoor = controller.indoor_visible(center, view["zoom"])
        if show_indoor and controller.indoor.floors:
            floors = controller.indoor.floors
            current = controller.indoor.current_floor
            floor = st.selectbox(
                "Floor",
                floors,
                index=floors.index(current) if current in floors else 0,
            )
            controller.set_floor(floor)

    render_instruction(controller)
    for notice in controller.drain_notices():
        st.warning(notice)

    state = controller.state
    fol_map = create_navigation_map(
        controller.config,
        marker=state.marker,
        position=state.current_position,
        route=state.route,
        current_step=controller.current_instruction,
        floor_plan=controller.indoor.visible_features() if show_indoor else None,
    )
    output = st_folium(
        fol_map,
        width=900,
        height=600,
        key="map",
        returned_objects=["last_clicked", "zoom", "center"],
    )

    if output:
        if output.get("center") and output.get("zoom") is not None:
            st.session_state["map_view"] = {"center": output["center"], "zoom": output["zoom"]}
        click = output.get("last_clicked")
        # st_folium keeps returning the last click on every rerun
        if click and click != st.session_state.get("last_click"):
            st.session_state["last_click"] = click
            if controller.tap_map(Coordinate(click["lat"], click["lng"])):
                st.session_state["pending_query"] = controller.state.marker.label
                controller.state.search_query = controller.state.marker.label
            st.rerun()


if __name__ == "__main__":
    main()
