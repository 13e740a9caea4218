"""
Configuration for MapNav.

All tuneable constants live on a single ``MapConfig`` dataclass. Build
one at startup and pass it to every component that needs settings.
In the Streamlit app the defaults can be overridden from
``st.secrets`` via :meth:`MapConfig.from_secrets`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional, Tuple

DEFAULT_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
DEFAULT_TILE_ATTRIBUTION = "&copy; OpenStreetMap contributors"

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


@dataclass
class MapConfig:
    # Geocoding (Nominatim)
    nominatim_domain: str = "nominatim.openstreetmap.org"
    user_agent: str = "mapnav_app"
    suggestion_min_length: int = 3        # queries shorter than this never hit the network
    suggestion_limit: int = 5

    # Routing (OSRM)
    osrm_base_url: str = "https://router.project-osrm.org"
    routing_profile: str = "driving"

    # None disables the timeout, a hung request blocks only its own call
    request_timeout_s: Optional[float] = None

    # Navigation
    advance_threshold_m: float = 10.0     # closer than this to the maneuver → next step
    reroute_threshold_m: float = 50.0     # farther than this from the maneuver → new route

    # Map widget
    tile_url_template: str = DEFAULT_TILE_URL
    tile_attribution: str = DEFAULT_TILE_ATTRIBUTION
    default_center: Tuple[float, float] = (59.93863, 30.31413)
    default_zoom: int = 15
    min_zoom: int = 5
    max_zoom: int = 19

    # Indoor overlay
    indoor_dataset_path: str = field(default_factory=lambda: os.path.join(DATA_DIR, "indoor_campus.geojson"))
    campus_anchor: Tuple[float, float] = (59.93863, 30.31413)
    indoor_min_zoom: int = 18
    indoor_radius_m: float = 150.0
    default_floor: int = 1

    # Logging
    log_dir: str = "logs"

    def __post_init__(self) -> None:
        if self.advance_threshold_m <= 0:
            raise ValueError("advance_threshold_m must be positive")
        if self.reroute_threshold_m <= self.advance_threshold_m:
            raise ValueError(
                "reroute_threshold_m must be greater than advance_threshold_m "
                f"({self.reroute_threshold_m} <= {self.advance_threshold_m})"
            )
        if self.suggestion_min_length < 1:
            raise ValueError("suggestion_min_length must be at least 1")

    @classmethod
    def from_secrets(cls, secrets: Mapping[str, Any]) -> "MapConfig":
        """Create a config, overriding defaults with matching keys of ``secrets``.

        Keys are matched case-insensitively against field names, so a
        ``secrets.toml`` entry ``OSRM_BASE_URL = "..."`` sets
        ``osrm_base_url``. Values are converted to the type of the
        field's default; unknown keys are ignored.

        Args:
            secrets: Any mapping, typically ``st.secrets``.

        Returns:
            A new ``MapConfig``.
        """
        defaults = cls()
        overrides = {}
        lowered = {str(k).lower(): v for k, v in secrets.items()}
        for f in fields(cls):
            if f.name not in lowered:
                continue
            value = lowered[f.name]
            current = getattr(defaults, f.name)
            if isinstance(current, tuple):
                value = tuple(float(v) for v in value)
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, float) or f.name == "request_timeout_s":
                value = float(value) if value not in (None, "") else None
            else:
                value = str(value)
            overrides[f.name] = value
        return cls(**overrides)
