"""
Indoor floor-plan overlay for MapNav.

The campus floor plan ships with the package as a static GeoJSON
FeatureCollection (``mapnav/data/indoor_campus.geojson``). Each feature
carries a ``level`` property naming the floor it belongs to, using the
OpenStreetMap indoor convention: a single level (``"1"``), or several
levels separated by semicolons (``"1;2"``) for stairs and lifts.

The dataset is loaded once at startup and never mutated; the overlay
only ever shows a per-floor filtered view of it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from mapnav.config import MapConfig
from mapnav.geo import distance_meters
from mapnav.models import Coordinate

logger = logging.getLogger(__name__)

LEVEL_PROPERTY = "level"


def normalize_level(value: Any) -> Optional[int]:
    """Convert a level tag to an integer, so ``"01"``, ``"1"``, ``1.0`` and ``1`` agree.

    Returns ``None`` for anything that is not a whole number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


def feature_levels(feature: Dict[str, Any]) -> List[int]:
    """Return every floor a feature is tagged with."""
    raw = (feature.get("properties") or {}).get(LEVEL_PROPERTY)
    if raw is None:
        return []
    parts = raw.split(";") if isinstance(raw, str) else [raw]
    levels = [normalize_level(p) for p in parts]
    return [lvl for lvl in levels if lvl is not None]


def filter_by_floor(features: Optional[Iterable[Dict[str, Any]]], floor: Any) -> Dict[str, Any]:
    """Select the features on ``floor``.

    Args:
        features: GeoJSON feature dicts, or ``None``.
        floor: Requested level, as an int or a level string.

    Returns:
        A GeoJSON FeatureCollection with the matching features in their
        original order. Empty when nothing matches or the input is absent.
    """
    wanted = normalize_level(floor)
    if features is None or wanted is None:
        return {"type": "FeatureCollection", "features": []}
    matching = [f for f in features if wanted in feature_levels(f)]
    return {"type": "FeatureCollection", "features": matching}


def available_floors(features: Iterable[Dict[str, Any]]) -> List[int]:
    """Sorted distinct floors present in ``features``."""
    floors = set()
    for feature in features:
        floors.update(feature_levels(feature))
    return sorted(floors)


def load_indoor_dataset(path: str) -> Tuple[Dict[str, Any], ...]:
    """Read the static floor-plan dataset.

    Accepts either a FeatureCollection or a bare list of features.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not a GeoJSON feature collection.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        features = data.get("features") or []
    elif isinstance(data, list):
        features = data
    else:
        raise ValueError(f"{path} is not a GeoJSON FeatureCollection")
    logger.info("Loaded %d indoor features from %s", len(features), path)
    return tuple(features)


@dataclass(frozen=True)
class IndoorOverlay:
    """Floor-scoped view over the static indoor dataset."""

    features: Tuple[Dict[str, Any], ...]
    current_floor: int
    anchor: Coordinate
    min_zoom: int = 18
    radius_m: float = 150.0

    @classmethod
    def from_config(cls, config: MapConfig, features: Optional[Iterable[Dict[str, Any]]] = None) -> "IndoorOverlay":
        """Build the overlay, loading the dataset from ``config`` unless ``features`` is given."""
        if features is None:
            features = load_indoor_dataset(config.indoor_dataset_path)
        return cls(
            features=tuple(features),
            current_floor=config.default_floor,
            anchor=Coordinate(*config.campus_anchor),
            min_zoom=config.indoor_min_zoom,
            radius_m=config.indoor_radius_m,
        )

    @property
    def floors(self) -> List[int]:
        return available_floors(self.features)

    def is_visible(self, center: Coordinate, zoom: float) -> bool:
        """True when the map is zoomed in close enough, near enough to the campus."""
        return zoom >= self.min_zoom and distance_meters(center, self.anchor) <= self.radius_m

    def visible_features(self) -> Dict[str, Any]:
        return filter_by_floor(self.features, self.current_floor)

    def with_floor(self, floor: Any) -> "IndoorOverlay":
        level = normalize_level(floor)
        if level is None:
            raise ValueError(f"Invalid floor: {floor!r}")
        return replace(self, current_floor=level)
