import os
import unittest

from mapnav.config import MapConfig
from mapnav.indoor import (
    IndoorOverlay,
    available_floors,
    feature_levels,
    filter_by_floor,
    load_indoor_dataset,
    normalize_level,
)
from mapnav.models import Coordinate


def feature(name, level):
    return {
        "type": "Feature",
        "properties": {"name": name, "level": level},
        "geometry": {"type": "Point", "coordinates": [0, 0]},
    }


class TestFloorFilter(unittest.TestCase):
    def test_filter_keeps_matching_features_in_order(self):
        features = [feature("a", "1"), feature("b", "2"), feature("c", "1")]
        result = filter_by_floor(features, 1)
        self.assertEqual(result["type"], "FeatureCollection")
        self.assertEqual([f["properties"]["name"] for f in result["features"]], ["a", "c"])

    def test_levels_compare_as_integers(self):
        features = [feature("a", "01"), feature("b", 1), feature("c", "1.0"), feature("d", "10")]
        names = [f["properties"]["name"] for f in filter_by_floor(features, "1")["features"]]
        self.assertEqual(names, ["a", "b", "c"])

    def test_multi_level_feature(self):
        stairs = feature("stairs", "1;2")
        self.assertEqual(feature_levels(stairs), [1, 2])
        self.assertEqual(len(filter_by_floor([stairs], 2)["features"]), 1)

    def test_no_match_or_missing_input(self):
        self.assertEqual(filter_by_floor([feature("a", "1")], 3)["features"], [])
        self.assertEqual(filter_by_floor(None, 1)["features"], [])
        self.assertEqual(filter_by_floor([{"type": "Feature"}], 1)["features"], [])

    def test_normalize_level(self):
        self.assertEqual(normalize_level("-1"), -1)
        self.assertIsNone(normalize_level("ground"))
        self.assertIsNone(normalize_level("1.5"))
        self.assertIsNone(normalize_level(None))

    def test_available_floors(self):
        features = [feature("a", "2"), feature("b", "1;2"), feature("c", "x")]
        self.assertEqual(available_floors(features), [1, 2])


class TestIndoorOverlay(unittest.TestCase):
    def setUp(self):
        self.config = MapConfig()

    def test_bundled_dataset_loads(self):
        self.assertTrue(os.path.exists(self.config.indoor_dataset_path))
        features = load_indoor_dataset(self.config.indoor_dataset_path)
        self.assertGreater(len(features), 0)
        self.assertIn(1, available_floors(features))

    def test_visibility_depends_on_zoom_and_proximity(self):
        overlay = IndoorOverlay.from_config(self.config, features=[feature("a", "1")])
        anchor = Coordinate(*self.config.campus_anchor)
        self.assertTrue(overlay.is_visible(anchor, 18))
        self.assertFalse(overlay.is_visible(anchor, 15))
        far_away = Coordinate(anchor.latitude + 0.01, anchor.longitude)
        self.assertFalse(overlay.is_visible(far_away, 19))

    def test_with_floor_returns_new_overlay(self):
        overlay = IndoorOverlay.from_config(self.config, features=[feature("a", "1"), feature("b", "2")])
        upstairs = overlay.with_floor("2")
        self.assertEqual(overlay.current_floor, 1)
        self.assertEqual([f["properties"]["name"] for f in upstairs.visible_features()["features"]], ["b"])
        with self.assertRaises(ValueError):
            overlay.with_floor("roof")


if __name__ == "__main__":
    unittest.main()
