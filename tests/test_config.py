import unittest

from mapnav.config import MapConfig


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        config = MapConfig()
        self.assertEqual(config.advance_threshold_m, 10.0)
        self.assertGreater(config.reroute_threshold_m, config.advance_threshold_m)
        self.assertIsNone(config.request_timeout_s)
        self.assertEqual(config.suggestion_limit, 5)

    def test_reroute_threshold_must_exceed_advance(self):
        with self.assertRaises(ValueError):
            MapConfig(advance_threshold_m=10.0, reroute_threshold_m=5.0)

    def test_from_secrets(self):
        config = MapConfig.from_secrets({
            "OSRM_BASE_URL": "http://localhost:5000",
            "reroute_threshold_m": "80",
            "request_timeout_s": "15",
            "campus_anchor": ["55.75", "37.61"],
            "indoor_min_zoom": "17",
            "unrelated": "ignored",
        })
        self.assertEqual(config.osrm_base_url, "http://localhost:5000")
        self.assertEqual(config.reroute_threshold_m, 80.0)
        self.assertEqual(config.request_timeout_s, 15.0)
        self.assertEqual(config.campus_anchor, (55.75, 37.61))
        self.assertEqual(config.indoor_min_zoom, 17)


if __name__ == "__main__":
    unittest.main()
