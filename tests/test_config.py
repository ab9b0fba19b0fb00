import shutil
import tempfile
import unittest
from pathlib import Path

from fulfillment_engine.config import Config, config_from_yaml


class TestConfigFromYaml(unittest.TestCase):
    def setUp(self):
        self.folder = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.folder, ignore_errors=True)

    def test_missing_file_uses_defaults(self):
        config = config_from_yaml(self.folder / "settings.yaml")
        self.assertEqual(config.forecast_lag_days, 40)
        self.assertEqual(config.inventory_lag_days, 30)
        self.assertIn("SRC", config.allowed_ranges)

    def test_sections_override_defaults(self):
        settings = self.folder / "settings.yaml"
        settings.write_text(
            "paths:\n"
            "  snapshots: snaps\n"
            "reporting:\n"
            "  target_year: 2027\n"
            "lag_days:\n"
            "  forecast: 30\n"
            "model_ranges:\n"
            "  allowed: [SRC, NGB]\n"
            "groups:\n"
            "  Coastal:\n"
            "    - Geelong\n",
            encoding="utf-8",
        )
        config = config_from_yaml(settings)

        self.assertEqual(config.snapshot_path, self.folder.resolve() / "snaps")
        self.assertEqual(config.target_year, 2027)
        self.assertEqual(config.forecast_lag_days, 30)
        self.assertEqual(config.inventory_lag_days, 30)
        self.assertEqual(config.allowed_ranges, ["SRC", "NGB"])
        self.assertEqual(config.group_rosters, {"Coastal": ["Geelong"]})

    def test_with_overrides(self):
        base = Config()
        changed = base.with_overrides(target_year=2025, forecast_lag_days=0)
        self.assertEqual(changed.target_year, 2025)
        self.assertEqual(changed.forecast_lag_days, 0)
        self.assertEqual(base.forecast_lag_days, 40)

    def test_overrides_do_not_share_lists(self):
        base = Config()
        changed = base.with_overrides(target_year=2027)
        changed.allowed_ranges.append("XYZ")
        changed.group_rosters["Green RV"].append("Green RV - Kedron")
        self.assertNotIn("XYZ", base.allowed_ranges)
        self.assertEqual(len(base.group_rosters["Green RV"]), 2)


if __name__ == "__main__":
    unittest.main()
