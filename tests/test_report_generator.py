import shutil
import tempfile
import unittest
from datetime import date
from pathlib import Path

import pandas as pd

from fulfillment_engine.config import Config
from fulfillment_engine.data_loader import build_snapshots
from fulfillment_engine.report_generator import ReportGenerator
from fulfillment_engine.rollup_engine import RollupEngine


class TestReportGenerator(unittest.TestCase):
    def setUp(self):
        self.folder = Path(tempfile.mkdtemp())
        self.config = Config(output_path=self.folder / "out")

    def tearDown(self):
        shutil.rmtree(self.folder, ignore_errors=True)

    def test_writes_one_tab_per_table(self):
        snapshots = build_snapshots(
            orders=[{
                "Chassis": "SRC1",
                "Dealer": "Frankston",
                "Customer": "Frankston Stock",
                "Model": "SRC19",
                "Forecast Production Date": "15/03/2026",
            }],
            dealers={"frankston": {"name": "Frankston", "initialTarget2026": 52}},
        )
        result = RollupEngine(self.config).recompute(snapshots, year=2026, today=date(2026, 4, 11))

        output_file = ReportGenerator(self.config).generate_rollup_report(result, filename="rollups.xlsx")

        self.assertTrue(Path(output_file).exists())
        sheets = pd.ExcelFile(output_file).sheet_names
        self.assertEqual(sheets[0], "Summary")
        self.assertIn("Forecast Volume", sheets)
        self.assertIn("Top Models Forecast", sheets)
        self.assertEqual(sheets[-1], "Parameters")

    def test_no_result(self):
        with self.assertRaises(ValueError):
            ReportGenerator(self.config).generate_rollup_report(None)


if __name__ == "__main__":
    unittest.main()
