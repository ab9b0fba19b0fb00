"""
Report Generator Module
Writes a recomputed RollupResult to an Excel workbook, one tab per table.
"""

import pandas as pd
from pathlib import Path
from typing import Dict, List
from datetime import datetime
import warnings

warnings.filterwarnings('ignore', category=UserWarning, module='openpyxl')

from .config import Config, default_config
from .rollup_engine import RollupResult
from .slug_resolver import slugify


class ReportGenerator:
    """Generate Excel reports from rollup results."""

    def __init__(self, config: Config = None):
        self.config = config or default_config
        self.output_path = Path(self.config.output_path)

    def generate_rollup_report(
        self,
        result: RollupResult,
        filename: str = None
    ) -> str:
        """
        Generate the dashboard rollup workbook.

        Args:
            result: Output from RollupEngine.recompute()
            filename: Optional output filename (auto-generated if not provided)

        Returns:
            Path to generated Excel file
        """
        if result is None:
            raise ValueError("No rollup result to report")

        self.output_path.mkdir(parents=True, exist_ok=True)

        if not filename:
            scope_name = slugify(result.display_name) or "overall"
            date_str = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{scope_name}_Rollups_{result.year}_{date_str}.xlsx"

        output_file = self.output_path / filename

        with pd.ExcelWriter(output_file, engine='openpyxl') as writer:
            self._write_summary_tab(writer, result)
            for tab_name, frame in result.to_frames().items():
                # Excel caps sheet names at 31 characters
                frame.to_excel(writer, sheet_name=tab_name[:31], index=False)
            self._write_parameters_tab(writer, result)

        return str(output_file)

    def _write_summary_tab(self, writer: pd.ExcelWriter, result: RollupResult):
        """Write Summary tab."""
        rows = []

        rows.append(["FULFILLMENT ROLLUP REPORT", ""])
        rows.append(["Generated", datetime.now().strftime("%Y-%m-%d %H:%M")])
        rows.append(["Scope", result.display_name])
        rows.append(["Reporting Year", result.year])
        rows.append(["As Of", result.today.isoformat()])
        rows.append(["Dealers In Scope", len(result.dealer_slugs)])
        rows.append(["", ""])

        pacing = result.pacing
        rows.append(["PACING", ""])
        rows.append(["Annual Target", round(pacing.annual_target, 1) if pacing.annual_target else "No target"])
        rows.append(["Forecast Orders", pacing.forecast_year.actual])
        rows.append(["  vs Target", pacing.forecast_year.delta.label])
        rows.append(["Orders Received", pacing.year_to_date.actual])
        rows.append(["YTD Target", round(pacing.year_to_date.target, 1)])
        rows.append(["  vs YTD Target", pacing.year_to_date.delta.label])
        rows.append(["Avg Received / Week", round(pacing.weekly_pace.actual, 1)])
        rows.append(["Target / Week", round(pacing.weekly_pace.target, 1)])
        rows.append(["", ""])

        slots = result.slots
        rows.append(["SLOTS", ""])
        rows.append(["Unsigned Orders", slots.unsigned_count])
        rows.append(["Red Slots", slots.red_slot_count])
        rows.append(["Yard Stock", slots.yard_stock_level])

        df = pd.DataFrame(rows, columns=["Metric", "Value"])
        df.to_excel(writer, sheet_name="Summary", index=False)

    def _write_parameters_tab(self, writer: pd.ExcelWriter, result: RollupResult):
        """Write the configuration used for this run."""
        params: List[Dict] = [
            {"Parameter": "Forecast Lag (days)", "Value": self.config.forecast_lag_days},
            {"Parameter": "Inventory Lag (days)", "Value": self.config.inventory_lag_days},
            {"Parameter": "Planning Months", "Value": self.config.planning_months},
            {"Parameter": "Trend Weeks", "Value": self.config.trend_weeks},
            {"Parameter": "Recent Window (months)", "Value": self.config.recent_window_months},
            {"Parameter": "Urgency Threshold (weeks)", "Value": self.config.urgency_weeks},
            {"Parameter": "Allowed Ranges", "Value": ", ".join(self.config.allowed_ranges)},
            {"Parameter": "Dealers", "Value": ", ".join(result.dealer_slugs)},
        ]
        pd.DataFrame(params).to_excel(writer, sheet_name="Parameters", index=False)
