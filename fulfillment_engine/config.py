"""
Configuration for the Fulfillment Analytics Engine.

CONFIGURATION OPTIONS:
----------------------
1. EASY WAY (Recommended): Edit settings.yaml next to your snapshot folder
   - Human-readable YAML format
   - Group rosters, range allow-list and horizons live here
   - Just edit values and save

2. PROGRAMMATIC WAY: Build a Config directly or use with_overrides()
   - For tests, notebooks and automation

Every horizon, lag and threshold used by the rollups is configurable via
either method.
"""

from pathlib import Path
from dataclasses import dataclass, field, replace
from typing import Dict, List
import yaml

# =============================================================================
# DEFAULT PATHS
# =============================================================================

PROJECT_PATH = Path(__file__).resolve().parent.parent
SNAPSHOT_PATH = PROJECT_PATH / "snapshots"
OUTPUT_PATH = PROJECT_PATH / "output"
SETTINGS_FILE = PROJECT_PATH / "settings.yaml"


@dataclass
class Config:
    """Configuration settings for the fulfillment rollups."""

    # =========================================================================
    # FILE PATHS
    # =========================================================================
    snapshot_path: Path = SNAPSHOT_PATH
    output_path: Path = OUTPUT_PATH

    # Snapshot files (relative to snapshot_path, extension picks the reader)
    orders_file: str = "schedule.json"
    campervans_file: str = "campervan_schedule.json"
    yard_stock_file: str = "yard_stock.json"
    pgi_file: str = "pgi_records.json"
    handover_file: str = "handover.json"
    dealers_file: str = "dealer_configs.json"

    # =========================================================================
    # REPORTING PERIOD
    # =========================================================================
    target_year: int = 2026

    # =========================================================================
    # LAG / ARRIVAL SHIFT (days added to a forecast production date)
    # =========================================================================
    forecast_lag_days: int = 40       # Dealer dashboard arrival estimate
    inventory_lag_days: int = 30      # Stock model outlook arrival estimate

    # =========================================================================
    # HORIZONS
    # =========================================================================
    planning_months: int = 8          # Forecast volume / range rollup buckets
    inventory_months: int = 6         # Stock model outlook (starts next month)
    trend_weeks: int = 10             # Weekly order-received trend
    trend_months: int = 6             # Monthly order-received trend
    recent_window_months: int = 3     # Trailing PGI / handover window
    top_models_months: int = 12       # Top-model received window
    pace_window_days: int = 70        # Average-per-week window
    weeks_per_year: int = 52

    # =========================================================================
    # THRESHOLDS
    # =========================================================================
    urgency_weeks: float = 22         # Empty slots closer than this are "red"
    top_n: int = 10

    # Count only orders with a chassis and customer in the forecast series
    forecast_filled_only: bool = False

    # =========================================================================
    # MODEL RANGES
    # =========================================================================
    allowed_ranges: List[str] = field(default_factory=lambda: [
        "SRC", "SRH", "SRL", "SRP", "SRS", "SRT", "SRV", "NGC", "NGB"
    ])

    # =========================================================================
    # NAMED AGGREGATE GROUPS (display names, resolved through slugify)
    # =========================================================================
    group_rosters: Dict[str, List[str]] = field(default_factory=lambda: {
        "Green RV": [
            "Green RV - Forest Glen",
            "Green RV - Slacks Creek",
        ],
        "Snowy River Factory": [
            "Frankston",
            "Launceston",
            "St James",
            "Traralgon",
            "Geelong",
        ],
    })

    # Yard snapshot keys that are placeholders rather than vehicles
    yard_placeholder_keys: List[str] = field(default_factory=lambda: ["dealer-chassis"])

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def get_full_path(self, relative_path: str) -> Path:
        """Get full path for a file relative to snapshot_path."""
        return self.snapshot_path / relative_path

    def with_overrides(
        self,
        target_year: int = None,
        forecast_lag_days: int = None,
        planning_months: int = None,
        trend_weeks: int = None,
        snapshot_path: Path = None,
    ) -> "Config":
        """Return a new config with overrides applied."""
        new_config = replace(
            self,
            allowed_ranges=list(self.allowed_ranges),
            group_rosters={name: list(members) for name, members in self.group_rosters.items()},
            yard_placeholder_keys=list(self.yard_placeholder_keys),
        )
        if target_year:
            new_config.target_year = target_year
        if forecast_lag_days is not None:
            new_config.forecast_lag_days = forecast_lag_days
        if planning_months:
            new_config.planning_months = planning_months
        if trend_weeks:
            new_config.trend_weeks = trend_weeks
        if snapshot_path:
            new_config.snapshot_path = Path(snapshot_path)
        return new_config


# =============================================================================
# SETTINGS LOADER
# =============================================================================

def load_settings_from_yaml(yaml_path: Path = None) -> dict:
    """
    Load settings from YAML file.

    Args:
        yaml_path: Path to settings.yaml (uses default if not provided)

    Returns:
        Dictionary of settings, or empty dict if file not found
    """
    yaml_path = Path(yaml_path) if yaml_path else SETTINGS_FILE
    if not yaml_path.exists():
        return {}

    try:
        with open(yaml_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"Warning: Could not load settings from {yaml_path}: {e}")
        return {}


def config_from_yaml(yaml_path: Path = None) -> "Config":
    """
    Create a Config object from settings.yaml.

    Missing sections keep their dataclass defaults.

    Args:
        yaml_path: Path to settings.yaml (uses default if not provided)

    Returns:
        Config object with settings applied
    """
    yaml_path = Path(yaml_path) if yaml_path else SETTINGS_FILE
    settings = load_settings_from_yaml(yaml_path)

    if not settings:
        return Config()

    defaults = Config()

    # Extract nested settings
    paths = settings.get('paths', {})
    files = settings.get('files', {})
    reporting = settings.get('reporting', {})
    lag = settings.get('lag_days', {})
    horizons = settings.get('horizons', {})
    thresholds = settings.get('thresholds', {})
    ranges = settings.get('model_ranges', {})
    groups = settings.get('groups', {})

    # Relative paths are taken from the folder holding settings.yaml
    base = yaml_path.resolve().parent

    config = Config(
        # Paths
        snapshot_path=base / paths.get('snapshots', defaults.snapshot_path),
        output_path=base / paths.get('output', defaults.output_path),

        # Files
        orders_file=files.get('orders', defaults.orders_file),
        campervans_file=files.get('campervans', defaults.campervans_file),
        yard_stock_file=files.get('yard_stock', defaults.yard_stock_file),
        pgi_file=files.get('pgi', defaults.pgi_file),
        handover_file=files.get('handover', defaults.handover_file),
        dealers_file=files.get('dealers', defaults.dealers_file),

        # Reporting
        target_year=reporting.get('target_year', defaults.target_year),

        # Lag
        forecast_lag_days=lag.get('forecast', defaults.forecast_lag_days),
        inventory_lag_days=lag.get('inventory', defaults.inventory_lag_days),

        # Horizons
        planning_months=horizons.get('planning_months', defaults.planning_months),
        inventory_months=horizons.get('inventory_months', defaults.inventory_months),
        trend_weeks=horizons.get('trend_weeks', defaults.trend_weeks),
        trend_months=horizons.get('trend_months', defaults.trend_months),
        recent_window_months=horizons.get('recent_window_months', defaults.recent_window_months),
        top_models_months=horizons.get('top_models_months', defaults.top_models_months),
        pace_window_days=horizons.get('pace_window_days', defaults.pace_window_days),

        # Thresholds
        urgency_weeks=thresholds.get('urgency_weeks', defaults.urgency_weeks),
        top_n=thresholds.get('top_n', defaults.top_n),
        forecast_filled_only=thresholds.get('forecast_filled_only', defaults.forecast_filled_only),

        # Ranges and groups
        allowed_ranges=ranges.get('allowed') or defaults.allowed_ranges,
        group_rosters=groups or defaults.group_rosters,
    )

    return config


# Create default configuration instance
# First try to load from settings.yaml, fall back to defaults
try:
    default_config = config_from_yaml()
except (TypeError, ValueError) as e:
    print(f"Warning: Invalid settings.yaml, using defaults: {e}")
    default_config = Config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def print_current_settings():
    """Print current configuration settings for debugging."""
    config = default_config
    print("\n" + "="*60)
    print("CURRENT CONFIGURATION SETTINGS")
    print("="*60)
    print(f"\nSnapshot Path: {config.snapshot_path}")
    print(f"Output Path: {config.output_path}")
    print(f"\nTarget Year: {config.target_year}")
    print(f"Forecast Lag: {config.forecast_lag_days} days")
    print(f"Inventory Lag: {config.inventory_lag_days} days")
    print(f"\nPlanning Months: {config.planning_months}")
    print(f"Trend Weeks: {config.trend_weeks}")
    print(f"Recent Window: {config.recent_window_months} months")
    print(f"Urgency Threshold: {config.urgency_weeks} weeks")
    print(f"\nAllowed Ranges: {', '.join(config.allowed_ranges)}")
    print(f"Groups: {', '.join(config.group_rosters)}")
    print("="*60 + "\n")


def reload_settings():
    """Reload settings from YAML file."""
    global default_config
    default_config = config_from_yaml()
    return default_config
