"""
Fulfillment Analytics Engine
============================

Joins dealer order, campervan, yard stock, PGI and handover snapshots into
time-bucketed rollups for pacing, stock forecasting and model-mix reporting.

Configuration:
- Edit settings.yaml in the project folder for easy configuration
- Or build a Config in code for programmatic control
"""

from .config import Config, default_config, config_from_yaml, reload_settings, print_current_settings
from .records import (
    OrderRecord,
    CampervanOrderRecord,
    YardStockEntry,
    ProductionGateEvent,
    HandoverEvent,
    DealerProfile,
    Snapshots,
)
from .date_resolver import parse_flexible_date, add_days, add_months, start_of_month, start_of_week, weeks_until
from .slug_resolver import Scope, slugify, normalize_slug, resolve_group_membership, resolve_scope
from .record_classifier import (
    StockType,
    is_stock_customer,
    is_unsigned_order,
    is_empty_slot,
    infer_yard_stock_type,
    model_range_code,
)
from .bucket_builder import TimeBucket, build_month_buckets, build_week_buckets, assign_to_bucket
from .pacing import PacingCalculator, PacingDelta, Direction, year_to_date_target, delta
from .rollup_engine import RollupEngine, RollupResult, RollupRow, VolumeBucket, ModelRanking
from .data_loader import DataLoader, build_snapshots
from .report_generator import ReportGenerator

__version__ = "1.0.0"
__all__ = [
    "Config",
    "default_config",
    "config_from_yaml",
    "reload_settings",
    "print_current_settings",
    "OrderRecord",
    "CampervanOrderRecord",
    "YardStockEntry",
    "ProductionGateEvent",
    "HandoverEvent",
    "DealerProfile",
    "Snapshots",
    "parse_flexible_date",
    "add_days",
    "add_months",
    "start_of_month",
    "start_of_week",
    "weeks_until",
    "Scope",
    "slugify",
    "normalize_slug",
    "resolve_group_membership",
    "resolve_scope",
    "StockType",
    "is_stock_customer",
    "is_unsigned_order",
    "is_empty_slot",
    "infer_yard_stock_type",
    "model_range_code",
    "TimeBucket",
    "build_month_buckets",
    "build_week_buckets",
    "assign_to_bucket",
    "PacingCalculator",
    "PacingDelta",
    "Direction",
    "year_to_date_target",
    "delta",
    "RollupEngine",
    "RollupResult",
    "RollupRow",
    "VolumeBucket",
    "ModelRanking",
    "DataLoader",
    "build_snapshots",
    "ReportGenerator",
]
