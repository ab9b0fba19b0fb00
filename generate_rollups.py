#!/usr/bin/env python3
"""
Dealer Fulfillment Rollup Generator
===================================

Recomputes the dealer dashboard rollups (forecast volume, order trends,
model-range stock outlook, top models, pacing and slot health) from the
latest snapshot files.

Usage:
    # Overall view for the configured target year
    python generate_rollups.py

    # One dealer or a named group
    python generate_rollups.py --scope green-rv-forest-glen
    python generate_rollups.py --scope "Snowy River Factory"

    # Fixed calendar-year horizon and an Excel workbook
    python generate_rollups.py --year 2026 --fixed-horizon --report

    # Range counts per dealer across the network
    python generate_rollups.py --range-counts

    # List dealers in the snapshot
    python generate_rollups.py --list-dealers
"""

import sys
import argparse
import logging
from pathlib import Path
from datetime import datetime

# Add current directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from fulfillment_engine.config import default_config, print_current_settings
from fulfillment_engine.data_loader import DataLoader
from fulfillment_engine.date_resolver import parse_flexible_date
from fulfillment_engine.report_generator import ReportGenerator
from fulfillment_engine.rollup_engine import RollupEngine
from fulfillment_engine.slug_resolver import Scope


def list_dealers(config):
    """List dealers configured in the snapshot."""
    print("\nLoading dealers...")
    data_loader = DataLoader(config=config)
    dealers = data_loader.load_dealers()

    print("\nConfigured Dealers:")
    print("=" * 70)
    print(f"{'Slug':<35} {'Name':<25} {'Active':>8}")
    print("-" * 70)
    for slug in data_loader.get_dealer_slugs():
        profile = dealers[slug]
        print(f"{slug:<35} {profile.name[:25]:<25} {'yes' if profile.is_active else 'no':>8}")

    print("\nGroups:")
    for group, members in config.group_rosters.items():
        print(f"  {group}: {len(members)} dealers")


def print_volume_table(title, rows):
    print("\n" + "-" * 60)
    print(title)
    print("-" * 60)
    print(f"{'Period':<12} {'Stock':>8} {'Customer':>10} {'Total':>8}")
    for row in rows:
        print(f"{row.label:<12} {row.stock:>8,} {row.customer:>10,} {row.total:>8,}")


def run_range_counts(config, year=None, allowed_only=False):
    """Print model-range counts per dealer for orders forecast in year."""
    data_loader = DataLoader(config=config)
    engine = RollupEngine(config=config)
    try:
        snapshots = data_loader.load_snapshots()
    except (FileNotFoundError, ValueError) as e:
        print(f"\nError loading snapshots: {e}")
        return 1
    counts = engine.dealer_range_counts(snapshots, year=year, allowed_only=allowed_only)

    print(f"\n{'=' * 60}")
    print(f"RANGE COUNTS BY DEALER ({year or config.target_year})")
    print(f"{'=' * 60}")
    for dealer in sorted(counts):
        ranges = ", ".join(f"{code}:{n}" for code, n in sorted(counts[dealer].items()))
        print(f"{dealer:<35} {ranges}")
    return 0


def generate_rollups(
    config,
    scope_text: str = None,
    year: int = None,
    today_text: str = None,
    fixed_horizon: bool = False,
    write_report: bool = False,
):
    """Recompute every rollup for one scope and print a summary."""
    today = parse_flexible_date(today_text) if today_text else None
    if today_text and today is None:
        print(f"\nError: could not parse --today value {today_text!r}")
        return 1

    scope = Scope.parse(scope_text, config.group_rosters)

    print(f"\n{'=' * 60}")
    print("DEALER FULFILLMENT ROLLUPS")
    print(f"{'=' * 60}")
    print(f"Scope: {scope.label}")
    print(f"Year: {year or config.target_year}")
    print(f"Horizon: {'Fixed (calendar year)' if fixed_horizon else 'Rolling (from today)'}")
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print()

    data_loader = DataLoader(config=config)
    engine = RollupEngine(config=config)

    try:
        print("Loading snapshots...")
        snapshots = data_loader.load_snapshots()
        for stream, size in snapshots.stream_sizes.items():
            print(f"  {stream:<12} {size:>8,}")

        print("Recomputing rollups...")
        result = engine.recompute(
            snapshots,
            scope=scope,
            year=year,
            today=today,
            fixed_horizon=fixed_horizon,
        )

        print(f"\n{result.display_name} ({len(result.dealer_slugs)} dealers)")

        print_volume_table("FORECAST VOLUME (arrival month)", result.forecast_volume)
        print_volume_table("ORDERS RECEIVED (weekly)", result.weekly_trend)

        print("\n" + "-" * 60)
        print("MODEL RANGES")
        print("-" * 60)
        print(f"{'Range':<8} {'Stock':>8} {'Handover':>10} {'PGI':>6} {'Incoming':>10}")
        for row in result.range_rows:
            print(f"{row.range_code:<8} {row.current_stock:>8,} {row.recent_handover:>10,} "
                  f"{row.recent_pgi:>6,} {row.total_incoming:>10,}")

        if result.top_models_received:
            print("\n" + "-" * 60)
            print(f"TOP {len(result.top_models_received)} MODELS (received)")
            print("-" * 60)
            for rank, entry in enumerate(result.top_models_received, 1):
                print(f"{rank:>3}. {entry.model:<30} {entry.total:>6,}")

        pacing = result.pacing
        print("\n" + "-" * 60)
        print("PACING")
        print("-" * 60)
        print(f"Annual Target:       {pacing.annual_target:,.0f}")
        print(f"Forecast Orders:     {pacing.forecast_year.actual:,.0f}  "
              f"({pacing.forecast_year.delta.direction.value} {pacing.forecast_year.delta.label})")
        print(f"Received YTD:        {pacing.year_to_date.actual:,.0f} vs {pacing.year_to_date.target:,.1f}  "
              f"({pacing.year_to_date.delta.direction.value} {pacing.year_to_date.delta.label})")
        print(f"Avg / Week:          {pacing.weekly_pace.actual:,.1f} vs {pacing.weekly_pace.target:,.1f}")

        slots = result.slots
        print("\n" + "-" * 60)
        print("SLOTS")
        print("-" * 60)
        print(f"Unsigned Orders:     {slots.unsigned_count:,}")
        print(f"Red Slots:           {slots.red_slot_count:,}")
        print(f"Yard Stock:          {slots.yard_stock_level:,}")

        if write_report:
            print("\nGenerating Excel report...")
            output_file = ReportGenerator(config=config).generate_rollup_report(result)
            print(f"Report generated: {output_file}")

        print(f"\nCompleted: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        return 0

    except Exception as e:
        print(f"\nError during rollup generation: {e}")
        import traceback
        traceback.print_exc()
        return 1


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Dealer Fulfillment Rollup Generator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--snapshots', '-s',
        help='Folder holding the snapshot files (default: from settings.yaml)'
    )

    parser.add_argument(
        '--scope',
        help='Dealer slug, group name, or "all" (default: all)'
    )

    parser.add_argument(
        '--year', '-y',
        type=int,
        help='Reporting year (default: target_year from settings)'
    )

    parser.add_argument(
        '--today',
        help='Reference date, e.g. 11/04/2026 or 2026-04-11 (default: today)'
    )

    parser.add_argument(
        '--lag',
        type=int,
        help='Forecast arrival lag in days (default: from settings)'
    )

    parser.add_argument(
        '--fixed-horizon',
        action='store_true',
        help='Anchor forecast buckets on January 1 of the reporting year'
    )

    parser.add_argument(
        '--report', '-r',
        action='store_true',
        help='Write an Excel workbook to the output folder'
    )

    parser.add_argument(
        '--range-counts',
        action='store_true',
        help='Print model-range counts per dealer'
    )

    parser.add_argument(
        '--allowed-only',
        action='store_true',
        help='Restrict --range-counts to allow-listed ranges'
    )

    parser.add_argument(
        '--list-dealers',
        action='store_true',
        help='List dealers in the snapshot'
    )

    parser.add_argument(
        '--show-settings',
        action='store_true',
        help='Print the settings loaded from settings.yaml'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show debug logging from the engine'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    config = default_config.with_overrides(
        target_year=args.year,
        forecast_lag_days=args.lag,
        snapshot_path=args.snapshots,
    )

    if args.show_settings:
        print_current_settings()
        return 0

    if args.list_dealers:
        list_dealers(config)
        return 0

    if args.range_counts:
        return run_range_counts(config, year=args.year, allowed_only=args.allowed_only)

    return generate_rollups(
        config,
        scope_text=args.scope,
        year=args.year,
        today_text=args.today,
        fixed_horizon=args.fixed_horizon,
        write_report=args.report,
    )


if __name__ == "__main__":
    sys.exit(main())
