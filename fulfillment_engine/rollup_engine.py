"""
Rollup Engine Module
Joins the order, campervan, yard, PGI and handover snapshots into the
time-bucketed rollups behind the dealer dashboards.

The engine holds no state between calls. recompute() derives everything from
the snapshots it is given, so the caller simply calls it again whenever a
snapshot, the scope or the reporting year changes.
"""

import logging
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .bucket_builder import (
    TimeBucket,
    bucket_index,
    build_month_buckets,
    build_week_buckets,
)
from .config import Config, default_config
from .date_resolver import (
    add_days,
    add_months,
    parse_flexible_date,
    start_of_month,
    start_of_year,
    weeks_until,
    year_of,
)
from .pacing import PacingCalculator, PacingFigures
from .record_classifier import (
    OTHER_RANGE,
    StockType,
    has_chassis,
    infer_yard_stock_type,
    is_empty_slot,
    is_allowed_range,
    is_finished,
    is_stock_customer,
    is_unsigned_order,
    model_range_code,
    stock_type_of,
)
from .records import (
    CampervanOrderRecord,
    HandoverEvent,
    OrderRecord,
    ProductionGateEvent,
    Snapshots,
    YardStockEntry,
)
from .slug_resolver import (
    SCOPE_DEALER,
    SCOPE_GROUP,
    ResolvedScope,
    Scope,
    dealer_display_name,
    normalize_slug,
    resolve_scope,
    slugify,
)

logger = logging.getLogger(__name__)

UNKNOWN_MODEL = "Unknown"
UNKNOWN_DEALER = "Unknown Dealer"
BASIS_RECEIVED = "received"
BASIS_FORECAST = "forecast"


# =============================================================================
# OUTPUT TYPES
# =============================================================================

@dataclass
class VolumeBucket:
    """Stock/customer counts for one time bucket."""
    label: str
    start: date
    end: date
    stock: int = 0
    customer: int = 0
    total: int = 0

    @classmethod
    def from_bucket(cls, bucket: TimeBucket) -> "VolumeBucket":
        return cls(label=bucket.label, start=bucket.start, end=bucket.end)

    def add(self, stock_type: StockType):
        if stock_type == StockType.STOCK:
            self.stock += 1
        else:
            self.customer += 1
        self.total += 1


@dataclass
class RollupRow:
    """Model-range line of the stock outlook table."""
    range_code: str
    current_stock: int = 0
    recent_pgi: int = 0
    recent_handover: int = 0
    incoming: List[int] = field(default_factory=list)
    models: Dict[str, int] = field(default_factory=dict)

    @property
    def total_incoming(self) -> int:
        return sum(self.incoming)


@dataclass
class ModelRollupRow:
    """Exact-model line of the rolling stock model outlook."""
    model: str
    current_stock: int = 0
    recent_pgi: int = 0
    recent_handover: int = 0
    incoming: List[int] = field(default_factory=list)


@dataclass
class ModelRanking:
    model: str
    stock: int = 0
    customer: int = 0
    total: int = 0


@dataclass(frozen=True)
class SlotHealth:
    forecast_year_count: int = 0
    forecast_year_with_chassis: int = 0
    unsigned_count: int = 0
    red_slot_count: int = 0
    yard_stock_level: int = 0


@dataclass
class ScopedRecords:
    """Snapshot streams narrowed to one scope."""
    orders: List[OrderRecord]
    campervans: List[CampervanOrderRecord]
    yard_stock: List[YardStockEntry]
    pgi_events: List[ProductionGateEvent]
    handovers: List[HandoverEvent]


@dataclass
class RollupResult:
    """Everything one recomputation produces."""
    scope: Scope
    display_name: str
    year: int
    today: date
    dealer_slugs: Tuple[str, ...]
    forecast_volume: List[VolumeBucket]
    weekly_trend: List[VolumeBucket]
    monthly_trend: List[VolumeBucket]
    range_buckets: List[TimeBucket]
    range_rows: List[RollupRow]
    model_buckets: List[TimeBucket]
    model_rows: List[ModelRollupRow]
    top_models_received: List[ModelRanking]
    top_models_forecast: List[ModelRanking]
    pacing: PacingFigures
    slots: SlotHealth

    @property
    def range_drilldown(self) -> Dict[str, Dict[str, int]]:
        return {row.range_code: dict(row.models) for row in self.range_rows}

    def to_frames(self) -> "OrderedDict[str, pd.DataFrame]":
        """All tables as DataFrames, keyed by report tab name."""
        frames = OrderedDict()
        frames["Forecast Volume"] = _volume_frame(self.forecast_volume)
        frames["Weekly Received"] = _volume_frame(self.weekly_trend)
        frames["Monthly Received"] = _volume_frame(self.monthly_trend)
        frames["Model Ranges"] = _range_frame(self.range_rows, self.range_buckets)
        frames["Range Drilldown"] = pd.DataFrame(
            [
                {"Range": row.range_code, "Model": model, "Orders": count}
                for row in self.range_rows
                for model, count in sorted(row.models.items(), key=lambda item: (-item[1], item[0]))
            ],
            columns=["Range", "Model", "Orders"],
        )
        frames["Stock Models"] = _model_frame(self.model_rows, self.model_buckets)
        frames["Top Models Received"] = _ranking_frame(self.top_models_received)
        frames["Top Models Forecast"] = _ranking_frame(self.top_models_forecast)
        frames["Pacing"] = _pacing_frame(self.pacing)
        frames["Slots"] = pd.DataFrame([{
            "Forecast Orders": self.slots.forecast_year_count,
            "Forecast With Chassis": self.slots.forecast_year_with_chassis,
            "Unsigned": self.slots.unsigned_count,
            "Red Slots": self.slots.red_slot_count,
            "Yard Stock": self.slots.yard_stock_level,
        }])
        return frames


def _volume_frame(rows: Sequence[VolumeBucket]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"Period": r.label, "Start": r.start, "Stock": r.stock, "Customer": r.customer, "Total": r.total} for r in rows],
        columns=["Period", "Start", "Stock", "Customer", "Total"],
    )
    totals = df["Total"].to_numpy(dtype=float)
    df["Stock %"] = np.where(totals > 0, df["Stock"].to_numpy(dtype=float) / np.where(totals > 0, totals, 1), 0.0)
    return df


def _range_frame(rows: Sequence[RollupRow], buckets: Sequence[TimeBucket]) -> pd.DataFrame:
    records = []
    for row in rows:
        record = {
            "Range": row.range_code,
            "Current Stock": row.current_stock,
            "Handover (Recent)": row.recent_handover,
            "PGI (Recent)": row.recent_pgi,
        }
        for bucket, count in zip(buckets, row.incoming):
            record[bucket.label] = count
        record["Incoming Total"] = row.total_incoming
        records.append(record)
    columns = ["Range", "Current Stock", "Handover (Recent)", "PGI (Recent)"]
    columns += [bucket.label for bucket in buckets] + ["Incoming Total"]
    return pd.DataFrame(records, columns=columns)


def _model_frame(rows: Sequence[ModelRollupRow], buckets: Sequence[TimeBucket]) -> pd.DataFrame:
    records = []
    for row in rows:
        record = {
            "Model": row.model,
            "Current Stock": row.current_stock,
            "Handover (Recent)": row.recent_handover,
            "PGI (Recent)": row.recent_pgi,
        }
        for bucket, count in zip(buckets, row.incoming):
            record[bucket.label] = count
        records.append(record)
    columns = ["Model", "Current Stock", "Handover (Recent)", "PGI (Recent)"] + [b.label for b in buckets]
    return pd.DataFrame(records, columns=columns)


def _ranking_frame(rows: Sequence[ModelRanking]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Rank": i + 1, "Model": r.model, "Stock": r.stock, "Customer": r.customer, "Total": r.total}
         for i, r in enumerate(rows)],
        columns=["Rank", "Model", "Stock", "Customer", "Total"],
    )


def _pacing_frame(pacing: PacingFigures) -> pd.DataFrame:
    rows = []
    for name, figure in (
        ("Forecast Year vs Target", pacing.forecast_year),
        ("Received vs YTD Target", pacing.year_to_date),
        ("Avg Received / Week vs Target", pacing.weekly_pace),
    ):
        rows.append({
            "Metric": name,
            "Actual": round(figure.actual, 1),
            "Target": round(figure.target, 1),
            "Delta %": figure.delta.percent if figure.delta.percent is not None else np.nan,
            "Direction": figure.delta.direction.value,
            "Note": figure.delta.label,
        })
    return pd.DataFrame(rows)


# =============================================================================
# ENGINE
# =============================================================================

class RollupEngine:
    """Stateless recomputation of every dashboard rollup for one scope and year."""

    def __init__(self, config: Config = None):
        self.config = config or default_config
        self.pacing_calculator = PacingCalculator(
            weeks_per_year=self.config.weeks_per_year,
            pace_window_days=self.config.pace_window_days,
        )

    def recompute(
        self,
        snapshots: Snapshots,
        scope: Scope = None,
        year: int = None,
        today: date = None,
        fixed_horizon: bool = False,
    ) -> RollupResult:
        """
        Recompute all rollups from the current snapshots.

        Args:
            snapshots: Latest snapshot of every stream
            scope: Dealer, group or all (default: all)
            year: Reporting year (default: config.target_year)
            today: Reference date (default: date.today())
            fixed_horizon: Anchor forecast buckets on January 1 of year
                instead of today

        Returns:
            RollupResult with series, range rows, rankings, pacing and slots
        """
        scope = scope or Scope.all()
        year = year or self.config.target_year
        today = today or date.today()

        resolved = resolve_scope(scope, snapshots.dealers, self.config.group_rosters)
        scoped = self.filter_records(snapshots, resolved)
        logger.debug(
            "Recomputing %s for %s: %d orders, %d campervans, %d yard, %d PGI, %d handovers",
            scope.label, year, len(scoped.orders), len(scoped.campervans),
            len(scoped.yard_stock), len(scoped.pgi_events), len(scoped.handovers),
        )

        range_buckets = self._planning_buckets(year, today, fixed_horizon)
        range_rows = self.range_rollup(scoped, year, today, range_buckets)
        model_buckets, model_rows = self.model_rollup(scoped, today)

        return RollupResult(
            scope=scope,
            display_name=dealer_display_name(scope, snapshots.dealers),
            year=year,
            today=today,
            dealer_slugs=tuple(sorted(resolved.slugs)),
            forecast_volume=self.forecast_volume(scoped.orders, scoped.campervans, year, today, fixed_horizon),
            weekly_trend=self.weekly_received_trend(scoped.orders, year, today),
            monthly_trend=self.monthly_received_trend(scoped.orders, year, today),
            range_buckets=range_buckets,
            range_rows=range_rows,
            model_buckets=model_buckets,
            model_rows=model_rows,
            top_models_received=self.top_models(scoped.orders, scoped.campervans, year, today, BASIS_RECEIVED),
            top_models_forecast=self.top_models(scoped.orders, scoped.campervans, year, today, BASIS_FORECAST),
            pacing=self.pacing(scoped.orders, self.annual_target(snapshots, resolved, year), year, today),
            slots=self.slot_health(scoped, year, today),
        )

    # =========================================================================
    # SCOPE FILTERING
    # =========================================================================

    def filter_records(self, snapshots: Snapshots, resolved: ResolvedScope) -> ScopedRecords:
        """Keep records whose dealer slug falls inside the resolved scope."""
        placeholders = set(self.config.yard_placeholder_keys)
        scoped = ScopedRecords(
            orders=[o for o in snapshots.orders if resolved.matches(slugify(o.dealer))],
            campervans=[c for c in snapshots.campervans if resolved.matches(slugify(c.dealer))],
            yard_stock=[
                y for y in snapshots.yard_stock
                if y.chassis not in placeholders and resolved.matches(normalize_slug(y.dealer_slug))
            ],
            pgi_events=[p for p in snapshots.pgi_events if resolved.matches(slugify(p.dealer))],
            handovers=[
                h for h in snapshots.handovers
                if resolved.matches(slugify(h.dealer_slug or h.dealer_name))
            ],
        )
        if not resolved.is_all:
            dropped = len(snapshots.orders) - len(scoped.orders)
            logger.debug("Scope %s excluded %d orders from other dealers", resolved.scope.label, dropped)
        return scoped

    def annual_target(self, snapshots: Snapshots, resolved: ResolvedScope, year: int) -> float:
        """
        Target for the scope: the dealer's own, the sum over a group's members,
        or the sum over every active dealer for the overall view.
        """
        dealers = snapshots.dealers
        if resolved.scope.kind == SCOPE_DEALER:
            profile = dealers.get(resolved.scope.value)
            if profile is None:
                profile = next(
                    (p for key, p in dealers.items() if normalize_slug(key) == resolved.scope.value),
                    None,
                )
            return profile.target_for(year) if profile else 0.0
        members = [
            profile for slug, profile in dealers.items()
            if (profile.slug or slug) in resolved.slugs and not profile.is_group
        ]
        if resolved.scope.kind != SCOPE_GROUP:
            members = [profile for profile in members if profile.is_active]
        return float(sum(profile.target_for(year) for profile in members))

    # =========================================================================
    # FORECAST VOLUME
    # =========================================================================

    def _planning_buckets(self, year: int, today: date, fixed_horizon: bool) -> List[TimeBucket]:
        anchor = start_of_year(year) if fixed_horizon else today
        return build_month_buckets(anchor, self.config.planning_months)

    def _shifted_index(
        self,
        forecast_text: str,
        buckets: Sequence[TimeBucket],
        year: Optional[int],
        lag_days: int,
        skipped: Counter,
    ) -> Optional[int]:
        """Bucket for a forecast date after the arrival shift, or None."""
        forecast = parse_flexible_date(forecast_text)
        if forecast is None:
            skipped["unparseable date"] += 1
            return None
        arrival = add_days(forecast, lag_days)
        if year is not None and arrival.year != year:
            skipped["outside year"] += 1
            return None
        index = bucket_index(arrival, buckets)
        if index is None:
            skipped["outside horizon"] += 1
        return index

    def forecast_volume(
        self,
        orders: Sequence[OrderRecord],
        campervans: Sequence[CampervanOrderRecord],
        year: int,
        today: date,
        fixed_horizon: bool = False,
        lag_days: int = None,
    ) -> List[VolumeBucket]:
        """
        Expected arrivals per month: forecast production date plus the lag,
        split into stock and customer orders.
        """
        lag_days = self.config.forecast_lag_days if lag_days is None else lag_days
        buckets = self._planning_buckets(year, today, fixed_horizon)
        rows = [VolumeBucket.from_bucket(bucket) for bucket in buckets]
        skipped = Counter()

        for order in orders:
            if self.config.forecast_filled_only and not (has_chassis(order) and order.customer.strip()):
                continue
            index = self._shifted_index(order.forecast_production_date, buckets, year, lag_days, skipped)
            if index is not None:
                rows[index].add(stock_type_of(order))

        for campervan in campervans:
            index = self._shifted_index(campervan.forecast_production_date, buckets, year, lag_days, skipped)
            if index is not None:
                rows[index].add(StockType.CUSTOMER)

        if skipped:
            logger.debug("Forecast volume skipped: %s", dict(skipped))
        return rows

    # =========================================================================
    # ORDER RECEIVED TRENDS
    # =========================================================================

    def _received_trend(
        self,
        orders: Sequence[OrderRecord],
        buckets: List[TimeBucket],
        year: int,
    ) -> List[VolumeBucket]:
        rows = [VolumeBucket.from_bucket(bucket) for bucket in buckets]
        for order in orders:
            received = parse_flexible_date(order.order_received_date)
            if received is None or received.year != year:
                continue
            index = bucket_index(received, buckets)
            if index is not None:
                rows[index].add(stock_type_of(order))
        return rows

    def weekly_received_trend(self, orders: Sequence[OrderRecord], year: int, today: date) -> List[VolumeBucket]:
        """Orders received per Monday week, ending with the current week."""
        return self._received_trend(orders, build_week_buckets(today, self.config.trend_weeks), year)

    def monthly_received_trend(self, orders: Sequence[OrderRecord], year: int, today: date) -> List[VolumeBucket]:
        """Orders received per month, ending with the current month."""
        first = add_months(start_of_month(today), -(self.config.trend_months - 1))
        return self._received_trend(orders, build_month_buckets(first, self.config.trend_months), year)

    # =========================================================================
    # MODEL RANGE ROLLUP
    # =========================================================================

    def _recent_window_start(self, today: date) -> date:
        return add_months(today, -self.config.recent_window_months)

    @staticmethod
    def _handover_date(event: HandoverEvent) -> Optional[date]:
        return parse_flexible_date(event.handover_date) or parse_flexible_date(event.created_at)

    def range_rollup(
        self,
        scoped: ScopedRecords,
        year: int,
        today: date,
        buckets: List[TimeBucket],
        lag_days: int = None,
    ) -> List[RollupRow]:
        """
        Stock, recent PGI, recent handover and incoming stock per model range.

        Rows are created on first use and only allow-listed ranges survive.
        Each row carries the exact-model order counts for drill-down.
        """
        lag_days = self.config.forecast_lag_days if lag_days is None else lag_days
        by_chassis = {o.chassis: o for o in scoped.orders if o.chassis}
        rows: Dict[str, RollupRow] = {}
        skipped = Counter()

        def ensure(range_code: str) -> RollupRow:
            if range_code not in rows:
                rows[range_code] = RollupRow(range_code=range_code, incoming=[0] * len(buckets))
            return rows[range_code]

        def model_for(chassis: str, own_model: Optional[str]) -> str:
            match = by_chassis.get(chassis)
            if own_model is not None:
                return own_model
            return match.model if match else ""

        for entry in scoped.yard_stock:
            if infer_yard_stock_type(entry, by_chassis.get(entry.chassis)) != StockType.STOCK:
                continue
            ensure(model_range_code(model_for(entry.chassis, entry.model), entry.chassis)).current_stock += 1

        window_start = self._recent_window_start(today)
        for event in scoped.pgi_events:
            gated = parse_flexible_date(event.gate_date)
            if gated is None or gated < window_start:
                skipped["pgi outside window"] += 1
                continue
            ensure(model_range_code(model_for(event.chassis, event.model), event.chassis)).recent_pgi += 1

        for event in scoped.handovers:
            handed = self._handover_date(event)
            if handed is None or handed < window_start:
                skipped["handover outside window"] += 1
                continue
            ensure(model_range_code(model_for(event.chassis, event.model), event.chassis)).recent_handover += 1

        if buckets:
            for order in scoped.orders:
                if not is_stock_customer(order.customer):
                    continue
                index = self._shifted_index(order.forecast_production_date, buckets, year, lag_days, skipped)
                if index is not None:
                    ensure(model_range_code(order.model, order.chassis)).incoming[index] += 1

            for campervan in scoped.campervans:
                index = self._shifted_index(campervan.forecast_production_date, buckets, year, lag_days, skipped)
                if index is not None:
                    ensure(model_range_code(campervan.model, campervan.chassis)).incoming[index] += 1

        drilldown = self.range_drilldown(scoped.orders, scoped.campervans)
        result = []
        for code in sorted(rows):
            if not is_allowed_range(code, self.config.allowed_ranges):
                skipped["range not allowed"] += 1
                continue
            row = rows[code]
            row.models = drilldown.get(code, {})
            result.append(row)

        if skipped:
            logger.debug("Range rollup skipped: %s", dict(skipped))
        return result

    @staticmethod
    def range_drilldown(
        orders: Sequence[OrderRecord],
        campervans: Sequence[CampervanOrderRecord],
    ) -> Dict[str, Dict[str, int]]:
        """Exact model counts under each range code."""
        details: Dict[str, Dict[str, int]] = {}

        def increment(range_code: str, model: str):
            bucket = details.setdefault(range_code, {})
            bucket[model] = bucket.get(model, 0) + 1

        for order in orders:
            code = model_range_code(order.model, order.chassis)
            increment(code, order.model.strip() or code)
        for campervan in campervans:
            code = model_range_code(campervan.model, campervan.chassis)
            increment(code, campervan.model.strip() or code)
        return details

    # =========================================================================
    # STOCK MODEL OUTLOOK (exact models)
    # =========================================================================

    def model_rollup(
        self,
        scoped: ScopedRecords,
        today: date,
    ) -> Tuple[List[TimeBucket], List[ModelRollupRow]]:
        """
        Rolling outlook keyed by exact model name.

        Buckets start next month. Incoming counts only customer orders for
        models that already appear in the table, shifted by the inventory lag.
        """
        buckets = build_month_buckets(add_months(today, 1), self.config.inventory_months)
        by_chassis = {o.chassis: o for o in scoped.orders if o.chassis}
        rows: Dict[str, ModelRollupRow] = {}

        def ensure(model: str) -> ModelRollupRow:
            if model not in rows:
                rows[model] = ModelRollupRow(model=model, incoming=[0] * len(buckets))
            return rows[model]

        def model_for(chassis: str, own_model: Optional[str]) -> str:
            match = by_chassis.get(chassis)
            value = own_model if own_model is not None else (match.model if match else "")
            return value.strip() or UNKNOWN_MODEL

        for entry in scoped.yard_stock:
            if infer_yard_stock_type(entry, by_chassis.get(entry.chassis)) == StockType.STOCK:
                ensure(model_for(entry.chassis, entry.model)).current_stock += 1

        window_start = self._recent_window_start(today)
        for event in scoped.pgi_events:
            gated = parse_flexible_date(event.gate_date)
            if gated is not None and gated >= window_start:
                ensure(model_for(event.chassis, event.model)).recent_pgi += 1

        for event in scoped.handovers:
            handed = self._handover_date(event)
            if handed is not None and handed >= window_start:
                ensure(model_for(event.chassis, event.model)).recent_handover += 1

        skipped = Counter()
        for order in scoped.orders:
            model = order.model.strip()
            if is_stock_customer(order.customer) or model not in rows:
                continue
            index = self._shifted_index(
                order.forecast_production_date, buckets, None, self.config.inventory_lag_days, skipped
            )
            if index is not None:
                rows[model].incoming[index] += 1

        ordered = sorted(rows.values(), key=lambda row: (-row.current_stock, row.model))
        return buckets, ordered

    # =========================================================================
    # TOP MODELS
    # =========================================================================

    def top_models(
        self,
        orders: Sequence[OrderRecord],
        campervans: Sequence[CampervanOrderRecord],
        year: int,
        today: date,
        basis: str = BASIS_RECEIVED,
    ) -> List[ModelRanking]:
        """
        Highest-volume exact models, ties kept in encounter order.

        The received basis counts orders received in the trailing window (and
        in year); the forecast basis counts orders forecast for year.
        """
        if basis not in (BASIS_RECEIVED, BASIS_FORECAST):
            raise ValueError(f"Unknown ranking basis: {basis}")

        window_start = add_months(start_of_month(today), -self.config.top_models_months)
        counts: Dict[str, ModelRanking] = {}

        def in_window(text: str) -> bool:
            parsed = parse_flexible_date(text)
            if parsed is None or parsed.year != year:
                return False
            if basis == BASIS_RECEIVED:
                return window_start <= parsed <= today
            return True

        def add(model: str, stock_type: StockType):
            key = model.strip() or UNKNOWN_MODEL
            entry = counts.setdefault(key, ModelRanking(model=key))
            if stock_type == StockType.STOCK:
                entry.stock += 1
            else:
                entry.customer += 1
            entry.total += 1

        for order in orders:
            text = order.order_received_date if basis == BASIS_RECEIVED else order.forecast_production_date
            if in_window(text):
                add(order.model, stock_type_of(order))

        for campervan in campervans:
            text = campervan.order_received_date if basis == BASIS_RECEIVED else campervan.forecast_production_date
            if in_window(text):
                add(campervan.model, StockType.CUSTOMER)

        # sorted() is stable, so equal totals keep first-seen order
        ranked = sorted(counts.values(), key=lambda entry: -entry.total)
        return ranked[: self.config.top_n]

    # =========================================================================
    # PACING AND SLOTS
    # =========================================================================

    def pacing(
        self,
        orders: Sequence[OrderRecord],
        annual_target: float,
        year: int,
        today: date,
    ) -> PacingFigures:
        forecast_year_count = sum(1 for o in orders if year_of(o.forecast_production_date) == year)
        received_year_count = sum(1 for o in orders if year_of(o.order_received_date) == year)

        window_start = add_days(today, -self.config.pace_window_days)
        received_in_window = 0
        for order in orders:
            received = parse_flexible_date(order.order_received_date)
            if received is not None and window_start <= received <= today and received.year == year:
                received_in_window += 1

        return self.pacing_calculator.calculate(
            annual_target=annual_target,
            year=year,
            today=today,
            forecast_year_count=forecast_year_count,
            received_year_count=received_year_count,
            received_in_window=received_in_window,
        )

    def slot_health(self, scoped: ScopedRecords, year: int, today: date) -> SlotHealth:
        forecast_year = [o for o in scoped.orders if year_of(o.forecast_production_date) == year]

        red_slots = 0
        for order in scoped.orders:
            if not is_empty_slot(order) or year_of(order.forecast_production_date) != year:
                continue
            weeks = weeks_until(order.forecast_production_date, today)
            if weeks is not None and weeks < self.config.urgency_weeks:
                red_slots += 1

        return SlotHealth(
            forecast_year_count=len(forecast_year),
            forecast_year_with_chassis=sum(1 for o in forecast_year if has_chassis(o)),
            unsigned_count=sum(1 for o in forecast_year if is_unsigned_order(o)),
            red_slot_count=red_slots,
            yard_stock_level=len(scoped.yard_stock),
        )

    # =========================================================================
    # NETWORK-WIDE RANGE COUNTS
    # =========================================================================

    def dealer_range_counts(
        self,
        snapshots: Snapshots,
        year: int = None,
        allowed_only: bool = False,
    ) -> Dict[str, Dict[str, int]]:
        """
        Range code counts per dealer name for orders forecast in year,
        skipping vehicles whose production has finished.
        """
        year = year or self.config.target_year
        result: Dict[str, Dict[str, int]] = {}

        def bump(dealer: str, range_code: str):
            if allowed_only and not is_allowed_range(range_code, self.config.allowed_ranges):
                return
            per_dealer = result.setdefault(dealer.strip() or UNKNOWN_DEALER, {})
            per_dealer[range_code] = per_dealer.get(range_code, 0) + 1

        for order in snapshots.orders:
            if is_finished(order.production_status) or year_of(order.forecast_production_date) != year:
                continue
            bump(order.dealer, model_range_code(order.model, order.chassis, unknown=OTHER_RANGE))

        for campervan in snapshots.campervans:
            if is_finished(campervan.production_status) or year_of(campervan.forecast_production_date) != year:
                continue
            bump(campervan.dealer, model_range_code(campervan.model, campervan.chassis, unknown=OTHER_RANGE))

        return result
