"""
Data Loader Module
Turns raw snapshot payloads (JSON/YAML documents or CSV/Excel extracts) into
the typed record streams the rollup engine consumes.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd
import yaml

from .config import Config, default_config
from .records import (
    CampervanOrderRecord,
    DealerProfile,
    HandoverEvent,
    OrderRecord,
    ProductionGateEvent,
    Snapshots,
    YardStockEntry,
)

logger = logging.getLogger(__name__)

TABLE_SUFFIXES = (".csv", ".xlsx")
DOCUMENT_SUFFIXES = (".json", ".yaml", ".yml")
CHASSIS_COLUMNS = ("chassis", "Chassis", "chassisNumber")


# =============================================================================
# PAYLOAD NORMALIZATION
# =============================================================================

def _as_list(payload: Any) -> List[Mapping[str, Any]]:
    """List payloads pass through; keyed payloads contribute their values."""
    if not payload:
        return []
    if isinstance(payload, Mapping):
        return [item for item in payload.values() if item]
    return [item for item in payload if item]


def _is_dealer_nested(payload: Mapping[str, Any]) -> bool:
    """True for {dealer: {chassis: {...}}} rather than {chassis: {...}}."""
    if not payload:
        return False
    has_nested = False
    for per_dealer in payload.values():
        if not isinstance(per_dealer, Mapping):
            return False
        if not all(isinstance(item, Mapping) or item is None for item in per_dealer.values()):
            return False
        has_nested = has_nested or any(isinstance(item, Mapping) for item in per_dealer.values())
    return has_nested


def _keyed_items(payload: Any, dealer_field: str = None) -> List[Tuple[str, Dict[str, Any]]]:
    """
    (chassis, record) pairs from a keyed payload.

    Accepts {chassis: record}, {dealer: {chassis: record}} (dealer copied into
    dealer_field when the record lacks it), or a list of rows carrying a
    chassis column.
    """
    if not payload:
        return []

    if not isinstance(payload, Mapping):
        items = []
        for row in payload:
            if not row:
                continue
            chassis = next((row[col] for col in CHASSIS_COLUMNS if row.get(col)), None)
            if chassis is not None:
                items.append((str(chassis), dict(row)))
        return items

    if _is_dealer_nested(payload):
        items = []
        for dealer, per_dealer in payload.items():
            for chassis, record in per_dealer.items():
                record = dict(record or {})
                if dealer_field and not record.get(dealer_field):
                    record[dealer_field] = dealer
                items.append((str(chassis), record))
        return items

    return [(str(chassis), dict(record or {})) for chassis, record in payload.items()]


def build_orders(payload: Any) -> Tuple[OrderRecord, ...]:
    return tuple(OrderRecord.from_mapping(item) for item in _as_list(payload))


def build_campervans(payload: Any) -> Tuple[CampervanOrderRecord, ...]:
    return tuple(CampervanOrderRecord.from_mapping(item) for item in _as_list(payload))


def build_yard_stock(
    payload: Any,
    dealer_slug: str = "",
    placeholder_keys: Tuple[str, ...] = ("dealer-chassis",),
) -> Tuple[YardStockEntry, ...]:
    entries = []
    for chassis, record in _keyed_items(payload, dealer_field="dealerSlug"):
        if chassis in placeholder_keys:
            continue
        entries.append(YardStockEntry.from_mapping(chassis, record, dealer_slug=dealer_slug))
    return tuple(entries)


def build_pgi_events(payload: Any) -> Tuple[ProductionGateEvent, ...]:
    return tuple(ProductionGateEvent.from_mapping(chassis, record) for chassis, record in _keyed_items(payload))


def build_handovers(payload: Any) -> Tuple[HandoverEvent, ...]:
    return tuple(
        HandoverEvent.from_mapping(chassis, record)
        for chassis, record in _keyed_items(payload, dealer_field="dealerSlug")
    )


def build_dealers(payload: Any) -> Dict[str, DealerProfile]:
    if not payload:
        return {}
    if isinstance(payload, Mapping):
        items = payload.items()
    else:
        items = [(row.get("slug", ""), row) for row in payload if row]
    return {str(slug): DealerProfile.from_mapping(slug, record) for slug, record in items if slug}


def build_snapshots(
    orders: Any = None,
    campervans: Any = None,
    yard_stock: Any = None,
    pgi_events: Any = None,
    handovers: Any = None,
    dealers: Any = None,
) -> Snapshots:
    """Build a Snapshots bundle straight from raw in-memory payloads."""
    return Snapshots(
        orders=build_orders(orders),
        campervans=build_campervans(campervans),
        yard_stock=build_yard_stock(yard_stock),
        pgi_events=build_pgi_events(pgi_events),
        handovers=build_handovers(handovers),
        dealers=build_dealers(dealers),
    )


# =============================================================================
# FILE LOADING
# =============================================================================

class DataLoader:
    """Load snapshot files from the snapshot folder and cache the parsed records."""

    def __init__(self, config: Config = None):
        self.config = config or default_config
        self._cache: Dict[str, Any] = {}

    def _get_path(self, relative_path: str) -> Path:
        """Get full path for a snapshot file."""
        return self.config.get_full_path(relative_path)

    def read_payload(self, file_path: Path) -> Optional[Any]:
        """
        Read one snapshot file.

        JSON/YAML documents are returned as parsed; CSV/Excel extracts become a
        list of row dicts with blank cells dropped, so a blank chassis cell
        reads the same as a missing chassis key.
        """
        suffix = file_path.suffix.lower()
        if suffix not in TABLE_SUFFIXES + DOCUMENT_SUFFIXES:
            raise ValueError(f"Unsupported snapshot file type: {file_path.name}")

        if not file_path.exists():
            logger.info("Snapshot %s not found, treating as empty", file_path.name)
            return None

        if suffix == ".json":
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        if suffix in (".yaml", ".yml"):
            with open(file_path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)

        if suffix == ".csv":
            df = pd.read_csv(file_path, dtype=str, keep_default_na=True)
        else:
            df = pd.read_excel(file_path, dtype=str)
        df.columns = df.columns.str.strip()
        return [
            {key: value for key, value in row.items() if not pd.isna(value)}
            for row in df.to_dict(orient="records")
        ]

    def _load(self, cache_key: str, relative_path: str, builder, use_cache: bool):
        if use_cache and cache_key in self._cache:
            return self._cache[cache_key]
        payload = self.read_payload(self._get_path(relative_path))
        records = builder(payload)
        self._cache[cache_key] = records
        return records

    # =========================================================================
    # STREAMS
    # =========================================================================

    def load_orders(self, use_cache: bool = True) -> Tuple[OrderRecord, ...]:
        return self._load("orders", self.config.orders_file, build_orders, use_cache)

    def load_campervans(self, use_cache: bool = True) -> Tuple[CampervanOrderRecord, ...]:
        return self._load("campervans", self.config.campervans_file, build_campervans, use_cache)

    def load_yard_stock(self, use_cache: bool = True) -> Tuple[YardStockEntry, ...]:
        placeholders = tuple(self.config.yard_placeholder_keys)
        return self._load(
            "yard_stock",
            self.config.yard_stock_file,
            lambda payload: build_yard_stock(payload, placeholder_keys=placeholders),
            use_cache,
        )

    def load_pgi_events(self, use_cache: bool = True) -> Tuple[ProductionGateEvent, ...]:
        return self._load("pgi_events", self.config.pgi_file, build_pgi_events, use_cache)

    def load_handovers(self, use_cache: bool = True) -> Tuple[HandoverEvent, ...]:
        return self._load("handovers", self.config.handover_file, build_handovers, use_cache)

    def load_dealers(self, use_cache: bool = True) -> Dict[str, DealerProfile]:
        return self._load("dealers", self.config.dealers_file, build_dealers, use_cache)

    def load_snapshots(self, use_cache: bool = True) -> Snapshots:
        """Load every stream from the snapshot folder."""
        if not self.config.snapshot_path.exists():
            raise FileNotFoundError(f"Snapshot folder not found: {self.config.snapshot_path}")

        snapshots = Snapshots(
            orders=self.load_orders(use_cache),
            campervans=self.load_campervans(use_cache),
            yard_stock=self.load_yard_stock(use_cache),
            pgi_events=self.load_pgi_events(use_cache),
            handovers=self.load_handovers(use_cache),
            dealers=self.load_dealers(use_cache),
        )
        logger.info("Loaded snapshots: %s", snapshots.stream_sizes)
        return snapshots

    # =========================================================================
    # CONVENIENCE METHODS
    # =========================================================================

    def get_dealer_slugs(self) -> List[str]:
        """Slugs of configured dealers, excluding group profiles."""
        return sorted(slug for slug, profile in self.load_dealers().items() if not profile.is_group)

    def clear_cache(self):
        """Clear all cached data."""
        self._cache.clear()

    def refresh_data(self) -> Snapshots:
        """Clear cache and reload every stream."""
        self.clear_cache()
        return self.load_snapshots(use_cache=False)
