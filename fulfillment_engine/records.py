"""
Record Types
Typed, read-only views of the snapshot streams the rollups consume.

Upstream payloads are loosely structured dictionaries whose field names vary
between feeds ("pgidate" vs "PGIDate", "dealer" vs "Dealer"). The from_mapping
constructors absorb those aliases so the rest of the engine works with plain
attributes and explicit Optional values.
"""

import math
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

ORDER_FORECAST_KEYS = (
    "Forecast Production Date",
    "Forecast Melbourne Factory Start Date",
    "Forecast production date",
)
PGI_DATE_KEYS = ("pgidate", "PGIDate", "pgIDate", "PgiDate")
CAMPERVAN_RECEIVED_KEYS = ("orderReceivedDate", "OrderReceivedDate", "orderDate")

_TARGET_KEY = re.compile(r"^(initialTarget|target|yearlyTarget|targetYearly)(\d{4})$")
_FALLBACK_PREFIXES = ("target", "yearlyTarget", "targetYearly")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _text(value: Any) -> str:
    """String form of a payload value; None and NaN become ''."""
    if _is_missing(value):
        return ""
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    return None if _is_missing(value) else str(value)


def _first(payload: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    """First non-missing value among alias keys."""
    for key in keys:
        value = payload.get(key)
        if not _is_missing(value) and value != "":
            return value
    return None


def _number(value: Any) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def _flag(value: Any, default: bool = False) -> bool:
    if _is_missing(value):
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "y")
    return bool(value)


# =============================================================================
# INPUT RECORDS
# =============================================================================

@dataclass(frozen=True)
class OrderRecord:
    """
    One schedule row.

    chassis is None when the upstream row has no chassis key at all, which
    marks an unfilled slot; an empty string means the key was present but blank.
    """
    chassis: Optional[str] = None
    dealer: str = ""
    customer: str = ""
    model: str = ""
    model_year: str = ""
    production_status: str = ""
    forecast_production_date: str = ""
    order_received_date: str = ""
    signed_plans_received: Optional[str] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "OrderRecord":
        chassis = _text(payload["Chassis"]) if "Chassis" in payload else None
        return cls(
            chassis=chassis,
            dealer=_text(payload.get("Dealer")),
            customer=_text(payload.get("Customer")),
            model=_text(payload.get("Model")),
            model_year=_text(payload.get("Model Year")),
            production_status=_text(payload.get("Regent Production")),
            forecast_production_date=_text(_first(payload, ORDER_FORECAST_KEYS)),
            order_received_date=_text(payload.get("Order Received Date")),
            signed_plans_received=_optional_text(payload.get("Signed Plans Received")),
        )


@dataclass(frozen=True)
class CampervanOrderRecord:
    """Campervan schedule row; always customer type."""
    chassis: str = ""
    dealer: str = ""
    model: str = ""
    forecast_production_date: str = ""
    order_received_date: str = ""
    production_status: str = ""

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "CampervanOrderRecord":
        return cls(
            chassis=_text(_first(payload, ("chassisNumber", "chassis", "Chassis"))),
            dealer=_text(_first(payload, ("dealer", "Dealer"))),
            model=_text(_first(payload, ("model", "Model"))),
            forecast_production_date=_text(payload.get("forecastProductionDate")),
            order_received_date=_text(_first(payload, CAMPERVAN_RECEIVED_KEYS)),
            production_status=_text(payload.get("regentProduction")),
        )


@dataclass(frozen=True)
class YardStockEntry:
    """A vehicle sitting in a dealer yard; its stock/customer type is inferred."""
    chassis: str
    dealer_slug: str = ""
    declared_type: Optional[str] = None
    model: Optional[str] = None
    customer: Optional[str] = None
    received_at: Optional[str] = None

    @classmethod
    def from_mapping(cls, chassis: str, payload: Mapping[str, Any], dealer_slug: str = "") -> "YardStockEntry":
        payload = payload or {}
        return cls(
            chassis=str(chassis),
            dealer_slug=_text(payload.get("dealerSlug")) or dealer_slug,
            declared_type=_optional_text(_first(payload, ("type", "Type"))),
            model=_optional_text(payload.get("model")),
            customer=_optional_text(payload.get("customer")),
            received_at=_optional_text(payload.get("receivedAt")),
        )


@dataclass(frozen=True)
class ProductionGateEvent:
    """Factory production gate-in (PGI) for one chassis."""
    chassis: str
    dealer: str = ""
    gate_date: str = ""
    model: Optional[str] = None

    @classmethod
    def from_mapping(cls, chassis: str, payload: Mapping[str, Any]) -> "ProductionGateEvent":
        payload = payload or {}
        return cls(
            chassis=str(chassis),
            dealer=_text(payload.get("dealer")),
            gate_date=_text(_first(payload, PGI_DATE_KEYS)),
            model=_optional_text(payload.get("model")),
        )


@dataclass(frozen=True)
class HandoverEvent:
    """Delivery of one chassis to its end customer."""
    chassis: str
    dealer_slug: str = ""
    dealer_name: str = ""
    handover_date: str = ""
    created_at: str = ""
    model: Optional[str] = None

    @classmethod
    def from_mapping(cls, chassis: str, payload: Mapping[str, Any]) -> "HandoverEvent":
        payload = payload or {}
        return cls(
            chassis=str(chassis),
            dealer_slug=_text(payload.get("dealerSlug")),
            dealer_name=_text(payload.get("dealerName")),
            handover_date=_text(payload.get("handoverAt")),
            created_at=_text(payload.get("createdAt")),
            model=_optional_text(payload.get("model")),
        )


@dataclass(frozen=True)
class DealerProfile:
    """Per-dealer configuration: display name, activity and yearly targets."""
    slug: str
    name: str = ""
    is_active: bool = True
    annual_target: Optional[float] = None
    targets: Dict[int, float] = field(default_factory=dict)
    fallback_targets: Dict[int, float] = field(default_factory=dict)
    group: Optional[str] = None
    is_group: bool = False

    def target_for(self, year: int) -> float:
        """
        Target for a year.

        initialTargetYYYY wins, then the undated initialTarget, then the
        targetYYYY, yearlyTargetYYYY and targetYearlyYYYY spellings in that order.
        """
        if year in self.targets:
            return self.targets[year]
        if self.annual_target is not None:
            return self.annual_target
        return self.fallback_targets.get(year, 0.0)

    @classmethod
    def from_mapping(cls, slug: str, payload: Mapping[str, Any]) -> "DealerProfile":
        payload = payload or {}
        targets = {}
        ranked = {}
        for key, value in payload.items():
            match = _TARGET_KEY.match(str(key))
            if not match or _is_missing(value):
                continue
            prefix, year = match.group(1), int(match.group(2))
            if prefix == "initialTarget":
                targets[year] = _number(value)
                continue
            rank = _FALLBACK_PREFIXES.index(prefix)
            if year not in ranked or rank < ranked[year][0]:
                ranked[year] = (rank, _number(value))

        initial = payload.get("initialTarget")

        is_group = _flag(payload.get("isGroup")) or _text(payload.get("type")).lower() == "group"
        return cls(
            slug=str(slug),
            name=_text(payload.get("name")),
            is_active=_flag(payload.get("isActive"), default=True),
            annual_target=None if _is_missing(initial) else _number(initial),
            targets=targets,
            fallback_targets={year: value for year, (_, value) in ranked.items()},
            group=_optional_text(payload.get("group")),
            is_group=is_group,
        )


# =============================================================================
# SNAPSHOT BUNDLE
# =============================================================================

@dataclass(frozen=True)
class Snapshots:
    """
    The latest full snapshot of each stream.

    Callers replace a stream by building a new bundle (see with_stream); the
    engine never mutates one.
    """
    orders: Tuple[OrderRecord, ...] = ()
    campervans: Tuple[CampervanOrderRecord, ...] = ()
    yard_stock: Tuple[YardStockEntry, ...] = ()
    pgi_events: Tuple[ProductionGateEvent, ...] = ()
    handovers: Tuple[HandoverEvent, ...] = ()
    dealers: Mapping[str, DealerProfile] = field(default_factory=dict)

    def with_stream(self, name: str, records) -> "Snapshots":
        """Return a bundle with one stream replaced wholesale."""
        if name == "dealers":
            return replace(self, dealers=dict(records))
        return replace(self, **{name: tuple(records)})

    @property
    def stream_sizes(self) -> Dict[str, int]:
        return {
            "orders": len(self.orders),
            "campervans": len(self.campervans),
            "yard_stock": len(self.yard_stock),
            "pgi_events": len(self.pgi_events),
            "handovers": len(self.handovers),
            "dealers": len(self.dealers),
        }

