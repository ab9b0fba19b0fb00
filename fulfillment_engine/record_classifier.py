"""
Record Classifier Module
Per-record predicates: stock vs customer, unsigned orders, empty slots and
model-range codes.
"""

from enum import Enum
from typing import Iterable, Optional, Union

from .records import CampervanOrderRecord, OrderRecord, YardStockEntry

UNKNOWN_RANGE = "UNK"
OTHER_RANGE = "OTHER"
RANGE_CODE_LENGTH = 3

FINISHED_STATUSES = ("finished", "finish")


class StockType(str, Enum):
    STOCK = "Stock"
    CUSTOMER = "Customer"


def is_stock_customer(customer_name: Optional[str]) -> bool:
    """True when the customer name ends with the word 'stock' (any case)."""
    return str(customer_name or "").strip().lower().endswith("stock")


def is_stock_order(record: Union[OrderRecord, CampervanOrderRecord]) -> bool:
    # Campervans carry no customer and always count as customer orders
    if isinstance(record, CampervanOrderRecord):
        return False
    return is_stock_customer(record.customer)


def stock_type_of(record: Union[OrderRecord, CampervanOrderRecord]) -> StockType:
    return StockType.STOCK if is_stock_order(record) else StockType.CUSTOMER


def has_chassis(record: OrderRecord) -> bool:
    return record.chassis is not None and record.chassis.strip() != ""


def is_unsigned_order(record: OrderRecord) -> bool:
    """A chassis has been allocated but signed plans are absent or 'no'."""
    signed = (record.signed_plans_received or "").strip().lower()
    return has_chassis(record) and (not signed or signed == "no")


def is_empty_slot(record: OrderRecord) -> bool:
    """
    A dealer slot with no chassis key at all.

    A chassis field that is present but blank is not an empty slot.
    """
    return record.dealer.strip() != "" and record.chassis is None


def is_finished(production_status: Optional[str]) -> bool:
    return str(production_status or "").strip().lower() in FINISHED_STATUSES


def infer_yard_stock_type(
    entry: YardStockEntry,
    matching_order: Optional[OrderRecord] = None,
) -> StockType:
    """
    Decide whether a yard vehicle is stock or customer-owned.

    The schedule's customer name is trusted first, then the yard entry's own
    customer, then the declared type. Anything unrecognised is a customer unit.
    """
    customer = matching_order.customer if matching_order is not None else entry.customer
    if is_stock_customer(customer):
        return StockType.STOCK

    declared = (entry.declared_type or "").strip().lower()
    if "stock" in declared:
        return StockType.STOCK
    if "customer" in declared or "retail" in declared:
        return StockType.CUSTOMER
    return StockType.CUSTOMER


def model_range_code(
    model_name: Optional[str],
    chassis_id: Optional[str],
    unknown: str = UNKNOWN_RANGE,
) -> str:
    """First three characters of the model, else of the chassis, uppercased."""
    model = str(model_name or "").strip()
    if model:
        return model[:RANGE_CODE_LENGTH].upper()
    chassis = str(chassis_id or "").strip()
    if chassis:
        return chassis[:RANGE_CODE_LENGTH].upper()
    return unknown


def is_allowed_range(range_code: str, allow_list: Iterable[str]) -> bool:
    return range_code in {code.upper() for code in allow_list}
