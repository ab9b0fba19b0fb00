"""
Bucket Builder Module
Ordered, contiguous month and week buckets over a planning horizon.
"""

from bisect import bisect_right
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from .date_resolver import add_days, add_months, start_of_month, start_of_week


@dataclass(frozen=True)
class TimeBucket:
    """Half-open interval [start, end) with a display label."""
    start: date
    end: date
    label: str

    def contains(self, value: date) -> bool:
        return self.start <= value < self.end


def month_label(value: date) -> str:
    return value.strftime("%b %Y")    # "Apr 2026"


def week_label(value: date) -> str:
    return f"{value.day} {value:%b}"  # "6 Apr"


def build_month_buckets(anchor: date, count: int) -> List[TimeBucket]:
    """
    count consecutive calendar months, starting with the anchor's month.

    Pass today for a rolling horizon or January 1 of the target year for a
    fixed one.
    """
    first = start_of_month(anchor)
    buckets = []
    for index in range(max(count, 0)):
        start = add_months(first, index)
        buckets.append(TimeBucket(start=start, end=add_months(first, index + 1), label=month_label(start)))
    return buckets


def build_week_buckets(anchor: date, count: int) -> List[TimeBucket]:
    """count consecutive Monday weeks; the last one contains the anchor."""
    current_week = start_of_week(anchor)
    buckets = []
    for index in range(max(count, 0)):
        start = add_days(current_week, -7 * (count - 1 - index))
        buckets.append(TimeBucket(start=start, end=add_days(start, 7), label=week_label(start)))
    return buckets


def bucket_index(value: Optional[date], buckets: Sequence[TimeBucket]) -> Optional[int]:
    """Position of the bucket containing value, or None outside the horizon."""
    if value is None or not buckets:
        return None
    position = bisect_right([bucket.start for bucket in buckets], value) - 1
    if position < 0 or not buckets[position].contains(value):
        return None
    return position


def assign_to_bucket(value: Optional[date], buckets: Sequence[TimeBucket]) -> Optional[TimeBucket]:
    index = bucket_index(value, buckets)
    return None if index is None else buckets[index]
