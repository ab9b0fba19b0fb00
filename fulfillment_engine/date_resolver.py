"""
Date Resolver Module
Flexible date parsing and calendar arithmetic for loosely formatted schedule data.

Upstream feeds mix "15/03/2026", "2026-03-15" and full ISO timestamps in the
same column. Every parser here returns None on bad input instead of raising,
so callers can drop a record and move on.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

_SLASH_PATTERN = re.compile(r"^(\d{1,4})/(\d{1,2})/(\d{1,4})$")
_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}")

DAYS_PER_WEEK = 7


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _is_year_group(group: str) -> bool:
    return len(group) == 4 or int(group) > 31


def _parse_slash(first: str, middle: str, last: str) -> Optional[date]:
    """
    Resolve a three-group slash date.

    A group greater than 31, or exactly four digits long, is the year. With no
    such group the last one is the year and the first is the day.
    """
    if _is_year_group(last):
        year, month, day = int(last), int(middle), int(first)
    elif _is_year_group(first):
        year, month, day = int(first), int(middle), int(last)
    else:
        year, month, day = int(last), int(middle), int(first)

    if year < 100:
        year += 2000
    return _build_date(year, month, day)


def parse_flexible_date(text: Optional[str]) -> Optional[date]:
    """
    Parse a dd/mm/yyyy or ISO style string into a calendar date.

    Args:
        text: Raw value from a snapshot field

    Returns:
        The parsed date, or None when the value is empty or malformed
    """
    if text is None:
        return None
    if isinstance(text, datetime):
        return text.date()
    if isinstance(text, date):
        return text

    raw = str(text).strip()
    if not raw:
        return None

    slash = _SLASH_PATTERN.match(raw)
    if slash:
        return _parse_slash(*slash.groups())

    iso = _ISO_PATTERN.match(raw)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
        return _build_date(year, month, day)

    # Full ISO timestamps such as handover "2026-02-03T04:05:06.000Z"
    if _ISO_PREFIX.match(raw):
        try:
            return isoparse(raw).date()
        except (ValueError, OverflowError):
            return None

    return None


def year_of(text: Optional[str]) -> Optional[int]:
    """Calendar year of a flexible date string, or None."""
    parsed = parse_flexible_date(text)
    return parsed.year if parsed else None


# =============================================================================
# CALENDAR ARITHMETIC
# =============================================================================

def add_days(value: date, count: int) -> date:
    return value + timedelta(days=count)


def add_months(value: date, count: int) -> date:
    """Shift by whole months, clamping the day to the end of short months."""
    return value + relativedelta(months=count)


def start_of_month(value: date) -> date:
    return date(value.year, value.month, 1)


def start_of_week(value: date) -> date:
    """Monday of the week containing value."""
    return value - timedelta(days=value.weekday())


def start_of_year(year: int) -> date:
    return date(year, 1, 1)


def weeks_until(text: Optional[str], reference: date) -> Optional[float]:
    """
    Signed number of weeks from reference to the parsed date.

    Negative when the date is already behind reference; None when the text
    does not parse.
    """
    parsed = parse_flexible_date(text)
    if parsed is None:
        return None
    return (parsed - reference).days / DAYS_PER_WEEK
