"""
Pacing Calculator Module
Compares actual volume against a dealer's annual target, prorated to date.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from .date_resolver import start_of_year


class Direction(str, Enum):
    GROWTH = "Growth"
    DECLINE = "Decline"
    FLAT = "Flat"


@dataclass(frozen=True)
class PacingDelta:
    """Actual vs target; percent is None when there is no target to compare to."""
    percent: Optional[float]
    direction: Direction
    no_target: bool = False

    @property
    def label(self) -> str:
        if self.no_target:
            return "No target"
        return f"{abs(self.percent):.1f}%"


@dataclass(frozen=True)
class PacingFigure:
    """One actual/target pair with its delta."""
    actual: float
    target: float
    delta: PacingDelta


@dataclass(frozen=True)
class PacingFigures:
    annual_target: float
    forecast_year: PacingFigure
    year_to_date: PacingFigure
    weekly_pace: PacingFigure
    elapsed_days: int
    total_days: int


def total_days_in_year(year: int) -> int:
    return (start_of_year(year + 1) - start_of_year(year)).days


def elapsed_days(year: int, today: date) -> int:
    """
    Days of year elapsed by today, counting today itself.

    0 before the year starts and the full year once it has ended.
    """
    start = start_of_year(year)
    total = total_days_in_year(year)
    if today < start:
        return 0
    return min((today - start).days + 1, total)


def year_to_date_target(annual_target: float, year: int, today: date) -> float:
    if not annual_target:
        return 0.0
    return annual_target * elapsed_days(year, today) / total_days_in_year(year)


def delta(actual: float, target: float) -> PacingDelta:
    """Percentage difference of actual from target."""
    diff = actual - target
    if diff > 0:
        direction = Direction.GROWTH
    elif diff < 0:
        direction = Direction.DECLINE
    else:
        direction = Direction.FLAT

    if not target:
        return PacingDelta(percent=None, direction=direction, no_target=True)
    return PacingDelta(percent=diff / target * 100, direction=direction)


def target_per_week(annual_target: float, weeks_per_year: int = 52) -> float:
    return annual_target / weeks_per_year if annual_target else 0.0


def average_per_week(count: int, window_days: int) -> float:
    weeks = window_days / 7
    return count / weeks if weeks else 0.0


class PacingCalculator:
    """Builds the three pacing figures shown on a dealer dashboard."""

    def __init__(self, weeks_per_year: int = 52, pace_window_days: int = 70):
        self.weeks_per_year = weeks_per_year
        self.pace_window_days = pace_window_days

    def figure(self, actual: float, target: float) -> PacingFigure:
        return PacingFigure(actual=actual, target=target, delta=delta(actual, target))

    def calculate(
        self,
        annual_target: float,
        year: int,
        today: date,
        forecast_year_count: int,
        received_year_count: int,
        received_in_window: int,
    ) -> PacingFigures:
        """
        Args:
            annual_target: Dealer's target for the year (0 when unset)
            year: Reporting year
            today: Reference date
            forecast_year_count: Orders forecast for production in year
            received_year_count: Orders received in year
            received_in_window: Orders received in the trailing pace window
        """
        ytd = year_to_date_target(annual_target, year, today)
        weekly = average_per_week(received_in_window, self.pace_window_days)

        return PacingFigures(
            annual_target=annual_target,
            forecast_year=self.figure(forecast_year_count, annual_target),
            year_to_date=self.figure(received_year_count, ytd),
            weekly_pace=self.figure(weekly, target_per_week(annual_target, self.weeks_per_year)),
            elapsed_days=elapsed_days(year, today),
            total_days=total_days_in_year(year),
        )
