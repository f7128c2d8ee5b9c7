"""
Base curve classes and protocols.

Every curve measures time as an ACT/365F year fraction from its as-of date
and accepts dates, datetimes, pandas Timestamps or raw year fractions.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional, Protocol, Union

from pandas import Timestamp

from creditlib.conventions.daycount import (
    DayCountConvention,
    get_day_count_convention,
)

TimeInput = Union[date, datetime, Timestamp, float]


class Curve(Protocol):
    """Protocol for anything that can be read as a function of time."""

    def interpolate(self, t: TimeInput) -> float:
        """Curve value at time t."""
        ...


class BaseCurve(ABC):
    """Base implementation for dated curves."""

    def __init__(
        self,
        as_of: Optional[date],
        name: str = "",
        time_day_count: Union[str, DayCountConvention] = "ACT/365F",
    ):
        """
        Initialize base curve.

        Args:
            as_of: Curve as-of date (time zero)
            name: Optional curve name for identification
            time_day_count: Day-count convention to convert dates to curve times
        """
        self.as_of = as_of
        self.name = name
        self._time_day_count = get_day_count_convention(time_day_count)

    def _to_year_fraction(self, dt: TimeInput) -> float:
        """Convert a date-like value to the curve's year fraction basis."""
        if isinstance(dt, (int, float)):
            return float(dt)
        if isinstance(dt, Timestamp):
            dt = dt.date()
        elif isinstance(dt, datetime):
            dt = dt.date()
        if self.as_of is None:
            raise ValueError(f"{self} has no as-of date; cannot place {dt} in time")
        return self._time_day_count.year_fraction(self.as_of, dt)

    @abstractmethod
    def interpolate(self, t: TimeInput) -> float:
        """Curve value at time t."""

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.name})"
            if self.name
            else self.__class__.__name__
        )
