"""Market conventions: day counts, frequencies and time units."""

from .daycount import (
    DAY_COUNT_CONVENTIONS,
    DayCountConvention,
    get_day_count_convention,
)
from .types import CdsType, Frequency, LegDirection, TimeUnit

__all__ = [
    "DAY_COUNT_CONVENTIONS",
    "DayCountConvention",
    "get_day_count_convention",
    "CdsType",
    "Frequency",
    "LegDirection",
    "TimeUnit",
]
