"""
Basic types and enums used across schedules, curves and pricers.
"""

from enum import Enum


class Frequency(Enum):
    """Payment frequencies."""

    ANNUAL = 12
    SEMIANNUAL = 6
    QUARTERLY = 3
    MONTHLY = 1

    def months(self) -> int:
        return self.value

    def per_year(self) -> int:
        return 12 // self.value


class TimeUnit(Enum):
    """Units for integration step sizes and tenors.

    ``NONE`` disables sub-stepping: each period is integrated in one step.
    """

    NONE = "NONE"
    DAYS = "DAYS"
    WEEKS = "WEEKS"
    MONTHS = "MONTHS"
    YEARS = "YEARS"


class LegDirection(Enum):
    """Cash flow direction of a leg from the holder's point of view."""

    PAY = -1
    RECEIVE = 1

    @property
    def sign(self) -> float:
        return float(self.value)


class CdsType(Enum):
    """Note types.

    Funded notes pay recovery and principal through the fee leg instead of
    carrying a separate protection leg.
    """

    UNFUNDED = "UNFUNDED"
    FUNDED_FIXED = "FUNDED_FIXED"

    @property
    def is_funded(self) -> bool:
        return self is not CdsType.UNFUNDED
