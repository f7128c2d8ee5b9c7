"""
QuantLib-backed day count conventions.

Coupon accruals, accrual-on-default fractions and yield compounding all
measure time through these conventions. Curve time is always ACT/365F.
"""

from datetime import date, datetime
from typing import Union

import QuantLib as ql

DateInput = Union[date, datetime]


def _to_ql_date(dt: DateInput) -> ql.Date:
    """Convert Python date/datetime to QuantLib Date."""
    py_date = dt.date() if isinstance(dt, datetime) else dt
    return ql.Date(py_date.day, py_date.month, py_date.year)


class DayCountConvention:
    """A named wrapper around a QuantLib ``DayCounter``."""

    def __init__(self, name: str, ql_daycount: ql.DayCounter):
        self.name = name
        self._ql_daycount = ql_daycount

    def year_fraction(self, start: DateInput, end: DateInput) -> float:
        """Accrual fraction between two dates (negative if ``end < start``)."""
        return self._ql_daycount.yearFraction(_to_ql_date(start), _to_ql_date(end))

    def day_count(self, start: DateInput, end: DateInput) -> int:
        """Number of days between two dates under this convention."""
        return self._ql_daycount.dayCount(_to_ql_date(start), _to_ql_date(end))

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"DayCountConvention({self.name!r})"


ACT_360 = DayCountConvention("ACT/360", ql.Actual360())
ACT_365F = DayCountConvention("ACT/365F", ql.Actual365Fixed())
THIRTY_360 = DayCountConvention("30/360", ql.Thirty360(ql.Thirty360.BondBasis))
THIRTY_360E = DayCountConvention("30E/360", ql.Thirty360(ql.Thirty360.European))
ACT_ACT = DayCountConvention("ACT/ACT", ql.ActualActual(ql.ActualActual.ISDA))

DAY_COUNT_CONVENTIONS = {
    "ACT/360": ACT_360,
    "ACTUAL/360": ACT_360,
    "ACT/365F": ACT_365F,
    "ACT/365": ACT_365F,
    "ACTUAL/365F": ACT_365F,
    "30/360": THIRTY_360,
    "30U/360": THIRTY_360,
    "30/360 US": THIRTY_360,
    "30E/360": THIRTY_360E,
    "30/360E": THIRTY_360E,
    "ACT/ACT": ACT_ACT,
    "ACTUAL/ACTUAL": ACT_ACT,
    "ACT/ACT ISDA": ACT_ACT,
}


def get_day_count_convention(
    name: Union[str, DayCountConvention],
) -> DayCountConvention:
    """Get a day count convention by name (instances pass through)."""
    if isinstance(name, DayCountConvention):
        return name
    name_upper = name.upper()
    if name_upper not in DAY_COUNT_CONVENTIONS:
        raise ValueError(
            f"Unknown day count convention: {name}. "
            f"Available: {list(DAY_COUNT_CONVENTIONS.keys())}"
        )
    return DAY_COUNT_CONVENTIONS[name_upper]
