from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta
from pandas import Timestamp

from creditlib.conventions.types import TimeUnit

DATE_FMT = "%Y-%m-%d"
COMPACT_FMT = "%Y%m%d"

DateLike = Union[str, date, datetime, Timestamp]


def to_date(date_like: DateLike) -> date:
    """
    Normalize a date-like value to ``datetime.date``.
    Accepts 'YYYY-MM-DD' and 'YYYYMMDD' string formats.
    """
    if isinstance(date_like, Timestamp):
        return date_like.date()
    if isinstance(date_like, datetime):
        return date_like.date()
    if isinstance(date_like, date):
        return date_like
    if isinstance(date_like, str):
        for fmt in (DATE_FMT, COMPACT_FMT):
            try:
                return datetime.strptime(date_like, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"Unsupported date string format: {date_like!r}")
    raise TypeError(f"Unsupported type for date: {type(date_like)}")


def tenor_delta(n: int, unit: TimeUnit) -> relativedelta:
    """Return the ``relativedelta`` for ``n`` units of ``unit``."""
    if unit is TimeUnit.DAYS:
        return relativedelta(days=n)
    if unit is TimeUnit.WEEKS:
        return relativedelta(weeks=n)
    if unit is TimeUnit.MONTHS:
        return relativedelta(months=n)
    if unit is TimeUnit.YEARS:
        return relativedelta(years=n)
    raise ValueError(f"Cannot build a tenor from time unit {unit}")


def add_tenor(start: date, n: int, unit: TimeUnit) -> date:
    """Shift ``start`` by ``n`` units (negative ``n`` rolls backward)."""
    return to_date(start) + tenor_delta(n, unit)
