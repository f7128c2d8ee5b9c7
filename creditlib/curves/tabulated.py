"""
Tabulated curves for externally supplied term structures.
"""
from datetime import date
from typing import Optional, Sequence

from creditlib.interpolation import LinearInterpolator

from .base import BaseCurve, TimeInput


class TabulatedCurve(BaseCurve):
    """Linearly interpolated values on dates, held flat outside the range.

    Typical use is to carry nth-loss and nth-survival curves produced by a
    basket model into the order-statistic pricer. ``jump_date`` records the
    date the event behind the curve (the nth default) has already happened.
    """

    def __init__(
        self,
        as_of: date,
        dates: Sequence[date],
        values: Sequence[float],
        name: str = "",
        jump_date: Optional[date] = None,
    ):
        super().__init__(as_of, name)
        if len(dates) != len(values):
            raise ValueError("Dates and values must have same length")
        self.dates = list(dates)
        self.values = list(values)
        self.jump_date = jump_date
        self.interpolator = LinearInterpolator(
            [self._to_year_fraction(d) for d in self.dates], self.values
        )

    def interpolate(self, t: TimeInput) -> float:
        return self.interpolator.interpolate(self._to_year_fraction(t))
