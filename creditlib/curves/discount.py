"""
Discount curves.
"""
import copy
import logging
import math
from datetime import date
from typing import Optional, Sequence, Union

from creditlib.conventions.daycount import DayCountConvention, get_day_count_convention
from creditlib.conventions.types import Frequency
from creditlib.interpolation import create_interpolator
from creditlib.interpolation.linear import zero_rates_from_values

from .base import BaseCurve, TimeInput

logger = logging.getLogger(__name__)


class DiscountCurve(BaseCurve):
    """
    Discount factor term structure built from pillar discount factors.

    Discount factors are stored as continuously compounded zero rates and
    interpolated with ``interpolation_method``. An additive ``spread`` (a
    continuously compounded rate) shifts the whole curve; it is how implied
    discount spreads are solved without rebuilding the pillars.
    """

    def __init__(
        self,
        as_of: date,
        pillar_times: Sequence[float],
        discount_factors: Sequence[float],
        interpolation_method: str = "LOGLINEAR_ZERO",
        name: str = "",
        spread: float = 0.0,
    ):
        """
        Initialize discount curve.

        Args:
            as_of: Curve valuation date
            pillar_times: Pillar times in years from ``as_of``
            discount_factors: Discount factors at pillar times
            interpolation_method: Interpolation applied to zero rates
            name: Curve name
            spread: Continuously compounded spread added to every zero rate
        """
        super().__init__(as_of, name)

        if len(pillar_times) != len(discount_factors):
            raise ValueError("Pillar times and discount factors must have same length")
        for i, df in enumerate(discount_factors):
            if df <= 0:
                raise ValueError(f"Discount factor at pillar {i} must be positive: {df}")

        sorted_pairs = sorted(zip(pillar_times, discount_factors))
        for i in range(1, len(sorted_pairs)):
            increase = sorted_pairs[i][1] - sorted_pairs[i - 1][1]
            if increase > 1e-6:
                logger.warning(
                    "Discount factors increasing at pillar %s (increase = %.8f)",
                    i,
                    increase,
                )

        self.pillar_times = list(pillar_times)
        self.discount_factors = list(discount_factors)
        self.interpolation_method = interpolation_method
        self.spread = spread
        self.interpolator = create_interpolator(
            interpolation_method,
            self.pillar_times,
            zero_rates_from_values(self.pillar_times, self.discount_factors),
        )

    @classmethod
    def flat(cls, as_of: date, rate: float, name: str = "") -> "DiscountCurve":
        """Flat continuously compounded curve: ``DF(t) = exp(-rate t)``."""
        return cls(as_of, [1.0], [math.exp(-rate)], name=name)

    def df(self, t: TimeInput) -> float:
        """Discount factor from the as-of date to time t."""
        time_frac = self._to_year_fraction(t)
        if time_frac <= 0:
            return 1.0
        zero_rate = self.interpolator.interpolate(time_frac) + self.spread
        return math.exp(-zero_rate * time_frac)

    def interpolate(self, t: TimeInput) -> float:
        return self.df(t)

    def discount_factor(self, start: TimeInput, end: Optional[TimeInput] = None) -> float:
        """Discount factor ``DF(start, end)``; ``DF(as_of, start)`` when ``end`` is omitted."""
        if end is None:
            return self.df(start)
        return self.df(end) / self.df(start)

    def zero(self, t: TimeInput) -> float:
        """Continuously compounded zero rate at time t (spread included)."""
        time_frac = self._to_year_fraction(t)
        if time_frac <= 0:
            return self.interpolator.interpolate(0.0) + self.spread
        return -math.log(self.df(time_frac)) / time_frac

    def with_spread(self, spread: float) -> "DiscountCurve":
        """
        Return a copy shifted by ``spread`` on top of the current spread.

        The interpolator and pillars are shared with this curve.
        """
        shifted = copy.copy(self)
        shifted.spread = self.spread + spread
        return shifted


class YieldCurve(BaseCurve):
    """
    Discount curve implied by a single periodically compounded yield.

    ``DF(t) = (1 + y / f) ** (-f * tau(as_of, t))`` with ``tau`` measured in
    ``day_count``. ``frequency=None`` means continuous compounding.
    """

    def __init__(
        self,
        as_of: date,
        yield_: float,
        day_count: Union[str, DayCountConvention] = "ACT/365F",
        frequency: Optional[Frequency] = Frequency.ANNUAL,
        name: str = "",
    ):
        super().__init__(as_of, name)
        self.yield_ = yield_
        self.day_count = get_day_count_convention(day_count)
        self.frequency = frequency

    def df(self, t: TimeInput) -> float:
        if isinstance(t, (int, float)):
            tau = float(t)
        else:
            tau = self.day_count.year_fraction(self.as_of, t)
        if tau <= 0:
            return 1.0
        if self.frequency is None:
            return math.exp(-self.yield_ * tau)
        freq = self.frequency.per_year()
        base = 1.0 + self.yield_ / freq
        if base <= 0:
            raise ValueError(f"Yield {self.yield_} too low for {freq} compounding periods")
        return base ** (-freq * tau)

    def interpolate(self, t: TimeInput) -> float:
        return self.df(t)

    def discount_factor(self, start: TimeInput, end: Optional[TimeInput] = None) -> float:
        if end is None:
            return self.df(start)
        return self.df(end) / self.df(start)
