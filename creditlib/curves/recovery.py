"""
Recovery rate curves.
"""
from datetime import date
from typing import Optional, Sequence

from creditlib.config import DEFAULT_RECOVERY_RATE
from creditlib.interpolation import LinearInterpolator

from .base import BaseCurve, TimeInput


class RecoveryCurve(BaseCurve):
    """
    Recovery rate ``R(t)`` in [0, 1].

    A constant curve needs no as-of date. A dated curve interpolates linearly
    between dated rates and holds the end values flat.
    """

    def __init__(
        self,
        rate: float = DEFAULT_RECOVERY_RATE,
        *,
        as_of: Optional[date] = None,
        pillar_times: Optional[Sequence[float]] = None,
        rates: Optional[Sequence[float]] = None,
        name: str = "",
    ):
        super().__init__(as_of, name)
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Recovery rate must be in [0, 1]: {rate}")
        self.rate = rate
        self.interpolator: Optional[LinearInterpolator] = None
        if rates is not None:
            if pillar_times is None or as_of is None:
                raise ValueError("Dated recovery rates need an as-of date and pillar times")
            for value in rates:
                if not 0.0 <= value <= 1.0:
                    raise ValueError(f"Recovery rate must be in [0, 1]: {value}")
            self.interpolator = LinearInterpolator(pillar_times, rates)

    @classmethod
    def from_dates(
        cls, as_of: date, dates: Sequence[date], rates: Sequence[float], name: str = ""
    ) -> "RecoveryCurve":
        """Dated recovery curve; the first rate doubles as the headline ``rate``."""
        probe = cls(as_of=as_of)
        times = [probe._to_year_fraction(d) for d in dates]
        return cls(rates[0], as_of=as_of, pillar_times=times, rates=rates, name=name)

    def recovery_rate(self, t: TimeInput) -> float:
        if self.interpolator is None:
            return self.rate
        return self.interpolator.interpolate(self._to_year_fraction(t))

    def interpolate(self, t: TimeInput) -> float:
        return self.recovery_rate(t)
