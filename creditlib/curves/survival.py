"""
Survival probability curves.
"""
import copy
import logging
import math
from datetime import date, datetime
from typing import Optional, Sequence

from pandas import Timestamp

from creditlib.interpolation import create_interpolator
from creditlib.interpolation.linear import zero_rates_from_values

from .base import BaseCurve, TimeInput
from .recovery import RecoveryCurve

logger = logging.getLogger(__name__)


class SurvivalCurve(BaseCurve):
    """
    Term structure of risk-neutral survival probabilities ``S(t)``.

    ``S(as_of) = 1`` and ``S`` is non-increasing. Survival probabilities are
    stored as average hazard rates and interpolated log-linearly by default,
    which is the same as piecewise-constant forward hazard rates.

    A curve may record a known ``default_date``; survival is zero on and after
    that date. ``default_settlement_date`` is when the recovery was (or will
    be) paid. An optional ``recovery_curve`` travels with the credit.
    """

    def __init__(
        self,
        as_of: date,
        pillar_times: Sequence[float],
        survival_probabilities: Sequence[float],
        *,
        default_date: Optional[date] = None,
        default_settlement_date: Optional[date] = None,
        recovery_curve: Optional[RecoveryCurve] = None,
        hazard_spread: float = 0.0,
        interpolation_method: str = "LOGLINEAR_ZERO",
        name: str = "",
    ):
        """
        Initialize survival curve.

        Args:
            as_of: Curve as-of date
            pillar_times: Pillar times in years from ``as_of`` (all positive)
            survival_probabilities: Survival probabilities at pillar times, in (0, 1]
            default_date: Date the credit defaulted, if it has
            default_settlement_date: Date the default was settled (defaults to ``default_date``)
            recovery_curve: Recovery rate term structure for this credit
            hazard_spread: Flat hazard rate added on top of the curve
            interpolation_method: Interpolation applied to average hazard rates
            name: Curve name

        Raises:
            ValueError: If pillars are malformed or probabilities are not a
                non-increasing sequence in (0, 1]
        """
        super().__init__(as_of, name)

        if len(pillar_times) != len(survival_probabilities):
            raise ValueError("Pillar times and survival probabilities must have same length")
        if len(pillar_times) == 0:
            raise ValueError("Need at least 1 pillar point")
        if any(t <= 0 for t in pillar_times):
            raise ValueError("Pillar times must be strictly positive")

        sorted_pairs = sorted(zip(pillar_times, survival_probabilities))
        previous = 1.0
        for t, prob in sorted_pairs:
            if not 0.0 < prob <= 1.0:
                raise ValueError(f"Survival probability at t={t} must be in (0, 1]: {prob}")
            if prob > previous + 1e-12:
                raise ValueError(
                    f"Survival probabilities must be non-increasing: S({t})={prob} > {previous}"
                )
            previous = prob

        self.pillar_times = [t for t, _ in sorted_pairs]
        self.survival_probabilities = [p for _, p in sorted_pairs]
        self.default_date = default_date
        self.default_settlement_date = default_settlement_date or default_date
        self.recovery_curve = recovery_curve
        self.hazard_spread = hazard_spread
        self.interpolation_method = interpolation_method
        self.interpolator = create_interpolator(
            interpolation_method,
            self.pillar_times,
            zero_rates_from_values(self.pillar_times, self.survival_probabilities),
        )

    @classmethod
    def flat(cls, as_of: date, hazard_rate: float, **kwargs) -> "SurvivalCurve":
        """Flat hazard curve: ``S(t) = exp(-hazard_rate t)``."""
        return cls(as_of, [1.0], [math.exp(-hazard_rate)], **kwargs)

    @classmethod
    def from_hazard_rates(
        cls,
        as_of: date,
        end_dates: Sequence[date],
        hazard_rates: Sequence[float],
        **kwargs,
    ) -> "SurvivalCurve":
        """
        Build a curve from piecewise-constant hazard rates.

        Args:
            as_of: Curve as-of date
            end_dates: End date of each hazard segment, increasing
            hazard_rates: Hazard rate on each segment (non-negative)

        Returns:
            Survival curve with pillars at the segment end dates
        """
        if len(end_dates) != len(hazard_rates):
            raise ValueError("End dates and hazard rates must have same length")
        probe = cls.flat(as_of, 0.0)
        times, probabilities = [], []
        cumulative, previous_t = 0.0, 0.0
        for end, hazard in zip(end_dates, hazard_rates):
            if hazard < 0:
                raise ValueError(f"Hazard rate must be non-negative: {hazard}")
            t = probe._to_year_fraction(end)
            if t <= previous_t:
                raise ValueError("Hazard segment end dates must be increasing and after as-of")
            cumulative += hazard * (t - previous_t)
            times.append(t)
            probabilities.append(math.exp(-cumulative))
            previous_t = t
        return cls(as_of, times, probabilities, **kwargs)

    def _is_after_default(self, t: TimeInput) -> bool:
        if self.default_date is None:
            return False
        if isinstance(t, (int, float)):
            return float(t) >= self._to_year_fraction(self.default_date)
        if isinstance(t, (Timestamp, datetime)):
            t = t.date()
        return t >= self.default_date

    def survival(self, t: TimeInput) -> float:
        """Survival probability from the as-of date to time t."""
        if self._is_after_default(t):
            return 0.0
        time_frac = self._to_year_fraction(t)
        if time_frac <= 0:
            return 1.0
        hazard = self.interpolator.interpolate(time_frac) + self.hazard_spread
        return math.exp(-hazard * time_frac)

    def interpolate(self, t: TimeInput) -> float:
        return self.survival(t)

    def survival_probability(self, start: TimeInput, end: Optional[TimeInput] = None) -> float:
        """Conditional survival ``S(end) / S(start)``; ``S(start)`` when ``end`` is omitted."""
        if end is None:
            return self.survival(start)
        s_start = self.survival(start)
        if s_start <= 0.0:
            return 0.0
        return self.survival(end) / s_start

    def default_probability(self, start: TimeInput, end: Optional[TimeInput] = None) -> float:
        return 1.0 - self.survival_probability(start, end)

    def is_defaulted(self, as_at: date) -> bool:
        """True if the credit defaulted on or before ``as_at``."""
        return self.default_date is not None and self.default_date <= as_at

    def with_hazard_spread(self, spread: float) -> "SurvivalCurve":
        """Copy with ``spread`` added to the hazard rate; pillars are shared."""
        shifted = copy.copy(self)
        shifted.hazard_spread = self.hazard_spread + spread
        return shifted

    def with_default(
        self,
        default_date: date,
        default_settlement_date: Optional[date] = None,
        recovery_curve: Optional[RecoveryCurve] = None,
    ) -> "SurvivalCurve":
        """Copy of this curve marked as defaulted on ``default_date``."""
        defaulted = copy.copy(self)
        defaulted.default_date = default_date
        defaulted.default_settlement_date = default_settlement_date or default_date
        if recovery_curve is not None:
            defaulted.recovery_curve = recovery_curve
        logger.debug("%s marked defaulted on %s", self, default_date)
        return defaulted
