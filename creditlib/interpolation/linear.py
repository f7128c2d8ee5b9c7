"""
Linear-family interpolation methods.
"""
from typing import Sequence

import numpy as np

from .base import Interpolator


class LinearInterpolator(Interpolator):
    """Linear interpolation on values with flat extrapolation.

    Used for recovery term structures and externally supplied loss or
    survival tables.
    """

    def interpolate(self, t: float) -> float:
        if t <= self.pillars[0]:
            return float(self.values[0])
        if t >= self.pillars[-1]:
            return float(self.values[-1])

        i = self._segment(t)
        t1, t2 = self.pillars[i], self.pillars[i + 1]
        v1, v2 = self.values[i], self.values[i + 1]
        weight = (t - t1) / (t2 - t1)
        return float(v1 + weight * (v2 - v1))


class LogLinearZeroInterpolator(Interpolator):
    """Log-linear interpolation of a probability-like term structure.

    Values are continuously compounded average rates ``z`` so that the
    interpolated quantity is ``exp(-z t)``. Linear interpolation of
    ``-z t`` gives piecewise-constant forward rates (for discount curves) or
    hazard rates (for survival curves). Extrapolation holds the nearest
    average rate flat.
    """

    def __init__(self, pillars: Sequence[float], zero_rates: Sequence[float]):
        """
        Initialize with average rates.

        Args:
            pillars: Pillar times in years
            zero_rates: Continuously compounded average rates to each pillar
        """
        super().__init__(pillars, zero_rates)
        self.log_values = -self.values * self.pillars

    def interpolate(self, t: float) -> float:
        """Interpolate the average rate at time t."""
        if t <= 0:
            return float(self.values[0])
        return -self._interpolate_log(t) / t

    def _interpolate_log(self, t: float) -> float:
        if t <= self.pillars[0]:
            return float(-self.values[0] * t)
        if t >= self.pillars[-1]:
            return float(-self.values[-1] * t)

        i = self._segment(t)
        t1, t2 = self.pillars[i], self.pillars[i + 1]
        log1, log2 = self.log_values[i], self.log_values[i + 1]
        weight = (t - t1) / (t2 - t1)
        return float(log1 + weight * (log2 - log1))


class PiecewiseConstantInterpolator(Interpolator):
    """Step function interpolation (left-continuous value held to next pillar)."""

    def interpolate(self, t: float) -> float:
        if t <= self.pillars[0]:
            return float(self.values[0])
        if t >= self.pillars[-1]:
            return float(self.values[-1])
        return float(self.values[self._segment(t)])


def zero_rates_from_values(pillars: Sequence[float], values: Sequence[float]) -> np.ndarray:
    """Convert discount factors or survival probabilities to average rates."""
    times = np.asarray(pillars, dtype=float)
    probs = np.asarray(values, dtype=float)
    if np.any(probs <= 0):
        raise ValueError("Values must be strictly positive to take logarithms")
    rates = np.zeros_like(times)
    positive = times > 0
    rates[positive] = -np.log(probs[positive]) / times[positive]
    return rates
