"""
Base class for curve interpolation methods.
"""
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


class Interpolator(ABC):
    """Interpolates values given on a grid of pillar times (in years)."""

    def __init__(self, pillars: Sequence[float], values: Sequence[float]):
        """
        Initialize interpolator.

        Args:
            pillars: Pillar times in years from the curve as-of date
            values: Values at the pillars (zero rates, hazard rates, losses, ...)
        """
        if len(pillars) != len(values):
            raise ValueError("Pillars and values must have same length")
        if len(pillars) < 1:
            raise ValueError("Need at least 1 point for interpolation")

        order = np.argsort(np.asarray(pillars, dtype=float), kind="stable")
        self.pillars = np.asarray(pillars, dtype=float)[order]
        self.values = np.asarray(values, dtype=float)[order]

        if len(np.unique(self.pillars)) != len(self.pillars):
            raise ValueError("Duplicate pillar times not allowed")

    @abstractmethod
    def interpolate(self, t: float) -> float:
        """Interpolate value at time t."""

    def _segment(self, t: float) -> int:
        """Index ``i`` such that ``pillars[i] <= t < pillars[i + 1]``."""
        return int(np.searchsorted(self.pillars, t, side="right")) - 1
