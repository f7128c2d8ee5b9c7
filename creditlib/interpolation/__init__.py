"""
Interpolation methods for discount, survival and tabulated curves.
"""

from .base import Interpolator
from .factory import create_interpolator
from .linear import (
    LinearInterpolator,
    LogLinearZeroInterpolator,
    PiecewiseConstantInterpolator,
)

__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "LogLinearZeroInterpolator",
    "PiecewiseConstantInterpolator",
    "create_interpolator",
]
