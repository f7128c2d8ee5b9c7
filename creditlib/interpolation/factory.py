"""
Factory for creating interpolators by method name.
"""
from typing import Sequence

from .base import Interpolator
from .linear import (
    LinearInterpolator,
    LogLinearZeroInterpolator,
    PiecewiseConstantInterpolator,
)

INTERPOLATION_METHODS = ("LINEAR", "LOGLINEAR_ZERO", "PIECEWISE_CONSTANT")


def create_interpolator(
    method: str, pillars: Sequence[float], values: Sequence[float]
) -> Interpolator:
    """
    Create an interpolator based on method name.

    Args:
        method: Interpolation method name
        pillars: Time points
        values: Values to interpolate

    Returns:
        Configured interpolator
    """
    method_upper = method.upper()

    if method_upper == "LINEAR":
        return LinearInterpolator(pillars, values)
    elif method_upper == "LOGLINEAR_ZERO":
        return LogLinearZeroInterpolator(pillars, values)
    elif method_upper == "PIECEWISE_CONSTANT":
        return PiecewiseConstantInterpolator(pillars, values)
    else:
        raise ValueError(
            f"Unknown interpolation method: {method}. "
            f"Available: {', '.join(INTERPOLATION_METHODS)}"
        )
