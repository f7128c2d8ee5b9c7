"""
Curve providers consumed read-only by the pricing engine.
"""

from .base import BaseCurve, Curve
from .discount import DiscountCurve, YieldCurve
from .recovery import RecoveryCurve
from .survival import SurvivalCurve
from .tabulated import TabulatedCurve

__all__ = [
    "BaseCurve",
    "Curve",
    "DiscountCurve",
    "YieldCurve",
    "RecoveryCurve",
    "SurvivalCurve",
    "TabulatedCurve",
]
