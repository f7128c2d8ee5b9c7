"""Data structures for contingent cash flow pricing.

This module defines the curve container handed to the engine and the leg
present value result it returns.
"""

import math
from dataclasses import dataclass, replace
from typing import List, Optional, Union

from creditlib.curves.discount import DiscountCurve, YieldCurve
from creditlib.curves.recovery import RecoveryCurve
from creditlib.curves.survival import SurvivalCurve
from creditlib.errors import ValidationError, add_error

AnyDiscountCurve = Union[DiscountCurve, YieldCurve]


@dataclass(frozen=True)
class CurveSet:
    """Curves needed to price one name.

    Attributes:
        discount_curve: Discount curve
        survival_curve: Survival curve of the reference credit
        recovery_curve: Recovery curve; falls back to the survival curve's own
            recovery curve, then to a flat 40%
        counterparty_curve: Survival curve of the counterparty (optional)
        correlation: Default correlation between credit and counterparty
    """

    discount_curve: Optional[AnyDiscountCurve]
    survival_curve: Optional[SurvivalCurve]
    recovery_curve: Optional[RecoveryCurve] = None
    counterparty_curve: Optional[SurvivalCurve] = None
    correlation: float = 0.0

    def resolved_recovery_curve(self) -> RecoveryCurve:
        if self.recovery_curve is not None:
            return self.recovery_curve
        if self.survival_curve is not None and self.survival_curve.recovery_curve is not None:
            return self.survival_curve.recovery_curve
        return RecoveryCurve()

    def with_curves(self, **changes) -> "CurveSet":
        """Copy with some curves replaced; the others are shared."""
        return replace(self, **changes)

    def validate(
        self, errors: Optional[List[ValidationError]] = None
    ) -> List[ValidationError]:
        """Append structural problems to ``errors`` and return it."""
        errors = [] if errors is None else errors
        if self.discount_curve is None:
            add_error(errors, "CurveSet", "discount_curve", "Missing discount curve")
        if self.survival_curve is None:
            add_error(errors, "CurveSet", "survival_curve", "Missing survival curve")
        if not -1.0 <= self.correlation <= 1.0:
            add_error(
                errors,
                "CurveSet",
                "correlation",
                f"Correlation must be in [-1, 1]: {self.correlation}",
            )
        return errors


@dataclass(frozen=True)
class CashflowPv:
    """Leg values of a contingent cash flow stream.

    All amounts are in currency units (already scaled by ``notional``) and
    discounted to the settle date.

    Attributes:
        protection_pv: Expected discounted protection (contingent loss) payments
        fee_pv: Expected discounted fee payments, including accrued
        accrued: Premium accrued from the last coupon date to settle
        notional: Notional the amounts are scaled by
    """

    protection_pv: float
    fee_pv: float
    accrued: float
    notional: float

    @property
    def flat_fee_pv(self) -> float:
        return self.fee_pv - self.accrued

    @property
    def pv(self) -> float:
        return self.protection_pv + self.fee_pv

    @property
    def full_model_price(self) -> float:
        return (self.protection_pv + self.fee_pv) / self.notional

    @property
    def flat_price(self) -> float:
        return (self.protection_pv + self.fee_pv - self.accrued) / self.notional

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v) for v in (self.protection_pv, self.fee_pv, self.accrued)
        )
