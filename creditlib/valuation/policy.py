"""Pricing policy: numerical and product-behaviour switches for the engine."""

from dataclasses import dataclass
from typing import List, Optional

from creditlib.conventions.types import TimeUnit
from creditlib.errors import ValidationError, add_error


@dataclass(frozen=True)
class PricingPolicy:
    """Switches consumed by :func:`creditlib.valuation.engine.price_cashflows`.

    Attributes:
        step_size: Integration grid step size (0 gives one step per period)
        step_unit: Integration grid step unit
        default_timing: Where in a sub-step default is assumed to occur (0 = start, 1 = end)
        accrued_on_default: Whether the premium accrued to default is paid
        accrued_fraction_on_default: Share of the accrued premium paid on default
        discounting_accrued: Discount accrual-on-default at the default point
            (exact) instead of at the coupon pay date (fast)
        include_settle_payments: Treat payments falling on the settle date as unpaid
        include_maturity_protection: Extend protection one day past maturity
        use_log_linear_approximation: Integrate each sub-step exactly assuming
            piecewise-flat hazard and short rates
        funded: Funded note; recoveries and principal go through the fee leg
    """

    step_size: int = 3
    step_unit: TimeUnit = TimeUnit.MONTHS
    default_timing: float = 0.5
    accrued_on_default: bool = True
    accrued_fraction_on_default: float = 1.0
    discounting_accrued: bool = False
    include_settle_payments: bool = False
    include_maturity_protection: bool = False
    use_log_linear_approximation: bool = False
    funded: bool = False

    def validate(
        self, errors: Optional[List[ValidationError]] = None
    ) -> List[ValidationError]:
        """Append range violations to ``errors`` and return it."""
        errors = [] if errors is None else errors
        if self.step_size < 0:
            add_error(errors, "PricingPolicy", "step_size", f"Step size must be >= 0: {self.step_size}")
        if not 0.0 <= self.default_timing <= 1.0:
            add_error(
                errors,
                "PricingPolicy",
                "default_timing",
                f"Default timing must be in [0, 1]: {self.default_timing}",
            )
        if not 0.0 <= self.accrued_fraction_on_default <= 1.0:
            add_error(
                errors,
                "PricingPolicy",
                "accrued_fraction_on_default",
                f"Accrued fraction on default must be in [0, 1]: "
                f"{self.accrued_fraction_on_default}",
            )
        return errors
