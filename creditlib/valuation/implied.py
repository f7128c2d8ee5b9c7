"""Implied quantities: yields, spreads and break-even premiums.

Each solve shifts exactly one input (discount curve, hazard rate or coupon),
reprices with :func:`price_cashflows` and hands the guarded objective to
:func:`find_root`.
"""

import logging
from datetime import date
from typing import Optional

from creditlib.conventions.types import Frequency
from creditlib.curves.discount import YieldCurve
from creditlib.schedule.payments import PaymentSchedule

from .engine import price_cashflows
from .policy import PricingPolicy
from .solver import find_root, guarded
from .types import CurveSet

logger = logging.getLogger(__name__)


def implied_hazard_rate_spread(
    target_price: float,
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
    notional: float = 1.0,
) -> float:
    """Flat hazard spread over the survival curve that reprices to ``target_price``.

    ``target_price`` is a full model price, ``(ProtectionPv + FeePv) / Notional``.

    Raises:
        RootBracketError: If no spread in [-1, 10] matches the target
        SolverConvergenceError: If the solver does not converge
    """
    base = curves.survival_curve

    def full_price(spread: float) -> float:
        shifted = curves.with_curves(survival_curve=base.with_hazard_spread(spread))
        return price_cashflows(schedule, shifted, settle, policy, notional).full_model_price

    result = find_root(
        guarded(full_price), target_price, 0.0, 0.01, lower_limit=-1.0, upper_limit=10.0
    )
    logger.debug("Implied hazard spread %s after %s iterations", result.root, result.iterations)
    return result.root


def implied_discount_spread(
    target_price: float,
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
    notional: float = 1.0,
) -> float:
    """Continuously compounded spread over the discount curve that reprices to ``target_price``."""
    base = curves.discount_curve

    def full_price(spread: float) -> float:
        shifted = curves.with_curves(discount_curve=base.with_spread(spread))
        return price_cashflows(schedule, shifted, settle, policy, notional).full_model_price

    result = find_root(
        guarded(full_price), target_price, 0.0, 0.01, lower_limit=-1.0, upper_limit=10.0
    )
    logger.debug("Implied discount spread %s after %s iterations", result.root, result.iterations)
    return result.root


def irr(
    price: float,
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
    notional: float = 1.0,
    day_count: str = "ACT/365F",
    frequency: Optional[Frequency] = Frequency.ANNUAL,
) -> float:
    """Yield that discounts the contingent cash flows to the full ``price``.

    The discount curve is replaced by a single yield compounded at
    ``frequency`` (continuously if ``None``) with accrual in ``day_count``.
    """
    lower_limit = -0.99 * frequency.per_year() if frequency is not None else -1.0

    def full_price(yield_: float) -> float:
        curve = YieldCurve(settle, yield_, day_count, frequency)
        return price_cashflows(
            schedule, curves.with_curves(discount_curve=curve), settle, policy, notional
        ).full_model_price

    result = find_root(
        guarded(full_price), price, 0.0, 0.1, lower_limit=lower_limit, upper_limit=10.0
    )
    logger.debug("Irr %s after %s iterations", result.root, result.iterations)
    return result.root


def premium_sensitivity(
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
    notional: float = 1.0,
) -> float:
    """Change in flat fee value for a unit change in the running premium.

    Fee value is linear in the coupon, so the difference between coupons 1
    and 0 isolates the premium annuity from any principal, recovery or
    upfront flows sharing the fee leg.
    """
    unit = price_cashflows(schedule.with_coupon(1.0), curves, settle, policy, notional)
    zero = price_cashflows(schedule.with_coupon(0.0), curves, settle, policy, notional)
    return unit.flat_fee_pv - zero.flat_fee_pv


def risky_duration(
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
) -> float:
    """Value of one unit of running premium per unit notional, excluding accrued."""
    return abs(premium_sensitivity(schedule, curves, settle, policy, 1.0))


def break_even_premium(
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
) -> float:
    """Running premium that makes the flat value of the contract zero.

    Raises:
        RootBracketError: If no premium in [-1, 10] zeroes the value
    """

    def flat_value(premium: float) -> float:
        return price_cashflows(schedule.with_coupon(premium), curves, settle, policy).flat_price

    result = find_root(
        guarded(flat_value),
        0.0,
        0.0,
        0.01,
        lower_limit=-1.0,
        upper_limit=10.0,
        f_tolerance=1e-14,
    )
    logger.debug("Break-even premium %s after %s iterations", result.root, result.iterations)
    return result.root


def break_even_fee(
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
) -> float:
    """Upfront amount, as a fraction of notional, the fee payer owes at settle.

    Equal to the flat price: ``(ProtectionPv + FlatFeePv) / Notional``.
    """
    return price_cashflows(schedule, curves, settle, policy).flat_price
