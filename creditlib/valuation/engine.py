"""Contingent cash flow pricing engine.

The engine integrates a payment schedule against discount, survival and
recovery curves:

* fee payments are weighted by the probability of surviving to the end of
  their accrual period, plus (optionally) the premium accrued to a default
  inside the period;
* protection payments collect the expected discounted loss over their
  protection window.

Each window is cut into sub-steps on the policy grid. On a sub-step
``[t0, t1]`` default is assumed to happen at ``t0 + default_timing * (t1 - t0)``;
discount factors at that point are interpolated log-linearly between the
nodes. With ``use_log_linear_approximation`` the sub-step integrals are done
exactly under piecewise-flat hazard and short rates.

Everything here is a pure function of its arguments.
"""

import logging
import math
from datetime import date, timedelta
from typing import Dict, List, Optional, Protocol, Tuple

from creditlib.curves.base import Curve
from creditlib.errors import ComputationError, InvalidInputError, ValidationError
from creditlib.models.counterparty import joint_survival, overall_survival_probability
from creditlib.schedule.payments import (
    DefaultSettlement,
    InterestPayment,
    PaymentSchedule,
)
from creditlib.utils.grid import build_time_grid

from .policy import PricingPolicy
from .types import AnyDiscountCurve, CashflowPv, CurveSet

logger = logging.getLogger(__name__)

LOG_LINEAR_MIN_STEP = 1.0 / 256.0
_DAYS_PER_YEAR = 365.0
_TINY_RATE = 1e-12


class ContingentRisk(Protocol):
    """Default risk seen by one contingent cash flow stream."""

    supports_exact_integration: bool

    def survival(self, dt: date) -> float:
        """Probability the stream is still alive at ``dt``."""
        ...

    def default_step(self, t0: date, t1: date, timing: float) -> Tuple[float, float, float]:
        """``(default probability, loss, recovery)`` per unit notional over ``[t0, t1]``."""
        ...

    def recovery_rate(self, t0: date, t1: date, timing: float) -> float:
        """Recovery rate at the default point of ``[t0, t1]``."""
        ...


class SingleNameRisk:
    """Default risk of one reference credit, optionally with counterparty risk.

    Survival is conditional on both names being alive at ``settle``.
    """

    supports_exact_integration = True

    def __init__(self, curves: CurveSet, settle: date):
        self.settle = settle
        self.survival_curve = curves.survival_curve
        self.counterparty_curve = curves.counterparty_curve
        self.correlation = curves.correlation
        self.recovery_curve = curves.resolved_recovery_curve()
        self._memo: Dict[date, float] = {}

    def survival(self, dt: date) -> float:
        if dt <= self.settle:
            return 1.0
        value = self._memo.get(dt)
        if value is None:
            value = joint_survival(
                self.settle,
                dt,
                self.survival_curve,
                self.counterparty_curve,
                self.correlation,
            )
            self._memo[dt] = value
        return value

    def recovery_rate(self, t0: date, t1: date, timing: float) -> float:
        r0 = self.recovery_curve.recovery_rate(t0)
        if timing == 0.0:
            return r0
        r1 = self.recovery_curve.recovery_rate(t1)
        return r0 + timing * (r1 - r0)

    def default_step(self, t0: date, t1: date, timing: float) -> Tuple[float, float, float]:
        default_probability = max(self.survival(t0) - self.survival(t1), 0.0)
        recovery = self.recovery_rate(t0, t1, timing)
        return (
            default_probability,
            default_probability * (1.0 - recovery),
            default_probability * recovery,
        )


class OrderStatisticRisk:
    """Default risk of the kth default in a basket.

    ``loss_curve`` gives the expected cumulative loss (per unit tranche
    notional) from the kth default and ``survival_curve`` the probability
    that fewer than k names have defaulted.
    """

    supports_exact_integration = False

    def __init__(self, loss_curve: Curve, survival_curve: Curve):
        self.loss_curve = loss_curve
        self.survival_curve = survival_curve

    def survival(self, dt: date) -> float:
        return self.survival_curve.interpolate(dt)

    def default_step(self, t0: date, t1: date, timing: float) -> Tuple[float, float, float]:
        default_probability = max(self.survival(t0) - self.survival(t1), 0.0)
        loss = max(self.loss_curve.interpolate(t1) - self.loss_curve.interpolate(t0), 0.0)
        return default_probability, loss, max(default_probability - loss, 0.0)

    def recovery_rate(self, t0: date, t1: date, timing: float) -> float:
        default_probability, _, recovery = self.default_step(t0, t1, timing)
        return recovery / default_probability if default_probability > 0.0 else 0.0


class _Discounting:
    """Discount factors from ``settle``, memoized by date."""

    def __init__(self, discount_curve: AnyDiscountCurve, settle: date):
        self.discount_curve = discount_curve
        self.settle = settle
        self._memo: Dict[date, float] = {}

    def __call__(self, dt: date) -> float:
        value = self._memo.get(dt)
        if value is None:
            value = self.discount_curve.discount_factor(self.settle, dt)
            self._memo[dt] = value
        return value

    def at_default_point(self, t0: date, t1: date, timing: float) -> float:
        d0 = self(t0)
        if timing == 0.0:
            return d0
        d1 = self(t1)
        if timing == 1.0:
            return d1
        return d0 ** (1.0 - timing) * d1 ** timing


def validate_inputs(
    curves: CurveSet,
    policy: PricingPolicy,
    errors: Optional[List[ValidationError]] = None,
) -> List[ValidationError]:
    """Structural checks run before any integration."""
    errors = [] if errors is None else errors
    curves.validate(errors)
    policy.validate(errors)
    return errors


def _is_live(pay_date: date, settle: date, policy: PricingPolicy) -> bool:
    if policy.include_settle_payments:
        return pay_date >= settle
    return pay_date > settle


def _year_fraction(start: date, end: date) -> float:
    return (end - start).days / _DAYS_PER_YEAR


def _protection_step(
    risk: ContingentRisk,
    discounting: _Discounting,
    t0: date,
    t1: date,
    policy: PricingPolicy,
) -> Tuple[float, float]:
    """Expected discounted ``(loss, recovery)`` per unit notional on one sub-step."""
    if policy.use_log_linear_approximation and risk.supports_exact_integration:
        dt = _year_fraction(t0, t1)
        s0, s1 = risk.survival(t0), risk.survival(t1)
        if dt >= LOG_LINEAR_MIN_STEP and s0 > 0.0 and s1 > 0.0:
            d0, d1 = discounting(t0), discounting(t1)
            hazard = math.log(s0 / s1) / dt
            lam = hazard + math.log(d0 / d1) / dt
            if abs(lam) < _TINY_RATE:
                integral = hazard * s0 * d0 * dt
            else:
                integral = hazard / lam * s0 * d0 * (1.0 - (s1 * d1) / (s0 * d0))
            recovery = risk.recovery_rate(t0, t1, policy.default_timing)
            return integral * (1.0 - recovery), integral * recovery

    _, loss, recovery = risk.default_step(t0, t1, policy.default_timing)
    if loss == 0.0 and recovery == 0.0:
        return 0.0, 0.0
    df = discounting.at_default_point(t0, t1, policy.default_timing)
    return loss * df, recovery * df


def _integrate_protection(
    risk: ContingentRisk,
    discounting: _Discounting,
    begin: date,
    end: date,
    policy: PricingPolicy,
) -> Tuple[float, float]:
    loss_total, recovery_total = 0.0, 0.0
    grid = build_time_grid(begin, end, policy.step_size, policy.step_unit)
    for t0, t1 in zip(grid[:-1], grid[1:]):
        loss, recovery = _protection_step(risk, discounting, t0, t1, policy)
        loss_total += loss
        recovery_total += recovery
    return loss_total, recovery_total


def _accrual_on_default(
    payment: InterestPayment,
    risk: ContingentRisk,
    discounting: _Discounting,
    begin: date,
    end: date,
    policy: PricingPolicy,
) -> float:
    """Expected discounted premium accrued to a default inside ``[begin, end]``."""
    a = payment.accrual_start
    period_years = _year_fraction(a, payment.accrual_end)
    timing = policy.default_timing
    pay_df = discounting(payment.pay_date)
    total = 0.0

    grid = build_time_grid(begin, end, policy.step_size, policy.step_unit)
    for t0, t1 in zip(grid[:-1], grid[1:]):
        if (
            policy.use_log_linear_approximation
            and risk.supports_exact_integration
            and period_years > 0.0
        ):
            dt = _year_fraction(t0, t1)
            s0, s1 = risk.survival(t0), risk.survival(t1)
            if dt >= LOG_LINEAR_MIN_STEP and s0 > 0.0 and s1 > 0.0:
                d0, d1 = discounting(t0), discounting(t1)
                hazard = math.log(s0 / s1) / dt
                lam = hazard + math.log(d0 / d1) / dt
                a0 = _year_fraction(a, t0)
                if abs(lam) < _TINY_RATE:
                    value = hazard * s0 * d0 * (a0 * dt + 0.5 * dt * dt)
                else:
                    decay = (s1 * d1) / (s0 * d0)
                    value = hazard / lam * s0 * d0 * (
                        a0 + (1.0 - (1.0 + (a0 + dt) * lam) * decay) / lam
                    )
                total += payment.amount / period_years * value
                continue

        default_probability, _, _ = risk.default_step(t0, t1, timing)
        if default_probability == 0.0:
            continue
        accrued = payment.accrued(t0) + timing * (payment.accrued(t1) - payment.accrued(t0))
        if policy.discounting_accrued:
            df = discounting.at_default_point(t0, t1, timing)
        else:
            df = pay_df
        total += accrued * default_probability * df
    return total


def _settlement_values(
    settlement: DefaultSettlement, df: float, policy: PricingPolicy
) -> Tuple[float, float]:
    """``(protection, fee)`` present values of a crystallized default."""
    if policy.funded:
        return 0.0, (settlement.accrual_amount + settlement.recovery_amount) * df
    return settlement.loss_amount * df, settlement.accrual_amount * df


def integrate_schedule(
    schedule: PaymentSchedule,
    discount_curve: AnyDiscountCurve,
    risk: ContingentRisk,
    settle: date,
    policy: PricingPolicy,
    notional: float = 1.0,
) -> CashflowPv:
    """Integrate every live payment of ``schedule`` against ``risk``.

    Args:
        schedule: Unit-notional payment schedule
        discount_curve: Discount curve
        risk: Survival and loss model of the stream
        settle: Settlement date; values are discounted to it
        policy: Integration and product switches
        notional: Scaling applied to every amount

    Returns:
        Leg present values

    Raises:
        ComputationError: If the integration produces a non-finite value
    """
    discounting = _Discounting(discount_curve, settle)
    protection, fee, accrued = 0.0, 0.0, 0.0

    for payment in schedule.interest_payments():
        if not _is_live(payment.pay_date, settle, policy):
            continue
        if payment.accrual_start < settle < payment.accrual_end:
            accrued += payment.accrued(settle)
        fee += payment.amount * discounting(payment.pay_date) * risk.survival(payment.accrual_end)
        if policy.accrued_on_default and policy.accrued_fraction_on_default > 0.0:
            begin = max(payment.accrual_start, settle)
            if payment.accrual_end > begin:
                fee += policy.accrued_fraction_on_default * _accrual_on_default(
                    payment, risk, discounting, begin, payment.accrual_end, policy
                )

    protection_payments = schedule.protection_payments()
    maturity = max((p.accrual_end for p in protection_payments), default=None)
    for payment in protection_payments:
        end = payment.accrual_end
        if policy.include_maturity_protection and end == maturity:
            end += timedelta(days=1)
        if end <= settle:
            continue
        begin = max(payment.accrual_start, settle)
        loss, recovery = _integrate_protection(risk, discounting, begin, end, policy)
        if policy.funded:
            fee -= payment.notional * recovery
        else:
            protection += payment.notional * loss

    for payment in schedule.principal_exchanges():
        if not _is_live(payment.pay_date, settle, policy):
            continue
        survival = risk.survival(payment.pay_date) if payment.contingent else 1.0
        fee += payment.amount * discounting(payment.pay_date) * survival

    settlement = schedule.default_settlement()
    if settlement is not None and _is_live(settlement.pay_date, settle, policy):
        settled_protection, settled_fee = _settlement_values(
            settlement, discounting(settlement.pay_date), policy
        )
        protection += settled_protection
        fee += settled_fee

    result = CashflowPv(protection * notional, fee * notional, accrued * notional, notional)
    if not result.is_finite():
        raise ComputationError(
            f"Non-finite present value on {settle}: protection={result.protection_pv}, "
            f"fee={result.fee_pv}, accrued={result.accrued}"
        )
    return result


def _price_defaulted(
    schedule: PaymentSchedule,
    discount_curve: AnyDiscountCurve,
    settle: date,
    policy: PricingPolicy,
    notional: float,
) -> CashflowPv:
    settlement = schedule.default_settlement()
    if settlement is None or not _is_live(settlement.pay_date, settle, policy):
        logger.debug("Defaulted credit with no unsettled default settlement on %s", settle)
        return CashflowPv(0.0, 0.0, 0.0, notional)

    df = discount_curve.discount_factor(settle, settlement.pay_date)
    protection, fee = _settlement_values(settlement, df, policy)
    logger.debug(
        "Defaulted on %s; using crystallized settlement paid %s",
        settlement.default_date,
        settlement.pay_date,
    )
    return CashflowPv(
        protection * notional,
        fee * notional,
        settlement.accrual_amount * notional,
        notional,
    )


def price_cashflows(
    schedule: PaymentSchedule,
    curves: CurveSet,
    settle: date,
    policy: Optional[PricingPolicy] = None,
    notional: float = 1.0,
) -> CashflowPv:
    """Price a single-name contingent cash flow stream.

    This is the main entry point of the engine. If the credit defaulted on or
    before ``settle`` the integral is skipped and the amounts recorded in the
    schedule's :class:`DefaultSettlement` are discounted instead.

    Args:
        schedule: Unit-notional payment schedule
        curves: Discount, survival, recovery and counterparty curves
        settle: Settlement date
        policy: Pricing policy (defaults to ``PricingPolicy()``)
        notional: Notional the unit schedule is scaled by

    Returns:
        CashflowPv with protection, fee and accrued amounts

    Raises:
        InvalidInputError: If the curves or policy fail validation
        ComputationError: If the integration produces a non-finite value

    Examples:
        >>> pv = price_cashflows(schedule, CurveSet(discount, survival), date(2024, 1, 2))
        >>> pv.flat_price == (pv.protection_pv + pv.fee_pv - pv.accrued) / pv.notional
        True
    """
    policy = policy or PricingPolicy()
    errors = validate_inputs(curves, policy)
    if errors:
        raise InvalidInputError(errors)

    if curves.survival_curve.is_defaulted(settle):
        return _price_defaulted(schedule, curves.discount_curve, settle, policy, notional)

    risk = SingleNameRisk(curves, settle)
    return integrate_schedule(schedule, curves.discount_curve, risk, settle, policy, notional)


def survival_probability(
    start: date,
    end: date,
    curves: CurveSet,
    policy: Optional[PricingPolicy] = None,
) -> float:
    """Joint survival over ``[start, end]``; ``S(end)/S(start)`` without a counterparty."""
    policy = policy or PricingPolicy()
    return overall_survival_probability(
        start,
        end,
        curves.survival_curve,
        curves.counterparty_curve,
        curves.correlation,
        policy.step_size,
        policy.step_unit,
    )


def expected_loss_rate(
    start: date,
    end: date,
    curves: CurveSet,
    policy: Optional[PricingPolicy] = None,
) -> float:
    """``(1 - JointSurvival(start, end)) * (1 - R(end))`` per unit notional."""
    survival = survival_probability(start, end, curves, policy)
    recovery = curves.resolved_recovery_curve().recovery_rate(end)
    return (1.0 - survival) * (1.0 - recovery)
