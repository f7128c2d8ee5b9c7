"""Tests for the contingent cash flow engine."""

import math
from dataclasses import replace
from datetime import date

import pytest

from creditlib.conventions import CdsType, LegDirection, TimeUnit
from creditlib.curves import DiscountCurve, RecoveryCurve, SurvivalCurve
from creditlib.errors import ComputationError, InvalidInputError
from creditlib.instruments import CDS
from creditlib.valuation import (
    CurveSet,
    PricingPolicy,
    expected_loss_rate,
    price_cashflows,
    survival_probability,
)

AS_OF = date(2024, 3, 20)
MATURITY = date(2029, 3, 20)
HAZARD, RATE, RECOVERY = 0.02, 0.03, 0.4


def exact_protection() -> float:
    """Continuous-time protection leg for flat hazard and flat rate."""
    t = (MATURITY - AS_OF).days / 365.0
    lam = HAZARD + RATE
    return (1 - RECOVERY) * HAZARD / lam * (1 - math.exp(-lam * t))


def protection(schedule, curves, **policy) -> float:
    return price_cashflows(schedule, curves, AS_OF, PricingPolicy(**policy)).protection_pv


def test_buyer_leg_signs(schedule, curves) -> None:
    """The protection buyer holds positive protection and negative fee."""
    pv = price_cashflows(schedule, curves, AS_OF)
    assert pv.protection_pv > 0.0
    assert pv.fee_pv < 0.0
    assert pv.accrued == 0.0
    assert pv.pv == pv.protection_pv + pv.fee_pv


def test_flat_price_identity(schedule, curves) -> None:
    pv = price_cashflows(schedule, curves, AS_OF, notional=5_000_000)
    assert pv.notional == 5_000_000
    assert pv.flat_price == (pv.protection_pv + pv.fee_pv - pv.accrued) / pv.notional
    assert pv.full_model_price == (pv.protection_pv + pv.fee_pv) / pv.notional
    assert pv.flat_fee_pv == pv.fee_pv - pv.accrued


def test_notional_scales_linearly(schedule, curves) -> None:
    unit = price_cashflows(schedule, curves, AS_OF)
    scaled = price_cashflows(schedule, curves, AS_OF, notional=1e6)
    assert scaled.protection_pv == pytest.approx(1e6 * unit.protection_pv, rel=1e-12)
    assert scaled.fee_pv == pytest.approx(1e6 * unit.fee_pv, rel=1e-12)


def test_protection_increases_with_loss_given_default(schedule, discount_curve, survival_curve) -> None:
    values = [
        price_cashflows(
            schedule, CurveSet(discount_curve, survival_curve, RecoveryCurve(r)), AS_OF
        ).protection_pv
        for r in (0.8, 0.6, 0.4, 0.2, 0.0)
    ]
    assert all(v >= 0.0 for v in values)
    assert all(b > a for a, b in zip(values, values[1:]))


def test_zero_hazard_has_no_protection(schedule, discount_curve) -> None:
    """A riskless credit pays every coupon for sure and never pays protection."""
    curves = CurveSet(discount_curve, SurvivalCurve.flat(AS_OF, 0.0))
    pv = price_cashflows(schedule, curves, AS_OF)
    assert pv.protection_pv == 0.0
    expected = sum(
        p.amount * discount_curve.discount_factor(AS_OF, p.pay_date)
        for p in schedule.interest_payments()
    )
    assert pv.fee_pv == pytest.approx(expected, rel=1e-12)


def test_protection_converges_under_grid_refinement(schedule, curves) -> None:
    """Finer grids approach the continuous value; the timing sets the bias direction.

    The DF is taken at the left node for timing 0 and the right node for timing 1,
    so with falling DFs timing 0 sits above the limit and timing 1 below it.
    """
    reference = exact_protection()
    steps = [(3, TimeUnit.MONTHS), (1, TimeUnit.MONTHS), (1, TimeUnit.DAYS)]

    early = [protection(schedule, curves, step_size=n, step_unit=u, default_timing=0.0) for n, u in steps]
    late = [protection(schedule, curves, step_size=n, step_unit=u, default_timing=1.0) for n, u in steps]

    assert early[0] >= early[1] >= early[2] >= reference
    assert late[0] <= late[1] <= late[2] <= reference
    assert abs(early[2] - reference) < abs(early[0] - reference)
    assert late[2] == pytest.approx(reference, rel=1e-4)

    mid = protection(schedule, curves, step_size=3, step_unit=TimeUnit.MONTHS)
    assert mid == pytest.approx(reference, rel=1e-4)


def test_log_linear_integration_is_exact_for_flat_curves(schedule, curves) -> None:
    value = protection(schedule, curves, use_log_linear_approximation=True)
    assert value == pytest.approx(exact_protection(), rel=1e-10)
    fine = protection(schedule, curves, step_size=1, step_unit=TimeUnit.DAYS)
    assert value == pytest.approx(fine, rel=1e-5)


def test_log_linear_accrual_matches_fine_grid(schedule, curves) -> None:
    exact = price_cashflows(
        schedule, curves, AS_OF, PricingPolicy(use_log_linear_approximation=True)
    )
    fine = price_cashflows(
        schedule,
        curves,
        AS_OF,
        PricingPolicy(step_size=1, step_unit=TimeUnit.DAYS, discounting_accrued=True),
    )
    assert exact.fee_pv == pytest.approx(fine.fee_pv, rel=1e-5)


def test_single_step_per_period(schedule, curves) -> None:
    value = protection(schedule, curves, step_size=0)
    assert value == pytest.approx(exact_protection(), rel=1e-3)


def test_accrual_on_default_switches(schedule, curves) -> None:
    """Accrual on default adds premium; discounting it at default makes it larger."""
    with_accrual = price_cashflows(schedule, curves, AS_OF).fee_pv
    without = price_cashflows(
        schedule, curves, AS_OF, PricingPolicy(accrued_on_default=False)
    ).fee_pv
    half = price_cashflows(
        schedule, curves, AS_OF, PricingPolicy(accrued_fraction_on_default=0.5)
    ).fee_pv
    discounted = price_cashflows(
        schedule, curves, AS_OF, PricingPolicy(discounting_accrued=True)
    ).fee_pv
    assert with_accrual < half < without < 0.0
    assert half == pytest.approx(0.5 * (with_accrual + without), rel=1e-12)
    assert discounted < with_accrual


def test_maturity_protection_adds_a_day(schedule, curves) -> None:
    base = protection(schedule, curves)
    extended = protection(schedule, curves, include_maturity_protection=True)
    assert extended > base
    assert extended - base < 1e-4


def test_accrued_at_mid_period_settle(schedule, curves) -> None:
    settle = date(2024, 5, 5)
    pv = price_cashflows(schedule, curves, settle)
    assert pv.accrued == pytest.approx(-0.01 * 46 / 360)
    assert pv.flat_fee_pv == pytest.approx(pv.fee_pv - pv.accrued)


def test_settle_payments_switch(curves) -> None:
    """A coupon paid on the settle date only counts when settle payments are included."""
    schedule = CDS(date(2023, 12, 20), MATURITY, 0.01).payment_schedule()
    excluded = price_cashflows(schedule, curves, AS_OF).fee_pv
    included = price_cashflows(
        schedule, curves, AS_OF, PricingPolicy(include_settle_payments=True)
    ).fee_pv
    coupon = schedule.interest_payments()[0]
    assert coupon.pay_date == AS_OF
    assert included - excluded == pytest.approx(coupon.amount, rel=1e-9)


def test_engine_survival_probability(curves, survival_curve) -> None:
    expected = survival_curve.survival_probability(AS_OF, MATURITY)
    assert survival_probability(AS_OF, MATURITY, curves) == expected
    assert expected_loss_rate(AS_OF, MATURITY, curves) == pytest.approx((1 - expected) * 0.6)


def test_riskless_counterparty_leaves_price_unchanged(schedule, curves) -> None:
    """Pricing with a zero-hazard counterparty is exactly the plain single-name price."""
    plain = price_cashflows(schedule, curves, AS_OF)
    with_counterparty = price_cashflows(
        schedule,
        replace(curves, counterparty_curve=SurvivalCurve.flat(AS_OF, 0.0), correlation=0.7),
        AS_OF,
    )
    assert with_counterparty == plain


def test_counterparty_risk_shortens_fee_leg(schedule, curves) -> None:
    """Premiums stop at the first default of either name."""
    plain = price_cashflows(schedule, curves, AS_OF)
    risky = price_cashflows(
        schedule,
        replace(curves, counterparty_curve=SurvivalCurve.flat(AS_OF, 0.05), correlation=0.5),
        AS_OF,
    )
    assert plain.fee_pv < risky.fee_pv < 0.0
    assert risky.protection_pv > 0.0


def test_validation_collects_every_error(schedule, survival_curve) -> None:
    curves = CurveSet(None, survival_curve, correlation=1.5)
    with pytest.raises(InvalidInputError) as excinfo:
        price_cashflows(schedule, curves, AS_OF, PricingPolicy(step_size=-1))
    fields = {e.field for e in excinfo.value.errors}
    assert fields == {"discount_curve", "correlation", "step_size"}


def test_non_finite_result_raises(schedule, curves, discount_curve) -> None:
    broken = replace(curves, discount_curve=discount_curve.with_spread(float("nan")))
    with pytest.raises(ComputationError):
        price_cashflows(schedule, broken, AS_OF)


def test_defaulted_credit_uses_settlement(discount_curve) -> None:
    """A credit that defaulted before settle is valued from its crystallized default."""
    effective = date(2023, 12, 20)
    curve = SurvivalCurve.flat(
        AS_OF, 0.02, recovery_curve=RecoveryCurve(0.3)
    ).with_default(date(2024, 3, 1), date(2024, 4, 10))
    product = CDS(effective, MATURITY, 0.01)
    schedule = product.payment_schedule(survival_curve=curve)
    pv = price_cashflows(schedule, CurveSet(discount_curve, curve), AS_OF, notional=100.0)

    df = discount_curve.discount_factor(AS_OF, date(2024, 4, 10))
    accrual = -0.01 * 72 / 360
    assert pv.protection_pv == pytest.approx(100.0 * 0.7 * df)
    assert pv.fee_pv == pytest.approx(100.0 * accrual * df)
    assert pv.accrued == pytest.approx(100.0 * accrual)


def test_settled_default_is_worthless(discount_curve) -> None:
    curve = SurvivalCurve.flat(AS_OF, 0.02).with_default(date(2024, 2, 1), date(2024, 3, 1))
    schedule = CDS(date(2023, 12, 20), MATURITY, 0.01).payment_schedule(survival_curve=curve)
    pv = price_cashflows(schedule, CurveSet(discount_curve, curve), AS_OF)
    assert (pv.protection_pv, pv.fee_pv, pv.accrued) == (0.0, 0.0, 0.0)


def test_funded_note_routes_recovery_through_fee(discount_curve, survival_curve) -> None:
    product = CDS(
        AS_OF,
        MATURITY,
        0.05,
        direction=LegDirection.RECEIVE,
        cds_type=CdsType.FUNDED_FIXED,
    )
    curves = CurveSet(discount_curve, survival_curve)
    pv = price_cashflows(product.payment_schedule(), curves, AS_OF, PricingPolicy(funded=True))
    assert pv.protection_pv == 0.0
    assert 0.9 < pv.flat_price < 1.2

    without_recovery = price_cashflows(
        product.payment_schedule(),
        replace(curves, recovery_curve=RecoveryCurve(0.0)),
        AS_OF,
        PricingPolicy(funded=True),
    )
    assert without_recovery.fee_pv < pv.fee_pv
