"""Tests for discount, survival, recovery and tabulated curves."""

import math
from datetime import date, timedelta

import pytest

from creditlib.conventions import Frequency
from creditlib.curves import (
    DiscountCurve,
    RecoveryCurve,
    SurvivalCurve,
    TabulatedCurve,
    YieldCurve,
)
from creditlib.interpolation import create_interpolator

AS_OF = date(2024, 3, 20)


def test_flat_discount_curve() -> None:
    """Flat curves discount at exp(-r t) in ACT/365F time."""
    curve = DiscountCurve.flat(AS_OF, 0.03)
    assert curve.df(AS_OF) == 1.0
    assert curve.df(2.0) == pytest.approx(math.exp(-0.06), rel=1e-12)
    assert curve.df(AS_OF + timedelta(days=365)) == pytest.approx(math.exp(-0.03), rel=1e-12)
    assert curve.zero(5.0) == pytest.approx(0.03, rel=1e-12)


def test_forward_discount_factor() -> None:
    curve = DiscountCurve.flat(AS_OF, 0.03)
    start, end = date(2025, 3, 20), date(2026, 3, 20)
    assert curve.discount_factor(start, end) == pytest.approx(
        curve.df(end) / curve.df(start)
    )
    assert curve.discount_factor(end) == curve.df(end)


def test_discount_curve_rejects_bad_pillars() -> None:
    with pytest.raises(ValueError):
        DiscountCurve(AS_OF, [1.0, 2.0], [0.97])
    with pytest.raises(ValueError):
        DiscountCurve(AS_OF, [1.0], [-0.5])


def test_discount_interpolation_between_pillars() -> None:
    """Log-linear zero interpolation gives constant forwards between pillars."""
    curve = DiscountCurve(AS_OF, [1.0, 2.0], [math.exp(-0.02), math.exp(-0.06)])
    assert curve.df(1.5) == pytest.approx(math.exp(-0.04), rel=1e-12)
    assert curve.discount_factor(1.0, 1.5) == pytest.approx(math.exp(-0.02), rel=1e-12)


def test_with_spread_shares_pillars() -> None:
    curve = DiscountCurve.flat(AS_OF, 0.03)
    shifted = curve.with_spread(0.01)
    assert shifted.interpolator is curve.interpolator
    assert curve.spread == 0.0
    assert shifted.df(3.0) == pytest.approx(math.exp(-0.12), rel=1e-12)
    assert shifted.with_spread(-0.01).df(3.0) == pytest.approx(curve.df(3.0), rel=1e-12)


def test_yield_curve_compounding() -> None:
    """Annual yield curve discounts one year at 1 / (1 + y)."""
    curve = YieldCurve(AS_OF, 0.05, "ACT/365F", Frequency.ANNUAL)
    one_year = AS_OF + timedelta(days=365)
    assert curve.df(one_year) == pytest.approx(1 / 1.05, rel=1e-12)
    continuous = YieldCurve(AS_OF, 0.05, "ACT/365F", None)
    assert continuous.df(one_year) == pytest.approx(math.exp(-0.05), rel=1e-12)
    assert curve.df(AS_OF) == 1.0


def test_flat_survival_curve() -> None:
    curve = SurvivalCurve.flat(AS_OF, 0.02)
    assert curve.survival(AS_OF) == 1.0
    assert curve.survival(5.0) == pytest.approx(math.exp(-0.1), rel=1e-12)
    assert curve.default_probability(5.0) == pytest.approx(1 - math.exp(-0.1), rel=1e-12)
    assert curve.survival_probability(2.0, 5.0) == pytest.approx(math.exp(-0.06), rel=1e-12)


def test_survival_is_non_increasing() -> None:
    curve = SurvivalCurve.from_hazard_rates(
        AS_OF,
        [date(2025, 3, 20), date(2027, 3, 20), date(2034, 3, 20)],
        [0.01, 0.03, 0.02],
    )
    values = [curve.survival(AS_OF + timedelta(days=30 * k)) for k in range(150)]
    assert all(b <= a for a, b in zip(values, values[1:]))


def test_survival_from_hazard_rates() -> None:
    """Piecewise-constant hazards integrate to the cumulative hazard."""
    curve = SurvivalCurve.from_hazard_rates(
        AS_OF, [date(2025, 3, 20), date(2027, 3, 20)], [0.01, 0.03]
    )
    t1 = curve._to_year_fraction(date(2025, 3, 20))
    t2 = curve._to_year_fraction(date(2027, 3, 20))
    assert curve.survival(t1) == pytest.approx(math.exp(-0.01 * t1), rel=1e-12)
    mid = 0.5 * (t1 + t2)
    expected = math.exp(-0.01 * t1 - 0.03 * (mid - t1))
    assert curve.survival(mid) == pytest.approx(expected, rel=1e-12)
    with pytest.raises(ValueError):
        SurvivalCurve.from_hazard_rates(AS_OF, [date(2025, 3, 20)], [-0.01])


def test_survival_curve_validation() -> None:
    with pytest.raises(ValueError, match="non-increasing"):
        SurvivalCurve(AS_OF, [1.0, 2.0], [0.95, 0.97])
    with pytest.raises(ValueError):
        SurvivalCurve(AS_OF, [1.0], [1.2])
    with pytest.raises(ValueError):
        SurvivalCurve(AS_OF, [0.0], [1.0])


def test_defaulted_survival_curve() -> None:
    """Survival is zero on and after a recorded default date."""
    default_date = date(2025, 1, 15)
    curve = SurvivalCurve.flat(AS_OF, 0.02).with_default(default_date, date(2025, 2, 5))
    assert curve.survival(date(2025, 1, 14)) > 0.0
    assert curve.survival(default_date) == 0.0
    assert curve.survival_probability(date(2025, 6, 1), date(2026, 1, 1)) == 0.0
    assert curve.is_defaulted(date(2025, 1, 15))
    assert not curve.is_defaulted(date(2025, 1, 14))
    assert curve.default_settlement_date == date(2025, 2, 5)


def test_with_hazard_spread() -> None:
    curve = SurvivalCurve.flat(AS_OF, 0.02)
    shifted = curve.with_hazard_spread(0.01)
    assert shifted.survival(4.0) == pytest.approx(math.exp(-0.12), rel=1e-12)
    assert curve.hazard_spread == 0.0


def test_recovery_curve() -> None:
    assert RecoveryCurve().recovery_rate(AS_OF) == 0.4
    assert RecoveryCurve(0.25).interpolate(3.0) == 0.25
    with pytest.raises(ValueError):
        RecoveryCurve(1.5)
    dated = RecoveryCurve.from_dates(
        AS_OF,
        [AS_OF + timedelta(days=100), AS_OF + timedelta(days=300)],
        [0.3, 0.5],
    )
    assert dated.recovery_rate(AS_OF) == pytest.approx(0.3)
    assert dated.recovery_rate(AS_OF + timedelta(days=200)) == pytest.approx(0.4)
    assert dated.recovery_rate(AS_OF + timedelta(days=900)) == pytest.approx(0.5)


def test_tabulated_curve() -> None:
    curve = TabulatedCurve(
        AS_OF,
        [AS_OF + timedelta(days=365), AS_OF + timedelta(days=730)],
        [0.1, 0.3],
    )
    assert curve.interpolate(AS_OF) == pytest.approx(0.1)
    assert curve.interpolate(1.5) == pytest.approx(0.2)
    assert curve.interpolate(10.0) == pytest.approx(0.3)


def test_interpolator_factory() -> None:
    linear = create_interpolator("linear", [1.0, 2.0], [1.0, 3.0])
    assert linear.interpolate(1.25) == pytest.approx(1.5)
    step = create_interpolator("PIECEWISE_CONSTANT", [1.0, 2.0], [1.0, 3.0])
    assert step.interpolate(1.9) == 1.0
    with pytest.raises(ValueError, match="Unknown interpolation method"):
        create_interpolator("CUBIC", [1.0, 2.0], [1.0, 3.0])
    with pytest.raises(ValueError, match="Duplicate"):
        create_interpolator("LINEAR", [1.0, 1.0], [1.0, 3.0])
