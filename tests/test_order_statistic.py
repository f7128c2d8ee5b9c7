"""Tests for nth-to-default pricing on order-statistic curves."""

import math
from dataclasses import replace
from datetime import date

import pytest
from dateutil.relativedelta import relativedelta

from creditlib.basket import NthToDefaultPricer, evaluate_order_statistic
from creditlib.curves import TabulatedCurve
from creditlib.errors import InvalidInputError
from creditlib.instruments import CDS, NthToDefault
from creditlib.valuation import CashflowPricer

AS_OF = date(2024, 3, 20)
MATURITY = date(2029, 3, 20)
NOTIONAL = 1_000_000


class IndependentBasket:
    """Homogeneous basket of independent names with flat hazard rates."""

    def __init__(self, size: int, hazard: float, recovery: float = 0.4):
        self.basket_size = size
        dates = [AS_OF + relativedelta(months=m) for m in range(73)]
        times = [(d - AS_OF).days / 365.0 for d in dates]
        self._survival = {}
        self._loss = {}
        for k in range(1, size + 1):
            survival = []
            for t in times:
                p = 1.0 - math.exp(-hazard * t)
                survival.append(
                    sum(math.comb(size, j) * p ** j * (1 - p) ** (size - j) for j in range(k))
                )
            self._survival[k] = TabulatedCurve(AS_OF, dates, survival)
            self._loss[k] = TabulatedCurve(AS_OF, dates, [(1 - recovery) * (1 - s) for s in survival])

    def nth_loss_curve(self, k: int) -> TabulatedCurve:
        return self._loss[k]

    def nth_survival_curve(self, k: int) -> TabulatedCurve:
        return self._survival[k]


@pytest.fixture
def basket() -> IndependentBasket:
    return IndependentBasket(5, 0.02)


def ntd(discount_curve, basket, first=1, covered=1) -> NthToDefaultPricer:
    product = NthToDefault(AS_OF, MATURITY, 0.02, first=first, number_covered=covered)
    return NthToDefaultPricer(product, AS_OF, AS_OF, discount_curve, basket, notional=NOTIONAL)


def test_evaluate_order_statistic() -> None:
    assert evaluate_order_statistic(2, 3, float) == 9.0


def test_one_name_first_to_default_is_single_name(discount_curve, survival_curve) -> None:
    """With one name the first default is that name's default."""
    pricer = ntd(discount_curve, IndependentBasket(1, 0.02))
    single = CashflowPricer(
        CDS(AS_OF, MATURITY, 0.02), AS_OF, AS_OF, discount_curve, survival_curve, notional=NOTIONAL
    )
    assert pricer.protection_pv() == pytest.approx(single.protection_pv(), rel=1e-9)
    assert pricer.fee_pv() == pytest.approx(single.fee_pv(), rel=1e-9)
    assert pricer.risky_duration() == pytest.approx(single.risky_duration(), rel=1e-9)


def test_later_orders_are_cheaper(discount_curve, basket) -> None:
    values = [ntd(discount_curve, basket, first=k).protection_pv() for k in range(1, 6)]
    assert all(v > 0.0 for v in values)
    assert all(b < a for a, b in zip(values, values[1:]))


def test_covered_orders_split_notional(discount_curve, basket) -> None:
    """Each covered default is paid on notional / covered."""
    pair = ntd(discount_curve, basket, first=1, covered=2)
    first = ntd(discount_curve, basket, first=1)
    second = ntd(discount_curve, basket, first=2)
    assert pair.protection_pv() == pytest.approx(
        0.5 * (first.protection_pv() + second.protection_pv()), rel=1e-12
    )
    assert pair.fee_pv() == pytest.approx(0.5 * (first.fee_pv() + second.fee_pv()), rel=1e-12)


def test_expected_loss_and_survival(discount_curve, basket) -> None:
    pair = ntd(discount_curve, basket, first=1, covered=2)
    l1 = basket.nth_loss_curve(1).interpolate(MATURITY)
    l2 = basket.nth_loss_curve(2).interpolate(MATURITY)
    assert pair.expected_loss() == pytest.approx(NOTIONAL / 2 * (l1 + l2))
    s1 = basket.nth_survival_curve(1).interpolate(MATURITY)
    s2 = basket.nth_survival_curve(2).interpolate(MATURITY)
    assert pair.expected_survival() == pytest.approx(0.5 * (s1 + s2))
    assert 0.0 < pair.expected_survival() < 1.0


def test_break_even_premium(discount_curve, basket) -> None:
    pricer = ntd(discount_curve, basket, first=1, covered=2)
    bep = pricer.break_even_premium()
    assert bep > 0.0
    at_par = pricer.replace(product=replace(pricer.product, premium=bep))
    assert at_par.flat_price() == pytest.approx(0.0, abs=1e-12)
    assert pricer.break_even_fee() == pytest.approx(pricer.flat_price())


def test_basket_setter_reprices(discount_curve, basket) -> None:
    pricer = ntd(discount_curve, basket)
    before = pricer.protection_pv()
    pricer.basket = IndependentBasket(5, 0.04)
    assert pricer.protection_pv() > before


def test_order_range_validation(discount_curve, basket) -> None:
    pricer = ntd(discount_curve, basket, first=4, covered=3)
    assert [e.field for e in pricer.validate()] == ["number_covered"]
    with pytest.raises(InvalidInputError):
        pricer.price()

    broken = ntd(None, basket, first=0)
    assert {e.field for e in broken.validate()} == {"first", "discount_curve"}


def test_order_defaulted_before_settle_is_worthless(discount_curve, basket) -> None:
    """An order whose default already happened before settle is settled and worth nothing."""
    loss = basket.nth_loss_curve(1)
    basket._loss[1] = TabulatedCurve(AS_OF, loss.dates, loss.values, jump_date=AS_OF)
    pair = ntd(discount_curve, basket, first=1, covered=2)
    second = ntd(discount_curve, basket, first=2)

    first_leg = pair.price_nth(1)
    assert (first_leg.protection_pv, first_leg.fee_pv, first_leg.accrued) == (0.0, 0.0, 0.0)
    assert pair.protection_pv() == pytest.approx(0.5 * second.protection_pv(), rel=1e-12)
    assert pair.fee_pv() == pytest.approx(0.5 * second.fee_pv(), rel=1e-12)
