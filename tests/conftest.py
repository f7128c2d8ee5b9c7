"""Shared fixtures: flat curves and a 5Y quarterly CDS."""

from datetime import date

import pytest

from creditlib.curves import DiscountCurve, RecoveryCurve, SurvivalCurve
from creditlib.instruments import CDS
from creditlib.valuation import CashflowPricer, CurveSet

AS_OF = date(2024, 3, 20)
MATURITY = date(2029, 3, 20)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def discount_curve() -> DiscountCurve:
    return DiscountCurve.flat(AS_OF, 0.03, name="USD-OIS")


@pytest.fixture
def survival_curve() -> SurvivalCurve:
    return SurvivalCurve.flat(AS_OF, 0.02, name="ACME")


@pytest.fixture
def recovery_curve() -> RecoveryCurve:
    return RecoveryCurve(0.4)


@pytest.fixture
def curves(discount_curve, survival_curve, recovery_curve) -> CurveSet:
    return CurveSet(discount_curve, survival_curve, recovery_curve)


@pytest.fixture
def cds() -> CDS:
    return CDS(AS_OF, MATURITY, 0.01)


@pytest.fixture
def schedule(cds):
    return cds.payment_schedule()


@pytest.fixture
def pricer(cds, discount_curve, survival_curve, recovery_curve) -> CashflowPricer:
    return CashflowPricer(
        cds,
        AS_OF,
        AS_OF,
        discount_curve,
        survival_curve,
        recovery_curve=recovery_curve,
        notional=10_000_000,
    )
