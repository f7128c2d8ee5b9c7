"""Tests for batch pricing."""

import pytest

from creditlib.valuation import price_batch


def test_batch_isolates_failures(pricer, discount_curve) -> None:
    """One bad product never stops the rest of the batch."""
    invalid = pricer.replace(discount_curve=None, correlation=2.0)
    broken = pricer.replace(discount_curve=discount_curve.with_spread(float("nan")))
    items = price_batch([pricer, invalid, broken, pricer.replace(notional=1.0)])

    assert [item.index for item in items] == [0, 1, 2, 3]
    assert items[0].ok
    assert items[0].result == pricer.price()

    assert not items[1].ok
    assert {e.field for e in items[1].errors} == {"discount_curve", "correlation"}
    assert items[1].failure is None

    assert not items[2].ok
    assert items[2].errors == ()
    assert "Non-finite" in items[2].failure

    assert items[3].result.flat_price == pytest.approx(pricer.flat_price(), rel=1e-12)


def test_empty_batch() -> None:
    assert price_batch([]) == []
