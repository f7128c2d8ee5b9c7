"""Name-by-name basket aggregation.

A basket (or index) CDS is priced as a weighted sum of single-name values.
Weights need not sum to one; without weights every name gets exactly
``1/N``. A single-name basket bypasses the weights entirely and returns the
single-name value unchanged.

A name that has already defaulted keeps its weight: surviving names are not
renormalized.
"""

import logging
import math
from datetime import date
from typing import Callable, List, Optional, Sequence, TypeVar

from creditlib.curves.recovery import RecoveryCurve
from creditlib.curves.survival import SurvivalCurve
from creditlib.errors import ComputationError, InvalidInputError, ValidationError, add_error
from creditlib.instruments.cds import BasketCDS
from creditlib.valuation import implied
from creditlib.valuation.engine import price_cashflows
from creditlib.valuation.policy import PricingPolicy
from creditlib.valuation.pricer import (
    CashflowPricer,
    GenerationMemo,
    pricer_input,
    unfunded,
)
from creditlib.valuation.types import AnyDiscountCurve, CashflowPv

logger = logging.getLogger(__name__)

T = TypeVar("T")


def effective_weights(n: int, weights: Optional[Sequence[float]] = None) -> List[float]:
    """Weight applied to each of ``n`` names."""
    if n == 1:
        return [1.0]
    if weights is None:
        return [1.0 / n] * n
    return [float(weights[i]) for i in range(n)]


def evaluate_additive(
    names: Sequence[T],
    weights: Optional[Sequence[float]],
    evaluate: Callable[[T], float],
) -> float:
    """``sum(weight_i * evaluate(names[i]))`` with the basket weight rule.

    Args:
        names: Per-name evaluation contexts (usually single-name pricers)
        weights: Per-name weights, or ``None`` for flat ``1/N``
        evaluate: Measure to aggregate

    Returns:
        The weighted sum; for one name, ``evaluate(names[0])`` itself
    """
    if len(names) == 1:
        return evaluate(names[0])
    total = 0.0
    for weight, name in zip(effective_weights(len(names), weights), names):
        total += weight * evaluate(name)
    return total


class BasketCDSPricer:
    """Basket CDS pricer aggregating one :class:`CashflowPricer` per name.

    Args:
        product: Basket terms (weights live on the product)
        as_of: Pricing date
        settle: Settlement date
        discount_curve: Discount curve shared by all names
        survival_curves: One survival curve per name
        recovery_curves: Optional recovery curve per name
        counterparty_curve: Counterparty survival curve, if any
        correlation: Credit/counterparty default correlation
        policy: Pricing policy
        notional: Basket notional
    """

    INPUTS = (
        "product",
        "as_of",
        "settle",
        "discount_curve",
        "survival_curves",
        "recovery_curves",
        "counterparty_curve",
        "correlation",
        "policy",
        "notional",
    )

    product = pricer_input("product", "Basket terms.")
    as_of = pricer_input("as_of", "Pricing date.")
    settle = pricer_input("settle", "Settlement date.")
    discount_curve = pricer_input("discount_curve", "Discount curve.")
    survival_curves = pricer_input("survival_curves", "Per-name survival curves.")
    recovery_curves = pricer_input("recovery_curves", "Per-name recovery curves.")
    counterparty_curve = pricer_input("counterparty_curve", "Counterparty survival curve.")
    correlation = pricer_input("correlation", "Credit/counterparty default correlation.")
    policy = pricer_input("policy", "Pricing policy.")
    notional = pricer_input("notional", "Basket notional.")

    def __init__(
        self,
        product: BasketCDS,
        as_of: date,
        settle: date,
        discount_curve: Optional[AnyDiscountCurve],
        survival_curves: Sequence[SurvivalCurve],
        recovery_curves: Optional[Sequence[RecoveryCurve]] = None,
        counterparty_curve: Optional[SurvivalCurve] = None,
        correlation: float = 0.0,
        policy: Optional[PricingPolicy] = None,
        notional: float = 1.0,
    ):
        self._product = product
        self._as_of = as_of
        self._settle = settle
        self._discount_curve = discount_curve
        self._survival_curves = tuple(survival_curves)
        self._recovery_curves = tuple(recovery_curves) if recovery_curves is not None else None
        self._counterparty_curve = counterparty_curve
        self._correlation = correlation
        self._policy = policy or PricingPolicy()
        self._notional = notional
        self._generation = 0
        self._memo = GenerationMemo()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.survival_curves)} names, notional={self.notional})"

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self) -> None:
        self._generation += 1
        logger.debug("%r reset to generation %s", self, self._generation)

    def replace(self, **changes) -> "BasketCDSPricer":
        """New pricer with some inputs changed; unchanged curves are shared."""
        unknown = set(changes) - set(self.INPUTS)
        if unknown:
            raise TypeError(f"Unknown pricer inputs: {sorted(unknown)}")
        kwargs = {name: getattr(self, name) for name in self.INPUTS}
        kwargs.update(changes)
        return type(self)(**kwargs)

    @property
    def basket_size(self) -> int:
        return len(self.survival_curves)

    @property
    def weights(self) -> Optional[Sequence[float]]:
        return self.product.weights

    @property
    def name_pricers(self) -> List[CashflowPricer]:
        """Single-name pricers, rebuilt when any basket input changes."""
        return self._memo.get("names", self._generation, self._build_name_pricers)

    def _build_name_pricers(self) -> List[CashflowPricer]:
        pricers = []
        for i, curve in enumerate(self.survival_curves):
            recovery = self.recovery_curves[i] if self.recovery_curves is not None else None
            pricers.append(
                CashflowPricer(
                    self.product,
                    self.as_of,
                    self.settle,
                    self.discount_curve,
                    curve,
                    recovery_curve=recovery,
                    counterparty_curve=self.counterparty_curve,
                    correlation=self.correlation,
                    policy=self.policy,
                    notional=self.notional,
                )
            )
        return pricers

    def validate(
        self, errors: Optional[List[ValidationError]] = None
    ) -> List[ValidationError]:
        errors = [] if errors is None else errors
        owner = type(self).__name__
        n = self.basket_size
        if n == 0:
            add_error(errors, owner, "survival_curves", "Basket has no names")
            return errors
        if self.weights is not None:
            if len(self.weights) != n:
                add_error(
                    errors,
                    owner,
                    "weights",
                    f"Got {len(self.weights)} weights for {n} names",
                )
            elif not math.isclose(sum(self.weights), 1.0, abs_tol=1e-9):
                logger.warning("Basket weights sum to %s, not 1", sum(self.weights))
        if self.recovery_curves is not None and len(self.recovery_curves) != n:
            add_error(
                errors,
                owner,
                "recovery_curves",
                f"Got {len(self.recovery_curves)} recovery curves for {n} names",
            )
            return errors
        first, *rest = self.name_pricers
        first.validate(errors)
        for pricer in rest:
            pricer.curves.validate(errors)
        return errors

    def _check(self) -> None:
        errors = self.validate()
        if errors:
            raise InvalidInputError(errors)

    def _aggregate(self, evaluate: Callable[[CashflowPricer], float]) -> float:
        return evaluate_additive(self.name_pricers, self.weights, evaluate)

    def price(self) -> CashflowPv:
        """Weighted leg values; memoized until the next input change."""
        return self._memo.get("price", self._generation, self._price)

    def _price(self) -> CashflowPv:
        self._check()
        return CashflowPv(
            self._aggregate(lambda p: p.protection_pv()),
            self._aggregate(lambda p: p.fee_pv()),
            self._aggregate(lambda p: p.accrued()),
            self.notional,
        )

    def protection_pv(self) -> float:
        return self.price().protection_pv

    def fee_pv(self) -> float:
        return self.price().fee_pv

    def flat_fee_pv(self) -> float:
        return self.price().flat_fee_pv

    def accrued(self) -> float:
        return self.price().accrued

    def pv(self) -> float:
        return self.price().pv

    def flat_price(self) -> float:
        return self.price().flat_price

    def full_model_price(self) -> float:
        return self.price().full_model_price

    def expected_loss(self) -> float:
        return self._aggregate(lambda p: p.expected_loss())

    def survival_probability(self) -> float:
        """Weighted survival to maturity (an expected surviving fraction for flat weights)."""
        return self._aggregate(lambda p: p.survival_probability())

    def risky_duration(self) -> float:
        self._check()
        return self._aggregate(lambda p: p.risky_duration())

    def premium01(self) -> float:
        return self.risky_duration() * abs(self.notional) * 1e-4

    def break_even_premium(self) -> float:
        """Running premium that makes the basket worth zero (unfunded terms).

        Fee value is linear in the premium, so the weighted premium-free value
        divided by the weighted premium sensitivity gives the answer directly.

        Raises:
            ComputationError: If the basket has no premium sensitivity
        """
        self._check()
        with unfunded(self):
            value = self._aggregate(_premium_free_value)
            fee01 = self._aggregate(_premium_sensitivity)
        if fee01 == 0.0:
            raise ComputationError("Basket has zero premium sensitivity")
        return -value / fee01


def _premium_free_value(pricer: CashflowPricer) -> float:
    schedule = pricer.payment_schedule.with_coupon(0.0)
    return price_cashflows(
        schedule, pricer.curves, pricer.settle, pricer.effective_policy
    ).flat_price


def _premium_sensitivity(pricer: CashflowPricer) -> float:
    return implied.premium_sensitivity(
        pricer.payment_schedule, pricer.curves, pricer.settle, pricer.effective_policy
    )
