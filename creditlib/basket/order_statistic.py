"""Nth-to-default pricing on order-statistic curves.

An nth-to-default contract covering defaults ``first .. first+covered-1``
pays ``Notional / covered`` on each of those defaults. The basket model
supplies, for every order ``k``, the expected cumulative loss curve
``NthLossCurve(k)`` and the survival curve ``NthSurvivalCurve(k)`` (the
probability that fewer than ``k`` names have defaulted). The contract's
legs are priced once per covered order and summed; the orders are distinct
curves, not a weighted average of names.
"""

import logging
from dataclasses import replace as dataclass_replace
from datetime import date
from typing import Callable, List, Optional, Protocol, Tuple

from creditlib.curves.base import Curve
from creditlib.errors import ComputationError, InvalidInputError, ValidationError, add_error
from creditlib.instruments.cds import NthToDefault
from creditlib.schedule.payments import PaymentSchedule
from creditlib.valuation.engine import OrderStatisticRisk, integrate_schedule
from creditlib.valuation.policy import PricingPolicy
from creditlib.valuation.pricer import GenerationMemo, pricer_input, unfunded
from creditlib.valuation.types import AnyDiscountCurve, CashflowPv

logger = logging.getLogger(__name__)


class BasketModel(Protocol):
    """Order-statistic curves of a basket, produced by a copula model."""

    @property
    def basket_size(self) -> int:
        ...

    def nth_loss_curve(self, k: int) -> Curve:
        ...

    def nth_survival_curve(self, k: int) -> Curve:
        ...


def evaluate_order_statistic(
    first: int, number_covered: int, evaluate: Callable[[int], float]
) -> float:
    """``sum(evaluate(k) for k in [first, first + number_covered))``."""
    total = 0.0
    for k in range(first, first + number_covered):
        total += evaluate(k)
    return total


class NthToDefaultPricer:
    """Nth-to-default basket pricer.

    Args:
        product: Contract terms, including ``first`` and ``number_covered``
        as_of: Pricing date
        settle: Settlement date
        discount_curve: Discount curve
        basket: Source of nth-loss and nth-survival curves
        policy: Pricing policy
        notional: Total notional across the covered orders
    """

    INPUTS = ("product", "as_of", "settle", "discount_curve", "basket", "policy", "notional")

    product = pricer_input("product", "Contract terms.")
    as_of = pricer_input("as_of", "Pricing date.")
    settle = pricer_input("settle", "Settlement date.")
    discount_curve = pricer_input("discount_curve", "Discount curve.")
    basket = pricer_input("basket", "Basket model supplying order-statistic curves.")
    policy = pricer_input("policy", "Pricing policy.")
    notional = pricer_input("notional", "Total notional.")

    def __init__(
        self,
        product: NthToDefault,
        as_of: date,
        settle: date,
        discount_curve: Optional[AnyDiscountCurve],
        basket: BasketModel,
        policy: Optional[PricingPolicy] = None,
        notional: float = 1.0,
    ):
        self._product = product
        self._as_of = as_of
        self._settle = settle
        self._discount_curve = discount_curve
        self._basket = basket
        self._policy = policy or PricingPolicy()
        self._notional = notional
        self._generation = 0
        self._memo = GenerationMemo()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(first={self.product.first}, "
            f"covered={self.product.number_covered}, notional={self.notional})"
        )

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self) -> None:
        self._generation += 1
        logger.debug("%r reset to generation %s", self, self._generation)

    def replace(self, **changes) -> "NthToDefaultPricer":
        unknown = set(changes) - set(self.INPUTS)
        if unknown:
            raise TypeError(f"Unknown pricer inputs: {sorted(unknown)}")
        kwargs = {name: getattr(self, name) for name in self.INPUTS}
        kwargs.update(changes)
        return type(self)(**kwargs)

    @property
    def effective_policy(self) -> PricingPolicy:
        funded = self.product.cds_type.is_funded
        if self.policy.funded == funded:
            return self.policy
        return dataclass_replace(self.policy, funded=funded)

    @property
    def payment_schedule(self) -> PaymentSchedule:
        return self._memo.get("schedule", self._generation, self.product.payment_schedule)

    @property
    def covered_orders(self) -> range:
        return range(self.product.first, self.product.first + self.product.number_covered)

    @property
    def nth_notional(self) -> float:
        return self.notional / self.product.number_covered

    def validate(
        self, errors: Optional[List[ValidationError]] = None
    ) -> List[ValidationError]:
        errors = [] if errors is None else errors
        owner = type(self).__name__
        self.product.validate(errors)
        self.policy.validate(errors)
        if self.discount_curve is None:
            add_error(errors, owner, "discount_curve", "Missing discount curve")
        last = self.product.first - 1 + self.product.number_covered
        if last > self.basket.basket_size:
            add_error(
                errors,
                owner,
                "number_covered",
                f"Orders {self.product.first}..{last} exceed basket size "
                f"{self.basket.basket_size}",
            )
        if self.settle < self.as_of:
            add_error(errors, owner, "settle", f"Settle {self.settle} is before as-of {self.as_of}")
        return errors

    def _check(self) -> None:
        errors = self.validate()
        if errors:
            raise InvalidInputError(errors)

    def _risk(self, k: int) -> OrderStatisticRisk:
        return OrderStatisticRisk(self.basket.nth_loss_curve(k), self.basket.nth_survival_curve(k))

    def price_nth(self, k: int, schedule: Optional[PaymentSchedule] = None) -> CashflowPv:
        """Leg values of the ``k``-th default leg at ``Notional / covered``.

        An order whose loss curve jumped on or before settle is already
        settled and is worth nothing.
        """
        jump_date = getattr(self.basket.nth_loss_curve(k), "jump_date", None)
        if jump_date is not None and jump_date <= self.settle:
            logger.debug("Order %s defaulted on %s, before settle %s", k, jump_date, self.settle)
            return CashflowPv(0.0, 0.0, 0.0, self.nth_notional)
        if schedule is None:
            schedule = self.payment_schedule
        return integrate_schedule(
            schedule,
            self.discount_curve,
            self._risk(k),
            self.settle,
            self.effective_policy,
            self.nth_notional,
        )

    def price(self) -> CashflowPv:
        return self._memo.get("price", self._generation, self._price)

    def _price(self) -> CashflowPv:
        self._check()
        legs = [self.price_nth(k) for k in self.covered_orders]
        protection = fee = accrued = 0.0
        for leg in legs:
            protection += leg.protection_pv
            fee += leg.fee_pv
            accrued += leg.accrued
        return CashflowPv(protection, fee, accrued, self.notional)

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
        """Expected loss to maturity averaged over the covered orders, in currency units."""
        maturity = self.product.maturity
        total = evaluate_order_statistic(
            self.product.first,
            self.product.number_covered,
            lambda k: self.basket.nth_loss_curve(k).interpolate(maturity),
        )
        return total * self.nth_notional

    def expected_survival(self) -> float:
        """Survival to maturity averaged over the covered orders."""
        maturity = self.product.maturity
        total = evaluate_order_statistic(
            self.product.first,
            self.product.number_covered,
            lambda k: self.basket.nth_survival_curve(k).interpolate(maturity),
        )
        return total / self.product.number_covered

    def _premium_split(self) -> Tuple[float, float]:
        schedule = self.payment_schedule
        unit = schedule.with_coupon(1.0)
        zero = schedule.with_coupon(0.0)
        value = evaluate_order_statistic(
            self.product.first,
            self.product.number_covered,
            lambda k: self.price_nth(k, zero).flat_price * self.nth_notional,
        )
        fee01 = evaluate_order_statistic(
            self.product.first,
            self.product.number_covered,
            lambda k: self.price_nth(k, unit).flat_fee_pv - self.price_nth(k, zero).flat_fee_pv,
        )
        return value, fee01

    def risky_duration(self) -> float:
        """Value of one unit of running premium per unit notional."""
        self._check()
        _, fee01 = self._premium_split()
        return abs(fee01 / self.notional)

    def premium01(self) -> float:
        return self.risky_duration() * abs(self.notional) * 1e-4

    def break_even_premium(self) -> float:
        """Running premium that makes the contract worth zero (unfunded terms).

        Raises:
            ComputationError: If the contract has no premium sensitivity
        """
        self._check()
        with unfunded(self):
            value, fee01 = self._premium_split()
        if fee01 == 0.0:
            raise ComputationError("Nth-to-default contract has zero premium sensitivity")
        return -value / fee01

    def break_even_fee(self) -> float:
        """Upfront fee (fraction of notional) that makes the contract worth zero."""
        self._check()
        with unfunded(self):
            return self.flat_price()
