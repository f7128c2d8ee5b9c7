"""Stateful pricer wrapping the pure engine.

A :class:`CashflowPricer` owns references to a product and its curves plus a
memoized payment schedule and price. Every input is a property whose setter
bumps a generation counter; memoized values are stored with the generation
they were computed at and are recomputed when it no longer matches. The
schedule and the price are therefore always from the same generation.

For what-if pricing prefer :meth:`CashflowPricer.replace`, which returns a
new pricer sharing every unchanged curve with this one.
"""

import logging
from contextlib import contextmanager
from dataclasses import replace as dataclass_replace
from datetime import date
from typing import Iterator, List, Optional, Tuple

from creditlib.conventions.types import CdsType, Frequency
from creditlib.curves.recovery import RecoveryCurve
from creditlib.curves.survival import SurvivalCurve
from creditlib.errors import ComputationError, InvalidInputError, ValidationError, add_error
from creditlib.instruments.cds import CDS
from creditlib.schedule.payments import PaymentSchedule

from . import implied
from .engine import expected_loss_rate, price_cashflows, survival_probability
from .policy import PricingPolicy
from .types import AnyDiscountCurve, CashflowPv, CurveSet

logger = logging.getLogger(__name__)


def pricer_input(name: str, doc: str) -> property:
    """Property whose setter invalidates the owner's memoized values."""
    attr = "_" + name

    def getter(self):
        return getattr(self, attr)

    def setter(self, value) -> None:
        setattr(self, attr, value)
        self.reset()

    return property(getter, setter, doc=doc)


@contextmanager
def unfunded(pricer) -> Iterator[None]:
    """Temporarily recast a funded product as the equivalent unfunded swap.

    Works on any pricer with a resetting ``product`` input. The original
    product is restored on every exit path, including exceptions.
    """
    original = pricer.product
    if not original.cds_type.is_funded:
        yield
        return
    pricer.product = dataclass_replace(original, cds_type=CdsType.UNFUNDED)
    try:
        yield
    finally:
        pricer.product = original


class GenerationMemo:
    """Values memoized against the owner's generation counter."""

    def __init__(self):
        self._entries = {}

    def get(self, key: str, generation: int, compute):
        entry: Optional[Tuple[int, object]] = self._entries.get(key)
        if entry is not None and entry[0] == generation:
            return entry[1]
        value = compute()
        self._entries[key] = (generation, value)
        return value


class CashflowPricer:
    """Single-name CDS / credit-linked note pricer.

    Args:
        product: Product terms
        as_of: Pricing date
        settle: Settlement date; values are discounted to it
        discount_curve: Discount curve
        survival_curve: Survival curve of the reference credit
        recovery_curve: Recovery curve (defaults to the survival curve's, then 40%)
        counterparty_curve: Counterparty survival curve, if any
        correlation: Credit/counterparty default correlation
        policy: Pricing policy
        notional: Notional (positive)
    """

    INPUTS = (
        "product",
        "as_of",
        "settle",
        "discount_curve",
        "survival_curve",
        "recovery_curve",
        "counterparty_curve",
        "correlation",
        "policy",
        "notional",
    )

    product = pricer_input("product", "Product terms (the schedule supplier).")
    as_of = pricer_input("as_of", "Pricing date.")
    settle = pricer_input("settle", "Settlement date.")
    discount_curve = pricer_input("discount_curve", "Discount curve.")
    survival_curve = pricer_input("survival_curve", "Reference credit survival curve.")
    recovery_curve = pricer_input("recovery_curve", "Recovery curve override.")
    counterparty_curve = pricer_input("counterparty_curve", "Counterparty survival curve.")
    correlation = pricer_input("correlation", "Credit/counterparty default correlation.")
    policy = pricer_input("policy", "Pricing policy.")
    notional = pricer_input("notional", "Notional.")

    def __init__(
        self,
        product: CDS,
        as_of: date,
        settle: date,
        discount_curve: Optional[AnyDiscountCurve],
        survival_curve: Optional[SurvivalCurve],
        recovery_curve: Optional[RecoveryCurve] = None,
        counterparty_curve: Optional[SurvivalCurve] = None,
        correlation: float = 0.0,
        policy: Optional[PricingPolicy] = None,
        notional: float = 1.0,
    ):
        self._product = product
        self._as_of = as_of
        self._settle = settle
        self._discount_curve = discount_curve
        self._survival_curve = survival_curve
        self._recovery_curve = recovery_curve
        self._counterparty_curve = counterparty_curve
        self._correlation = correlation
        self._policy = policy or PricingPolicy()
        self._notional = notional
        self._generation = 0
        self._memo = GenerationMemo()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.product.effective} -> {self.product.maturity}, "
            f"premium={self.product.premium}, notional={self.notional})"
        )

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self) -> None:
        """Invalidate the memoized schedule and price."""
        self._generation += 1
        logger.debug("%r reset to generation %s", self, self._generation)

    def replace(self, **changes) -> "CashflowPricer":
        """New pricer with some inputs changed; unchanged curves are shared."""
        unknown = set(changes) - set(self.INPUTS)
        if unknown:
            raise TypeError(f"Unknown pricer inputs: {sorted(unknown)}")
        kwargs = {name: getattr(self, name) for name in self.INPUTS}
        kwargs.update(changes)
        return type(self)(**kwargs)

    @property
    def effective_policy(self) -> PricingPolicy:
        """Policy with the product's funded flag applied."""
        funded = self.product.cds_type.is_funded
        if self.policy.funded == funded:
            return self.policy
        return dataclass_replace(self.policy, funded=funded)

    @property
    def curves(self) -> CurveSet:
        return CurveSet(
            self.discount_curve,
            self.survival_curve,
            self.recovery_curve,
            self.counterparty_curve,
            self.correlation,
        )

    @property
    def payment_schedule(self) -> PaymentSchedule:
        return self._memo.get("schedule", self._generation, self._generate_schedule)

    def _generate_schedule(self) -> PaymentSchedule:
        recovery_rate = None
        curve = self.survival_curve
        if (
            self.recovery_curve is not None
            and curve is not None
            and curve.default_date is not None
        ):
            recovery_rate = self.recovery_curve.recovery_rate(curve.default_date)
        schedule = self.product.payment_schedule(
            survival_curve=curve, recovery_rate=recovery_rate
        )
        logger.debug("Generated %s for generation %s", schedule, self._generation)
        return schedule

    def validate(
        self, errors: Optional[List[ValidationError]] = None
    ) -> List[ValidationError]:
        """Append every structural problem with this pricer's inputs to ``errors``."""
        errors = [] if errors is None else errors
        owner = type(self).__name__
        self.product.validate(errors)
        self.curves.validate(errors)
        self.policy.validate(errors)
        if self.settle < self.as_of:
            add_error(errors, owner, "settle", f"Settle {self.settle} is before as-of {self.as_of}")
        if self.notional == 0.0:
            add_error(errors, owner, "notional", "Notional must be non-zero")
        return errors

    def _check(self) -> None:
        errors = self.validate()
        if errors:
            raise InvalidInputError(errors)

    def price(self) -> CashflowPv:
        """Leg values; memoized until the next input change."""
        return self._memo.get("price", self._generation, self._price)

    def _price(self) -> CashflowPv:
        self._check()
        try:
            return price_cashflows(
                self.payment_schedule,
                self.curves,
                self.settle,
                self.effective_policy,
                self.notional,
            )
        except ComputationError as exc:
            logger.error("Pricing failed for %r: %s", self, exc)
            raise

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

    @property
    def protection_start(self) -> date:
        return max(self.settle, self.product.effective)

    def survival_probability(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> float:
        """Joint survival from ``start`` (protection start) to ``end`` (maturity).

        Protection that starts on or after maturity has nothing left to survive,
        so the default window gives 1.
        """
        if start is None and end is None and self.protection_start >= self.product.maturity:
            return 1.0
        start = start or self.protection_start
        end = end or self.product.maturity
        return survival_probability(start, end, self.curves, self.policy)

    def expected_loss_rate(self, start: date, end: date) -> float:
        return expected_loss_rate(start, end, self.curves, self.policy)

    def expected_loss(self) -> float:
        """Expected loss from protection start to maturity, in currency units."""
        if self.protection_start >= self.product.maturity:
            return 0.0
        return self.expected_loss_rate(self.protection_start, self.product.maturity) * self.notional

    def risky_duration(self) -> float:
        """Value of one unit of running premium per unit notional."""
        self._check()
        return implied.risky_duration(
            self.payment_schedule, self.curves, self.settle, self.effective_policy
        )

    def premium01(self) -> float:
        """Value of a 1bp change in premium, in currency units."""
        return self.risky_duration() * abs(self.notional) * 1e-4

    def carry(self) -> float:
        """Daily premium carry, in currency units (ACT/360 basis)."""
        return self.product.direction.sign * self.product.premium / 360.0 * self.notional

    def break_even_premium(self) -> float:
        """Running premium that makes the contract worth zero (unfunded terms)."""
        self._check()
        with unfunded(self):
            return implied.break_even_premium(
                self.payment_schedule, self.curves, self.settle, self.effective_policy
            )

    def break_even_fee(self) -> float:
        """Upfront fee (fraction of notional) that makes the contract worth zero."""
        self._check()
        with unfunded(self):
            return implied.break_even_fee(
                self.payment_schedule, self.curves, self.settle, self.effective_policy
            )

    def implied_hazard_rate_spread(self, target_price: float) -> float:
        self._check()
        return implied.implied_hazard_rate_spread(
            target_price,
            self.payment_schedule,
            self.curves,
            self.settle,
            self.effective_policy,
            self.notional,
        )

    def implied_discount_spread(self, target_price: float) -> float:
        self._check()
        return implied.implied_discount_spread(
            target_price,
            self.payment_schedule,
            self.curves,
            self.settle,
            self.effective_policy,
            self.notional,
        )

    def irr(
        self,
        price: float,
        day_count: str = "ACT/365F",
        frequency: Optional[Frequency] = Frequency.ANNUAL,
    ) -> float:
        """Yield at which the contingent cash flows are worth the full ``price``."""
        self._check()
        return implied.irr(
            price,
            self.payment_schedule,
            self.curves,
            self.settle,
            self.effective_policy,
            self.notional,
            day_count,
            frequency,
        )
