"""Payment obligations and the payment schedule container.

A schedule is an ordered, immutable sequence of typed payments. Pricers
regenerate schedules when their inputs change; they never edit one in place.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

import pandas as pd

from creditlib.conventions.daycount import get_day_count_convention


@dataclass(frozen=True)
class Payment(ABC):
    """Base payment.

    Attributes:
        pay_date: Date the cash changes hands
        accrual_start: Start of the period the payment relates to
        accrual_end: End of the period the payment relates to
    """

    pay_date: date
    accrual_start: date
    accrual_end: date

    @property
    @abstractmethod
    def amount(self) -> float:
        """Undiscounted amount paid on ``pay_date``."""

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class InterestPayment(Payment):
    """Premium coupon paid while the credit survives.

    ``notional`` is signed: negative when the holder pays the premium.
    """

    notional: float = 1.0
    coupon: float = 0.0
    day_count: str = "ACT/360"

    @property
    def accrual_fraction(self) -> float:
        return get_day_count_convention(self.day_count).year_fraction(
            self.accrual_start, self.accrual_end
        )

    @property
    def amount(self) -> float:
        return self.notional * self.coupon * self.accrual_fraction

    def accrued(self, as_at: date) -> float:
        """Coupon accrued from the period start to ``as_at`` (clipped to the period)."""
        if as_at <= self.accrual_start:
            return 0.0
        end = min(as_at, self.accrual_end)
        fraction = get_day_count_convention(self.day_count).year_fraction(
            self.accrual_start, end
        )
        return self.notional * self.coupon * fraction

    def with_coupon(self, coupon: float) -> "InterestPayment":
        return replace(self, coupon=coupon)


@dataclass(frozen=True)
class ProtectionPayment(Payment):
    """Contingent loss payment covering defaults in ``[accrual_start, accrual_end]``.

    ``notional`` is signed: positive when the holder is protected.
    """

    notional: float = 1.0

    @property
    def amount(self) -> float:
        return self.notional


@dataclass(frozen=True)
class DefaultSettlement(Payment):
    """Crystallized cash flows of a default that already happened.

    Attributes:
        default_date: Date of the credit event
        accrual_amount: Premium accrued to the default date (fee leg sign)
        recovery_amount: Recovery paid to the holder of a funded note (fee leg sign)
        loss_amount: Loss paid by the protection leg (protection leg sign)
    """

    default_date: Optional[date] = None
    accrual_amount: float = 0.0
    recovery_amount: float = 0.0
    loss_amount: float = 0.0

    @property
    def amount(self) -> float:
        return self.loss_amount


@dataclass(frozen=True)
class PrincipalExchange(Payment):
    """Principal or upfront fee.

    Contingent exchanges (note redemption) are only paid if the credit
    survives to ``pay_date``; non-contingent ones (upfront fees) always are.
    """

    notional: float = 1.0
    contingent: bool = True

    @property
    def amount(self) -> float:
        return self.notional


P = TypeVar("P", bound=Payment)


class PaymentSchedule:
    """Payments sorted by pay date.

    Sorting is stable, so payments sharing a pay date keep the order in which
    they were generated.
    """

    def __init__(self, payments: Iterable[Payment] = ()):
        self._payments: Tuple[Payment, ...] = tuple(
            sorted(payments, key=lambda p: p.pay_date)
        )

    def __iter__(self) -> Iterator[Payment]:
        return iter(self._payments)

    def __len__(self) -> int:
        return len(self._payments)

    def __getitem__(self, index: int) -> Payment:
        return self._payments[index]

    def __repr__(self) -> str:
        return f"PaymentSchedule({len(self)} payments)"

    @property
    def payments(self) -> Tuple[Payment, ...]:
        return self._payments

    def of_type(self, payment_type: Type[P]) -> List[P]:
        return [p for p in self._payments if isinstance(p, payment_type)]

    def between(self, start: date, end: date, include_start: bool = False) -> "PaymentSchedule":
        """Payments paid in ``(start, end]`` (``[start, end]`` with ``include_start``)."""
        return PaymentSchedule(
            p
            for p in self._payments
            if (start <= p.pay_date if include_start else start < p.pay_date)
            and p.pay_date <= end
        )

    def interest_payments(self) -> List[InterestPayment]:
        return self.of_type(InterestPayment)

    def protection_payments(self) -> List[ProtectionPayment]:
        return self.of_type(ProtectionPayment)

    def principal_exchanges(self) -> List[PrincipalExchange]:
        return self.of_type(PrincipalExchange)

    def default_settlement(self) -> Optional[DefaultSettlement]:
        settlements = self.of_type(DefaultSettlement)
        return settlements[-1] if settlements else None

    def last_date(self) -> Optional[date]:
        """Latest accrual end or pay date in the schedule."""
        if not self._payments:
            return None
        return max(max(p.pay_date, p.accrual_end) for p in self._payments)

    def with_coupon(self, coupon: float) -> "PaymentSchedule":
        """Copy with every interest payment restruck at ``coupon``."""
        return PaymentSchedule(
            p.with_coupon(coupon) if isinstance(p, InterestPayment) else p
            for p in self._payments
        )

    def to_frame(self) -> pd.DataFrame:
        """Tabular view, one row per payment."""
        rows = [
            {
                "kind": p.kind,
                "pay_date": p.pay_date,
                "accrual_start": p.accrual_start,
                "accrual_end": p.accrual_end,
                "amount": p.amount,
            }
            for p in self._payments
        ]
        return pd.DataFrame(
            rows, columns=["kind", "pay_date", "accrual_start", "accrual_end", "amount"]
        )
