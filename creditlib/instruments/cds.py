"""Product terms for single-name, basket and nth-to-default credit swaps.

Products are plain data. Each acts as a schedule supplier through
:meth:`CDS.payment_schedule`; pricing lives in :mod:`creditlib.valuation`
and :mod:`creditlib.basket`.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from creditlib.conventions.types import CdsType, Frequency, LegDirection
from creditlib.curves.survival import SurvivalCurve
from creditlib.errors import ValidationError, add_error
from creditlib.schedule import PaymentSchedule, generate_cds_schedule


@dataclass(frozen=True)
class CDS:
    """Credit default swap or credit-linked note terms (unit notional).

    Attributes:
        effective: Protection start date
        maturity: Protection end date
        premium: Running premium (decimal)
        frequency: Coupon frequency
        day_count: Coupon day count
        direction: PAY for the protection buyer, RECEIVE for the seller/investor
        cds_type: Funded or unfunded note
        bullet: Single premium payment at maturity
        fee: Upfront fee as a fraction of notional
        fee_settle: Upfront fee payment date
    """

    effective: date
    maturity: date
    premium: float
    frequency: Frequency = Frequency.QUARTERLY
    day_count: str = "ACT/360"
    direction: LegDirection = LegDirection.PAY
    cds_type: CdsType = CdsType.UNFUNDED
    bullet: bool = False
    fee: float = 0.0
    fee_settle: Optional[date] = None

    def payment_schedule(
        self,
        from_date: Optional[date] = None,
        survival_curve: Optional[SurvivalCurve] = None,
        recovery_rate: Optional[float] = None,
    ) -> PaymentSchedule:
        return generate_cds_schedule(
            self.effective,
            self.maturity,
            self.premium,
            frequency=self.frequency,
            day_count=self.day_count,
            direction=self.direction,
            cds_type=self.cds_type,
            bullet=self.bullet,
            fee=self.fee,
            fee_settle=self.fee_settle,
            from_date=from_date,
            survival_curve=survival_curve,
            recovery_rate=recovery_rate,
        )

    def validate(self, errors: List[ValidationError]) -> List[ValidationError]:
        owner = type(self).__name__
        if self.maturity <= self.effective:
            add_error(errors, owner, "maturity", "Maturity must be after effective date")
        if not math.isfinite(self.premium):
            add_error(errors, owner, "premium", f"Premium must be finite: {self.premium}")
        if not math.isfinite(self.fee):
            add_error(errors, owner, "fee", f"Fee must be finite: {self.fee}")
        return errors


@dataclass(frozen=True)
class BasketCDS(CDS):
    """CDS on a basket of names, priced name by name.

    ``weights`` need not sum to one; when omitted every name gets ``1/N``.
    """

    weights: Optional[Sequence[float]] = None


@dataclass(frozen=True)
class NthToDefault(CDS):
    """Nth-to-default basket covering order statistics ``first .. first+number_covered-1``.

    Each covered default receives ``1/number_covered`` of the notional.
    """

    first: int = 1
    number_covered: int = 1

    def validate(self, errors: List[ValidationError]) -> List[ValidationError]:
        super().validate(errors)
        if self.first < 1:
            add_error(errors, "NthToDefault", "first", f"First must be >= 1: {self.first}")
        if self.number_covered < 1:
            add_error(
                errors,
                "NthToDefault",
                "number_covered",
                f"Number covered must be >= 1: {self.number_covered}",
            )
        return errors
