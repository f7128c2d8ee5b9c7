"""Contractual schedule generation for CDS-style products.

Periods roll backward from maturity in whole months (unadjusted), leaving any
stub at the front. Business-day adjustment is left to callers that need it.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from creditlib.config import DEFAULT_RECOVERY_RATE
from creditlib.conventions.types import CdsType, Frequency, LegDirection
from creditlib.curves.survival import SurvivalCurve

from .payments import (
    DefaultSettlement,
    InterestPayment,
    Payment,
    PaymentSchedule,
    PrincipalExchange,
    ProtectionPayment,
)

logger = logging.getLogger(__name__)


def generate_periods(
    effective: date, maturity: date, frequency: Frequency
) -> List[Tuple[date, date]]:
    """Accrual periods from ``effective`` to ``maturity``, rolled back from maturity.

    Args:
        effective: Protection/accrual start
        maturity: Final accrual end
        frequency: Coupon frequency

    Returns:
        List of ``(start, end)`` pairs in date order

    Raises:
        ValueError: If ``maturity`` is not after ``effective``
    """
    if maturity <= effective:
        raise ValueError(f"Maturity {maturity} must be after effective date {effective}")

    ends = [maturity]
    k = 1
    while True:
        roll = maturity - relativedelta(months=k * frequency.months())
        if roll <= effective:
            break
        ends.append(roll)
        k += 1
    ends.reverse()

    periods = []
    start = effective
    for end in ends:
        periods.append((start, end))
        start = end
    return periods


def generate_cds_schedule(
    effective: date,
    maturity: date,
    premium: float,
    *,
    frequency: Frequency = Frequency.QUARTERLY,
    day_count: str = "ACT/360",
    direction: LegDirection = LegDirection.PAY,
    cds_type: CdsType = CdsType.UNFUNDED,
    bullet: bool = False,
    fee: float = 0.0,
    fee_settle: Optional[date] = None,
    from_date: Optional[date] = None,
    survival_curve: Optional[SurvivalCurve] = None,
    recovery_rate: Optional[float] = None,
) -> PaymentSchedule:
    """Build the unit-notional payment schedule of a CDS or credit-linked note.

    Fee payments carry the sign of ``direction``; protection payments carry
    the opposite sign. Funded notes add a contingent principal redemption at
    maturity. When ``survival_curve`` records a default inside the protection
    window, payments after the default are dropped and a
    :class:`DefaultSettlement` holding the crystallized amounts is added.

    Args:
        effective: Protection start date
        maturity: Protection end date
        premium: Running premium (decimal, e.g. 0.01 for 100bp)
        frequency: Coupon frequency
        day_count: Coupon day count
        direction: PAY when the holder pays the premium (protection buyer)
        cds_type: Funded or unfunded
        bullet: Pay a single coupon at maturity instead of periodic coupons
        fee: Upfront fee as a fraction of notional, paid by the fee payer
        fee_settle: Upfront fee payment date (defaults to ``effective``)
        from_date: Drop payments paid before this date
        survival_curve: Curve of the reference credit, consulted for a known default
        recovery_rate: Recovery used for a crystallized default

    Returns:
        The payment schedule, sorted by pay date
    """
    fee_sign = direction.sign
    protection_sign = -direction.sign
    payments: List[Payment] = []

    periods = generate_periods(effective, maturity, frequency)
    if bullet:
        payments.append(
            InterestPayment(maturity, effective, maturity, fee_sign, premium, day_count)
        )
    else:
        for start, end in periods:
            payments.append(InterestPayment(end, start, end, fee_sign, premium, day_count))
    for start, end in periods:
        payments.append(ProtectionPayment(end, start, end, protection_sign))
    if cds_type.is_funded:
        payments.append(PrincipalExchange(maturity, maturity, maturity, fee_sign))
    if fee != 0.0:
        settle = fee_settle or effective
        payments.append(
            PrincipalExchange(settle, settle, settle, fee_sign * fee, contingent=False)
        )

    default_date = survival_curve.default_date if survival_curve is not None else None
    if default_date is not None and effective <= default_date <= maturity:
        payments = _truncate_at_default(
            payments,
            survival_curve,
            recovery_rate,
            fee_sign,
            protection_sign,
        )

    if from_date is not None:
        payments = [p for p in payments if p.pay_date >= from_date]
    return PaymentSchedule(payments)


def _truncate_at_default(
    payments: List[Payment],
    survival_curve: SurvivalCurve,
    recovery_rate: Optional[float],
    fee_sign: float,
    protection_sign: float,
) -> List[Payment]:
    default_date = survival_curve.default_date
    settle_date = survival_curve.default_settlement_date or default_date
    if recovery_rate is None:
        if survival_curve.recovery_curve is not None:
            recovery_rate = survival_curve.recovery_curve.recovery_rate(default_date)
        else:
            recovery_rate = DEFAULT_RECOVERY_RATE

    accrual = 0.0
    kept: List[Payment] = []
    for payment in payments:
        if isinstance(payment, InterestPayment):
            if payment.accrual_end <= default_date:
                kept.append(payment)
            elif payment.accrual_start < default_date:
                accrual += payment.accrued(default_date)
        elif isinstance(payment, ProtectionPayment):
            if payment.accrual_end < default_date:
                kept.append(payment)
        elif isinstance(payment, PrincipalExchange) and not payment.contingent:
            kept.append(payment)

    settlement = DefaultSettlement(
        settle_date,
        default_date,
        default_date,
        default_date=default_date,
        accrual_amount=accrual,
        recovery_amount=fee_sign * recovery_rate,
        loss_amount=protection_sign * (1.0 - recovery_rate),
    )
    logger.debug(
        "Default on %s crystallized: accrual=%s recovery=%s loss=%s",
        default_date,
        accrual,
        settlement.recovery_amount,
        settlement.loss_amount,
    )
    kept.append(settlement)
    return kept
