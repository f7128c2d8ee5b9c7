"""Payment schedules and their generation."""

from .generator import generate_cds_schedule, generate_periods
from .payments import (
    DefaultSettlement,
    InterestPayment,
    Payment,
    PaymentSchedule,
    PrincipalExchange,
    ProtectionPayment,
)

__all__ = [
    "DefaultSettlement",
    "InterestPayment",
    "Payment",
    "PaymentSchedule",
    "PrincipalExchange",
    "ProtectionPayment",
    "generate_cds_schedule",
    "generate_periods",
]
