"""
creditlib: contingent cash flow pricing for credit derivatives.

Protection and fee legs of single-name CDS, credit-linked notes, weighted
baskets and nth-to-default baskets, with counterparty risk and implied
yield/spread/premium solvers.
"""

__version__ = "1.0.0"

from creditlib.basket import BasketCDSPricer, NthToDefaultPricer
from creditlib.config import DEFAULT_RECOVERY_RATE, load_policy
from creditlib.conventions import CdsType, Frequency, LegDirection, TimeUnit
from creditlib.curves import (
    DiscountCurve,
    RecoveryCurve,
    SurvivalCurve,
    TabulatedCurve,
    YieldCurve,
)
from creditlib.errors import (
    ComputationError,
    InvalidInputError,
    RootBracketError,
    SolverConvergenceError,
    ValidationError,
)
from creditlib.instruments import CDS, BasketCDS, NthToDefault
from creditlib.schedule import PaymentSchedule, generate_cds_schedule
from creditlib.valuation import (
    CashflowPricer,
    CashflowPv,
    CurveSet,
    PricingPolicy,
    price_batch,
    price_cashflows,
)

__all__ = [
    "__version__",
    # Products
    "CDS",
    "BasketCDS",
    "NthToDefault",
    # Curves
    "DiscountCurve",
    "YieldCurve",
    "SurvivalCurve",
    "RecoveryCurve",
    "TabulatedCurve",
    # Conventions
    "CdsType",
    "Frequency",
    "LegDirection",
    "TimeUnit",
    # Schedules
    "PaymentSchedule",
    "generate_cds_schedule",
    # Pricing
    "CurveSet",
    "CashflowPv",
    "PricingPolicy",
    "price_cashflows",
    "price_batch",
    "CashflowPricer",
    "BasketCDSPricer",
    "NthToDefaultPricer",
    "DEFAULT_RECOVERY_RATE",
    "load_policy",
    # Errors
    "ValidationError",
    "InvalidInputError",
    "ComputationError",
    "RootBracketError",
    "SolverConvergenceError",
]
