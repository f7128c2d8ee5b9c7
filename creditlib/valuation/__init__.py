"""Contingent cash flow valuation.

This package provides:
- The pure pricing engine (protection, fee and accrued values)
- A Brent root finder with explicit failure signalling
- Implied yields, spreads and break-even premiums
- A memoizing pricer and batch pricing
"""

from .batch import BatchItem, price_batch
from .engine import (
    OrderStatisticRisk,
    SingleNameRisk,
    expected_loss_rate,
    integrate_schedule,
    price_cashflows,
    survival_probability,
    validate_inputs,
)
from .implied import (
    break_even_fee,
    break_even_premium,
    implied_discount_spread,
    implied_hazard_rate_spread,
    irr,
    premium_sensitivity,
    risky_duration,
)
from .policy import PricingPolicy
from .pricer import CashflowPricer
from .solver import Evaluation, RootResult, find_root, guarded
from .types import CashflowPv, CurveSet

__all__ = [
    # Types
    "CashflowPv",
    "CurveSet",
    "PricingPolicy",
    "Evaluation",
    "RootResult",
    "BatchItem",
    # Engine
    "price_cashflows",
    "integrate_schedule",
    "survival_probability",
    "expected_loss_rate",
    "validate_inputs",
    "SingleNameRisk",
    "OrderStatisticRisk",
    # Implied quantities
    "irr",
    "implied_discount_spread",
    "implied_hazard_rate_spread",
    "break_even_premium",
    "break_even_fee",
    "premium_sensitivity",
    "risky_duration",
    # Solver
    "find_root",
    "guarded",
    # Pricers
    "CashflowPricer",
    "price_batch",
]
