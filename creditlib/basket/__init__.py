"""Multi-name aggregation: weighted baskets and nth-to-default."""

from .additive import BasketCDSPricer, effective_weights, evaluate_additive
from .order_statistic import BasketModel, NthToDefaultPricer, evaluate_order_statistic

__all__ = [
    "BasketCDSPricer",
    "BasketModel",
    "NthToDefaultPricer",
    "effective_weights",
    "evaluate_additive",
    "evaluate_order_statistic",
]
