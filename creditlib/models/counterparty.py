"""Counterparty risk model.

Joint survival of a reference credit and a counterparty is modelled with a
one-period Gaussian copula on the default probabilities conditional on both
names surviving to ``start``::

    P(no default by t) = 1 - F_D - F_P + Phi2(Phi^-1(F_D), Phi^-1(F_P); rho)

where ``F_D`` and ``F_P`` are the conditional marginal default probabilities.
The result is clamped to the Frechet bounds, so ``rho = 1`` gives
``min(S_D, S_P)``, ``rho = -1`` gives ``max(0, S_D + S_P - 1)`` and ``rho = 0``
gives ``S_D * S_P``.

Which name defaults first over a sub-step is apportioned by the ratio of the
marginal log-survival decrements on that sub-step.
"""

import logging
import math
from datetime import date
from typing import Optional, Tuple

import numpy as np
from scipy.stats import multivariate_normal, norm

from creditlib.conventions.types import TimeUnit
from creditlib.curves.survival import SurvivalCurve
from creditlib.utils.grid import build_time_grid

logger = logging.getLogger(__name__)

MAX_INVERSE_X = 32.0
_BVN_EPS = 1e-12
_ZERO_MEAN = np.zeros(2)


def _inverse_normal(p: float) -> float:
    return float(np.clip(norm.ppf(p), -MAX_INVERSE_X, MAX_INVERSE_X))


def _bivariate_normal_cdf(x: float, y: float, rho: float) -> float:
    cov = np.array([[1.0, rho], [rho, 1.0]])
    return float(
        multivariate_normal.cdf(
            np.array([x, y]), mean=_ZERO_MEAN, cov=cov, abseps=_BVN_EPS, releps=_BVN_EPS
        )
    )


def copula_joint_survival(
    credit_survival: float, counterparty_survival: float, correlation: float
) -> float:
    """Probability that neither name defaults, given each marginal survival.

    Args:
        credit_survival: Conditional survival of the reference credit
        counterparty_survival: Conditional survival of the counterparty
        correlation: Gaussian copula correlation in [-1, 1]

    Returns:
        Joint survival probability in ``[max(0, S_D + S_P - 1), min(S_D, S_P)]``
    """
    s_d, s_p = credit_survival, counterparty_survival
    if s_p >= 1.0:
        return s_d
    if s_d >= 1.0:
        return s_p
    if s_d <= 0.0 or s_p <= 0.0:
        return 0.0
    if correlation == 0.0:
        return s_d * s_p

    upper = min(s_d, s_p)
    lower = max(0.0, s_d + s_p - 1.0)
    if correlation >= 1.0:
        return upper
    if correlation <= -1.0:
        return lower

    f_d, f_p = 1.0 - s_d, 1.0 - s_p
    joint_default = _bivariate_normal_cdf(
        _inverse_normal(f_d), _inverse_normal(f_p), correlation
    )
    return min(upper, max(lower, 1.0 - f_d - f_p + joint_default))


def joint_survival(
    start: date,
    end: date,
    survival_curve: SurvivalCurve,
    counterparty_curve: Optional[SurvivalCurve] = None,
    correlation: float = 0.0,
) -> float:
    """Closed-form joint survival over ``[start, end]`` (no grid walk).

    With no counterparty curve this is ``S(end) / S(start)`` exactly.
    """
    credit = survival_curve.survival_probability(start, end)
    if counterparty_curve is None:
        return credit
    counterparty = counterparty_curve.survival_probability(start, end)
    return copula_joint_survival(credit, counterparty, correlation)


def _check_interval(start: date, end: date) -> None:
    if start > end:
        raise ValueError(f"Start date {start} is after end date {end}")


def overall_survival_probability(
    start: date,
    end: date,
    survival_curve: SurvivalCurve,
    counterparty_curve: Optional[SurvivalCurve] = None,
    correlation: float = 0.0,
    step_size: int = 0,
    step_unit: TimeUnit = TimeUnit.NONE,
) -> float:
    """Probability that neither the credit nor the counterparty defaults in ``[start, end]``.

    Args:
        start: Start of the horizon (both names alive)
        end: End of the horizon
        survival_curve: Reference credit survival curve
        counterparty_curve: Counterparty survival curve, if any
        correlation: Default correlation between the two names
        step_size: Grid step size (0 for a single step)
        step_unit: Grid step unit

    Returns:
        Joint survival probability, non-increasing in ``end``

    Raises:
        ValueError: If ``start`` is after ``end``
    """
    _check_interval(start, end)
    if counterparty_curve is None:
        return survival_curve.survival_probability(start, end)

    survival = 1.0
    for node in build_time_grid(start, end, step_size, step_unit)[1:]:
        survival = min(
            survival,
            joint_survival(start, node, survival_curve, counterparty_curve, correlation),
        )
    return survival


def _first_to_default_split(
    start: date,
    end: date,
    survival_curve: SurvivalCurve,
    counterparty_curve: SurvivalCurve,
    correlation: float,
    step_size: int,
    step_unit: TimeUnit,
) -> Tuple[float, float]:
    credit_first = 0.0
    counterparty_first = 0.0
    prev_joint, prev_credit, prev_counterparty = 1.0, 1.0, 1.0
    for node in build_time_grid(start, end, step_size, step_unit)[1:]:
        credit = survival_curve.survival_probability(start, node)
        counterparty = counterparty_curve.survival_probability(start, node)
        joint = min(prev_joint, copula_joint_survival(credit, counterparty, correlation))
        decrement = prev_joint - joint

        if decrement > 0.0:
            a = _log_decrement(prev_credit, credit)
            b = _log_decrement(prev_counterparty, counterparty)
            if math.isinf(a) and math.isinf(b):
                share = 0.5
            elif math.isinf(a):
                share = 1.0
            elif math.isinf(b):
                share = 0.0
            elif a + b > 0.0:
                share = a / (a + b)
            else:
                share = 0.5
            credit_first += decrement * share
            counterparty_first += decrement * (1.0 - share)

        prev_joint, prev_credit, prev_counterparty = joint, credit, counterparty
    logger.debug(
        "First-to-default split on [%s, %s]: credit=%s counterparty=%s",
        start,
        end,
        credit_first,
        counterparty_first,
    )
    return credit_first, counterparty_first


def _log_decrement(previous: float, current: float) -> float:
    if previous <= 0.0:
        return 0.0
    if current <= 0.0:
        return math.inf
    return max(math.log(previous / current), 0.0)


def credit_default_probability(
    start: date,
    end: date,
    survival_curve: SurvivalCurve,
    counterparty_curve: Optional[SurvivalCurve] = None,
    correlation: float = 0.0,
    step_size: int = 0,
    step_unit: TimeUnit = TimeUnit.NONE,
) -> float:
    """Probability that the credit defaults in ``[start, end]`` before the counterparty."""
    _check_interval(start, end)
    if counterparty_curve is None:
        return 1.0 - survival_curve.survival_probability(start, end)
    return _first_to_default_split(
        start, end, survival_curve, counterparty_curve, correlation, step_size, step_unit
    )[0]


def counterparty_default_probability(
    start: date,
    end: date,
    survival_curve: SurvivalCurve,
    counterparty_curve: Optional[SurvivalCurve] = None,
    correlation: float = 0.0,
    step_size: int = 0,
    step_unit: TimeUnit = TimeUnit.NONE,
) -> float:
    """Probability that the counterparty defaults in ``[start, end]`` before the credit."""
    _check_interval(start, end)
    if counterparty_curve is None:
        return 0.0
    return _first_to_default_split(
        start, end, survival_curve, counterparty_curve, correlation, step_size, step_unit
    )[1]
