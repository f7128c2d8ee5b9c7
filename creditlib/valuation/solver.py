"""One-dimensional root finding for implied quantities.

Objective functions return an :class:`Evaluation` instead of raising, so a
failed evaluation (say, a curve shift that makes pricing blow up) tells the
solver to try another point rather than aborting the whole search. Every
loop here has an explicit iteration cap.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from creditlib.config import (
    DEFAULT_BRACKET_STEP,
    DEFAULT_MAX_BRACKET_STEPS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
)
from creditlib.errors import ComputationError, RootBracketError, SolverConvergenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evaluation:
    """Outcome of one objective evaluation: a value or a failure reason."""

    value: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: float) -> "Evaluation":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> "Evaluation":
        return cls(error=reason)


Objective = Callable[[float], Evaluation]


@dataclass
class RootResult:
    root: float
    value: float
    iterations: int
    converged: bool
    method: str


def guarded(func: Callable[[float], float]) -> Objective:
    """Wrap ``func`` so numeric failures come back as :meth:`Evaluation.failure`."""

    def evaluate(x: float) -> Evaluation:
        try:
            value = func(x)
        except (ComputationError, ArithmeticError, ValueError) as exc:
            logger.debug("Evaluation failed at x=%s: %s", x, exc)
            return Evaluation.failure(f"{type(exc).__name__}: {exc}")
        if not math.isfinite(value):
            return Evaluation.failure(f"Non-finite value {value} at x={x}")
        return Evaluation.success(value)

    return evaluate


def _clip(x: float, lower_limit: float, upper_limit: float) -> float:
    return max(lower_limit, min(upper_limit, x))


def find_bracket(
    objective: Objective,
    lower: float,
    upper: float,
    *,
    lower_limit: float = -math.inf,
    upper_limit: float = math.inf,
    step: float = DEFAULT_BRACKET_STEP,
    max_steps: int = DEFAULT_MAX_BRACKET_STEPS,
) -> Tuple[float, float, float, float]:
    """Expand ``[lower, upper]`` geometrically until the objective changes sign.

    An end point whose evaluation fails is pulled halfway back toward the
    other end point and retried.

    Returns:
        ``(a, b, f(a), f(b))`` with ``f(a) * f(b) <= 0``

    Raises:
        RootBracketError: If no sign change is found within ``max_steps``
    """
    if lower >= upper:
        raise ValueError(f"Invalid bracket [{lower}, {upper}]")
    a, b = lower, upper
    fa, fb = objective(a), objective(b)

    for iteration in range(max_steps):
        if not fa.ok:
            a = 0.5 * (a + b)
            fa = objective(a)
            continue
        if not fb.ok:
            b = 0.5 * (a + b)
            fb = objective(b)
            continue
        if fa.value * fb.value <= 0.0:
            return a, b, fa.value, fb.value

        logger.debug(
            "Bracket step %s: f(%s)=%s f(%s)=%s", iteration, a, fa.value, b, fb.value
        )
        width = b - a
        if abs(fa.value) < abs(fb.value):
            new_a = _clip(a - step * width, lower_limit, upper_limit)
            if new_a == a:
                break
            a, fa = new_a, objective(new_a)
        else:
            new_b = _clip(b + step * width, lower_limit, upper_limit)
            if new_b == b:
                break
            b, fb = new_b, objective(new_b)

    raise RootBracketError(
        f"Failed to bracket the root after {max_steps} steps. "
        f"Last bracket: [{a:.6g}, {b:.6g}], "
        f"evaluations: ({fa.value if fa.ok else fa.error}, "
        f"{fb.value if fb.ok else fb.error})."
    )


def brent(
    objective: Objective,
    a: float,
    b: float,
    fa: float,
    fb: float,
    *,
    x_tolerance: float = DEFAULT_TOLERANCE,
    f_tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> RootResult:
    """Brent's method on a bracket with ``fa * fb <= 0``.

    Inverse quadratic interpolation and secant steps are used when they stay
    inside the bracket; otherwise the bracket is bisected. If the objective
    fails at a trial point the midpoint is tried instead.

    Raises:
        SolverConvergenceError: If the iteration cap is reached, or the
            objective fails at both a trial point and the bracket midpoint
    """
    if fa == 0.0:
        return RootResult(a, fa, 0, True, "brent")
    if fb == 0.0:
        return RootResult(b, fb, 0, True, "brent")
    if fa * fb > 0.0:
        raise RootBracketError(f"Brent requires a sign change: f({a})={fa}, f({b})={fb}")

    c, fc = a, fa
    d = e = b - a
    for iteration in range(1, max_iterations + 1):
        if (fb > 0.0) == (fc > 0.0):
            c, fc = a, fa
            d = e = b - a
        if abs(fc) < abs(fb):
            a, b, c = b, c, b
            fa, fb, fc = fb, fc, fb

        tol = 2.0 * 1e-15 * abs(b) + 0.5 * x_tolerance
        half = 0.5 * (c - b)
        if abs(half) <= tol or abs(fb) <= f_tolerance:
            return RootResult(b, fb, iteration, True, "brent")

        if abs(e) >= tol and abs(fa) > abs(fb):
            s = fb / fa
            if a == c:
                p = 2.0 * half * s
                q = 1.0 - s
            else:
                q = fa / fc
                r = fb / fc
                p = s * (2.0 * half * q * (q - r) - (b - a) * (r - 1.0))
                q = (q - 1.0) * (r - 1.0) * (s - 1.0)
            if p > 0.0:
                q = -q
            p = abs(p)
            if 2.0 * p < min(3.0 * half * q - abs(tol * q), abs(e * q)):
                e, d = d, p / q
            else:
                d = e = half
        else:
            d = e = half

        a, fa = b, fb
        trial = b + d if abs(d) > tol else b + math.copysign(tol, half)
        evaluation = objective(trial)
        if not evaluation.ok:
            midpoint = b + half
            logger.debug(
                "Brent iter %s: evaluation failed at %s (%s); trying midpoint %s",
                iteration,
                trial,
                evaluation.error,
                midpoint,
            )
            evaluation = objective(midpoint)
            if not evaluation.ok:
                raise SolverConvergenceError(
                    f"Objective failed at {trial} and at bracket midpoint {midpoint}: "
                    f"{evaluation.error}"
                )
            trial = midpoint
            d = e = half
        b, fb = trial, evaluation.value
        logger.debug("Brent iter %s: x=%s f=%s", iteration, b, fb)

    raise SolverConvergenceError(
        f"Solver failed to converge within {max_iterations} iterations. "
        f"Final estimate: {b:.10g}, objective value: {fb:.6e}."
    )


def find_root(
    objective: Objective,
    target: float,
    lower: float,
    upper: float,
    *,
    lower_limit: float = -math.inf,
    upper_limit: float = math.inf,
    x_tolerance: float = DEFAULT_TOLERANCE,
    f_tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    bracket_step: float = DEFAULT_BRACKET_STEP,
    max_bracket_steps: int = DEFAULT_MAX_BRACKET_STEPS,
) -> RootResult:
    """Solve ``objective(x) = target``.

    Args:
        objective: Function returning an :class:`Evaluation`
        target: Target value
        lower: Initial bracket lower end
        upper: Initial bracket upper end
        lower_limit: Hard lower limit for bracket expansion
        upper_limit: Hard upper limit for bracket expansion
        x_tolerance: Absolute tolerance on the root
        f_tolerance: Absolute tolerance on ``objective(x) - target``
        max_iterations: Iteration cap for Brent's method
        bracket_step: Geometric expansion factor for bracketing
        max_bracket_steps: Iteration cap for bracketing

    Returns:
        RootResult with the root and the residual ``objective(root) - target``

    Raises:
        RootBracketError: If no bracket can be found
        SolverConvergenceError: If Brent's method does not converge
    """

    def shifted(x: float) -> Evaluation:
        evaluation = objective(x)
        if not evaluation.ok:
            return evaluation
        return Evaluation.success(evaluation.value - target)

    a, b, fa, fb = find_bracket(
        shifted,
        lower,
        upper,
        lower_limit=lower_limit,
        upper_limit=upper_limit,
        step=bracket_step,
        max_steps=max_bracket_steps,
    )
    return brent(
        shifted,
        a,
        b,
        fa,
        fb,
        x_tolerance=x_tolerance,
        f_tolerance=f_tolerance,
        max_iterations=max_iterations,
    )
