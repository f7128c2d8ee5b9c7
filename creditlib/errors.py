"""Error taxonomy for the pricing library.

Structural problems with inputs are collected as :class:`ValidationError`
records so that a batch can be screened without stopping at the first bad
product. Numerical failures during integration or root finding raise
:class:`ComputationError` (or one of its subclasses).
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple


@dataclass(frozen=True)
class ValidationError:
    """One structural problem with a pricing input.

    Attributes:
        owner: Name of the object that failed validation (pricer, policy, curve set)
        field: Offending attribute
        message: Human readable description
    """

    owner: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.owner}.{self.field}: {self.message}"


def add_error(errors: List[ValidationError], owner: str, field: str, message: str) -> None:
    """Append a validation record to ``errors``."""
    errors.append(ValidationError(owner, field, message))


class InvalidInputError(ValueError):
    """Raised when a single product fails validation and cannot be priced."""

    def __init__(self, errors: Iterable[ValidationError]):
        self.errors: Tuple[ValidationError, ...] = tuple(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"Invalid pricing inputs ({len(self.errors)}): {details}")


class ComputationError(RuntimeError):
    """Raised when a numeric computation produces no usable result."""


class RootBracketError(ComputationError):
    """Raised when no sign change can be found for a root search."""


class SolverConvergenceError(ComputationError):
    """Raised when the solver fails to converge within its iteration cap."""
