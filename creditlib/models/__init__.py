"""Default dependence models."""

from .counterparty import (
    copula_joint_survival,
    counterparty_default_probability,
    credit_default_probability,
    joint_survival,
    overall_survival_probability,
)

__all__ = [
    "copula_joint_survival",
    "counterparty_default_probability",
    "credit_default_probability",
    "joint_survival",
    "overall_survival_probability",
]
