"""
Library-wide defaults and environment-driven configuration.

Pricing policy defaults can be overridden per process through environment
variables (``CREDITLIB_*``) and per call through explicit overrides.
"""

import logging
import os
from typing import Any, Dict, Optional

from creditlib.conventions.types import TimeUnit

logger = logging.getLogger(__name__)

DEFAULT_RECOVERY_RATE = 0.4

# Solver defaults
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_BRACKET_STEP = 1.6
DEFAULT_MAX_BRACKET_STEPS = 50
DEFAULT_TOLERANCE = 1e-8

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Environment variable {name} is not a boolean: {raw!r}")


def policy_settings_from_env() -> Dict[str, Any]:
    """Read policy settings from ``CREDITLIB_*`` environment variables.

    Returns:
        Keyword arguments for :class:`creditlib.valuation.policy.PricingPolicy`.
        Variables that are not set fall back to the policy defaults.
    """
    settings: Dict[str, Any] = {
        "step_size": int(os.getenv("CREDITLIB_STEP_SIZE", "3")),
        "step_unit": TimeUnit[os.getenv("CREDITLIB_STEP_UNIT", "MONTHS").upper()],
        "default_timing": float(os.getenv("CREDITLIB_DEFAULT_TIMING", "0.5")),
        "accrued_fraction_on_default": float(
            os.getenv("CREDITLIB_ACCRUED_FRACTION", "1.0")
        ),
        "discounting_accrued": _env_bool("CREDITLIB_DISCOUNTING_ACCRUED", False),
        "include_settle_payments": _env_bool("CREDITLIB_INCLUDE_SETTLE_PAYMENTS", False),
        "include_maturity_protection": _env_bool(
            "CREDITLIB_INCLUDE_MATURITY_PROTECTION", False
        ),
        "use_log_linear_approximation": _env_bool("CREDITLIB_LOG_LINEAR", False),
    }
    return settings


def load_policy(overrides: Optional[Dict[str, Any]] = None):
    """Build a pricing policy from the environment plus explicit overrides.

    Args:
        overrides: Field values that take precedence over the environment

    Returns:
        A validated-on-use ``PricingPolicy``

    Examples:
        >>> policy = load_policy({"step_size": 1, "step_unit": TimeUnit.DAYS})
        >>> policy.step_unit
        <TimeUnit.DAYS: 'DAYS'>
    """
    # Import here to avoid circular dependency
    from creditlib.valuation.policy import PricingPolicy

    settings = policy_settings_from_env()
    if overrides:
        settings.update(overrides)
    logger.debug("Loaded pricing policy settings: %s", settings)
    return PricingPolicy(**settings)
