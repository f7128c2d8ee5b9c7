"""Tests for environment-driven policy configuration."""

import pytest

from creditlib import __version__
from creditlib.config import load_policy, policy_settings_from_env
from creditlib.conventions import TimeUnit
from creditlib.valuation import PricingPolicy

ENV_VARS = (
    "CREDITLIB_STEP_SIZE",
    "CREDITLIB_STEP_UNIT",
    "CREDITLIB_DEFAULT_TIMING",
    "CREDITLIB_ACCRUED_FRACTION",
    "CREDITLIB_DISCOUNTING_ACCRUED",
    "CREDITLIB_INCLUDE_SETTLE_PAYMENTS",
    "CREDITLIB_INCLUDE_MATURITY_PROTECTION",
    "CREDITLIB_LOG_LINEAR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_version() -> None:
    assert __version__ == "1.0.0"


def test_defaults_match_policy() -> None:
    assert load_policy() == PricingPolicy()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CREDITLIB_STEP_SIZE", "1")
    monkeypatch.setenv("CREDITLIB_STEP_UNIT", "days")
    monkeypatch.setenv("CREDITLIB_DEFAULT_TIMING", "0.25")
    monkeypatch.setenv("CREDITLIB_DISCOUNTING_ACCRUED", "yes")
    monkeypatch.setenv("CREDITLIB_LOG_LINEAR", "TRUE")
    policy = load_policy()
    assert policy.step_size == 1
    assert policy.step_unit is TimeUnit.DAYS
    assert policy.default_timing == 0.25
    assert policy.discounting_accrued
    assert policy.use_log_linear_approximation
    assert not policy.include_settle_payments


def test_explicit_overrides_win(monkeypatch) -> None:
    monkeypatch.setenv("CREDITLIB_STEP_SIZE", "1")
    policy = load_policy({"step_size": 6, "funded": True})
    assert policy.step_size == 6
    assert policy.funded


def test_bad_boolean_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("CREDITLIB_INCLUDE_SETTLE_PAYMENTS", "maybe")
    with pytest.raises(ValueError, match="CREDITLIB_INCLUDE_SETTLE_PAYMENTS"):
        policy_settings_from_env()


def test_bad_step_unit_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("CREDITLIB_STEP_UNIT", "fortnights")
    with pytest.raises(KeyError):
        policy_settings_from_env()


def test_policy_validation() -> None:
    errors = PricingPolicy(
        step_size=-1, default_timing=1.5, accrued_fraction_on_default=-0.1
    ).validate()
    assert [e.field for e in errors] == [
        "step_size",
        "default_timing",
        "accrued_fraction_on_default",
    ]
    assert str(errors[0]).startswith("PricingPolicy.step_size:")
    assert PricingPolicy().validate() == []
