"""Tests for day counts, dates and integration grids."""

from datetime import date, datetime

import pandas as pd
import pytest

from creditlib.conventions import Frequency, LegDirection, get_day_count_convention
from creditlib.conventions.types import CdsType, TimeUnit
from creditlib.errors import ComputationError
from creditlib.utils import add_tenor, build_time_grid, to_date


def test_day_count_lookup_is_case_insensitive() -> None:
    """Registry names resolve regardless of case."""
    act360 = get_day_count_convention("act/360")
    assert act360.name == "ACT/360"
    assert act360.year_fraction(date(2024, 1, 1), date(2024, 3, 31)) == pytest.approx(90 / 360)


def test_unknown_day_count_raises() -> None:
    with pytest.raises(ValueError, match="Unknown day count convention"):
        get_day_count_convention("ACT/999")


def test_day_count_instance_passes_through() -> None:
    act365 = get_day_count_convention("ACT/365F")
    assert get_day_count_convention(act365) is act365


def test_enums() -> None:
    assert Frequency.QUARTERLY.per_year() == 4
    assert Frequency.SEMIANNUAL.months() == 6
    assert LegDirection.PAY.sign == -1.0
    assert CdsType.FUNDED_FIXED.is_funded
    assert not CdsType.UNFUNDED.is_funded


def test_to_date_accepts_common_inputs() -> None:
    expected = date(2024, 3, 20)
    assert to_date("2024-03-20") == expected
    assert to_date("20240320") == expected
    assert to_date(datetime(2024, 3, 20, 15, 30)) == expected
    assert to_date(pd.Timestamp("2024-03-20")) == expected
    with pytest.raises(ValueError):
        to_date("20/03/2024")
    with pytest.raises(TypeError):
        to_date(20240320)


def test_add_tenor_rolls_months_and_days() -> None:
    assert add_tenor(date(2024, 1, 31), 1, TimeUnit.MONTHS) == date(2024, 2, 29)
    assert add_tenor(date(2024, 1, 31), -7, TimeUnit.DAYS) == date(2024, 1, 24)
    with pytest.raises(ValueError):
        add_tenor(date(2024, 1, 31), 1, TimeUnit.NONE)


def test_grid_with_zero_step_is_single_interval() -> None:
    start, end = date(2024, 1, 1), date(2024, 4, 1)
    assert build_time_grid(start, end, 0, TimeUnit.MONTHS) == [start, end]
    assert build_time_grid(start, end, 1, TimeUnit.NONE) == [start, end]


def test_grid_monthly_nodes_with_stub() -> None:
    grid = build_time_grid(date(2024, 1, 31), date(2024, 4, 15), 1, TimeUnit.MONTHS)
    assert grid == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 15),
    ]


def test_grid_degenerate_and_invalid() -> None:
    day = date(2024, 1, 1)
    assert build_time_grid(day, day, 1, TimeUnit.DAYS) == [day]
    with pytest.raises(ValueError):
        build_time_grid(day, date(2024, 2, 1), -1, TimeUnit.DAYS)


def test_grid_point_cap(monkeypatch) -> None:
    """An excessively fine grid is a computation error, not an endless loop."""
    monkeypatch.setattr("creditlib.utils.grid.MAX_GRID_POINTS", 10)
    with pytest.raises(ComputationError):
        build_time_grid(date(2024, 1, 1), date(2025, 1, 1), 1, TimeUnit.DAYS)
