"""Integration time grids."""

import logging
from datetime import date
from typing import List

from creditlib.conventions.types import TimeUnit
from creditlib.errors import ComputationError

from .dates import tenor_delta

logger = logging.getLogger(__name__)

MAX_GRID_POINTS = 100_000


def build_time_grid(
    start: date, end: date, step_size: int, step_unit: TimeUnit
) -> List[date]:
    """Nodes ``start = t0 < t1 < ... < tn = end`` spaced ``step_size`` units apart.

    Nodes are offsets from ``start`` (``start + k * step``) rather than
    repeated increments, so month-end rolls do not drift. The last step is a
    stub ending at ``end``. A zero step size or ``TimeUnit.NONE`` gives the
    single step ``[start, end]``.

    Raises:
        ValueError: If ``step_size`` is negative
        ComputationError: If the grid would exceed ``MAX_GRID_POINTS`` nodes
    """
    if step_size < 0:
        raise ValueError(f"Step size must be non-negative: {step_size}")
    if end <= start:
        return [start]
    if step_size == 0 or step_unit is TimeUnit.NONE:
        return [start, end]

    nodes = [start]
    k = 1
    while True:
        node = start + tenor_delta(k * step_size, step_unit)
        if node >= end:
            break
        nodes.append(node)
        k += 1
        if k > MAX_GRID_POINTS:
            raise ComputationError(
                f"Integration grid from {start} to {end} with step "
                f"{step_size} {step_unit.value} exceeds {MAX_GRID_POINTS} points"
            )
    nodes.append(end)
    return nodes
