"""Date and grid helpers shared across the library."""

from .dates import add_tenor, tenor_delta, to_date
from .grid import build_time_grid

__all__ = ["add_tenor", "build_time_grid", "tenor_delta", "to_date"]
