"""Credit product definitions."""

from .cds import CDS, BasketCDS, NthToDefault

__all__ = ["CDS", "BasketCDS", "NthToDefault"]
