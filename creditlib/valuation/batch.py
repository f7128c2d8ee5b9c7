"""Batch pricing that isolates per-product failures."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Tuple

from creditlib.errors import ComputationError, InvalidInputError, ValidationError

from .types import CashflowPv

logger = logging.getLogger(__name__)


class Priceable(Protocol):
    def validate(self, errors: Optional[List[ValidationError]] = None) -> List[ValidationError]:
        ...

    def price(self) -> CashflowPv:
        ...


@dataclass
class BatchItem:
    """Outcome for one product of a batch.

    Attributes:
        index: Position of the product in the batch
        result: Leg values when pricing succeeded
        errors: Validation errors that prevented pricing
        failure: Message of the computation error that aborted pricing
    """

    index: int
    result: Optional[CashflowPv] = None
    errors: Tuple[ValidationError, ...] = field(default_factory=tuple)
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def price_batch(pricers: Iterable[Priceable]) -> List[BatchItem]:
    """Validate and price each pricer; problems with one never stop the rest.

    Validation errors are collected before any integration runs. A
    :class:`ComputationError` aborts only the product that raised it.
    """
    items: List[BatchItem] = []
    for index, pricer in enumerate(pricers):
        errors = pricer.validate([])
        if errors:
            logger.warning(
                "Skipping product %s: %s validation error(s)", index, len(errors)
            )
            items.append(BatchItem(index, errors=tuple(errors)))
            continue
        try:
            items.append(BatchItem(index, result=pricer.price()))
        except InvalidInputError as exc:
            items.append(BatchItem(index, errors=exc.errors))
        except ComputationError as exc:
            logger.error("Product %s failed: %s", index, exc)
            items.append(BatchItem(index, failure=str(exc)))
    return items
