"""
Dispatcher interfaces for Customer Ingest.

A dispatcher decides how the records of one batch are scheduled onto the
pipeline's per-record handler: in input order on the calling thread, or fanned
out to worker threads. Dispatchers never look inside a record; they only count
how many handler calls reported success.
"""

from __future__ import annotations

import abc
from typing import Callable, Protocol, Sequence, runtime_checkable

from customer_ingest.domain.models import RawRecord

RecordHandler = Callable[[RawRecord], bool]


@runtime_checkable
class Dispatcher(Protocol):
    """
    Common interface all dispatchers implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the scheduling policy.
    """

    name: str
    description: str

    def dispatch(self, records: Sequence[RawRecord], handle: RecordHandler) -> int:
        """
        Run `handle` once per record and return how many calls returned True.

        Exceptions raised by `handle` propagate to the caller.
        """
        ...


class AbstractDispatcher(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses set `name` and `description` and implement `dispatch`.
    """

    name: str
    description: str

    @abc.abstractmethod
    def dispatch(
        self, records: Sequence[RawRecord], handle: RecordHandler
    ) -> int:  # pragma: no cover - interface only
        """Schedule every record onto `handle` and count successes."""
        raise NotImplementedError


__all__ = ["AbstractDispatcher", "Dispatcher", "RecordHandler"]
