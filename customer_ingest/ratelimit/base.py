"""
Rate limiter interface.

The pipeline depends on this abstraction rather than the in-memory
implementation so a different store can be dropped in without touching the
orchestration code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class AbstractRateLimiter(ABC):
    """Interface for per-key rate limiters."""

    @abstractmethod
    def admit(self, key: str, at: datetime) -> bool:
        """
        Decide whether a request for `key` that logically happened at `at` is allowed.

        Parameters
        ----------
        key : str
            Customer key. Limits are never shared across keys.
        at : datetime
            Timestamp the request carries; the window is measured from it.

        Returns
        -------
        bool
            True if the request is admitted and recorded, False otherwise.
        """
        raise NotImplementedError

    @abstractmethod
    def remaining(self, key: str) -> int:
        """Return how many more requests `key` could make right now."""
        raise NotImplementedError


__all__ = ["AbstractRateLimiter"]
