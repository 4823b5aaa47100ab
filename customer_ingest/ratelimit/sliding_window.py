"""
In-memory sliding-window rate limiter.

Notes:
- Per-process only: separate processes each enforce their own limit.
- Thread-safe: one lock guards the whole key -> history mapping, so the
  prune-then-append sequence of `admit` is atomic for every key.
- Pruning is lazy. Stale timestamps are dropped when their key is next
  admitted; there is no background sweep.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List

from customer_ingest.ratelimit.base import AbstractRateLimiter


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


class SlidingWindowRateLimiter(AbstractRateLimiter):
    """
    Allow at most `limit` accepted requests per key in any trailing window.

    `admit` measures the window from the timestamp carried by the request, which
    keeps replays of historical batches deterministic. `remaining` measures it
    from the clock, so the two can disagree for records whose timestamps are
    far from the present.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float = 60,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize the limiter.

        Parameters
        ----------
        limit : int
            Maximum accepted requests per key within one window.
        window_seconds : float
            Window length in seconds.
        clock : Callable[[], datetime]
            Source of "now" for `remaining`; must return aware datetimes.

        Raises
        ------
        ValueError
            If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window = timedelta(seconds=window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._history: Dict[str, List[datetime]] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window(self) -> timedelta:
        return self._window

    def _window_start(self, at: datetime) -> datetime:
        try:
            return at - self._window
        except OverflowError:
            # Within one window of year 1: every earlier entry is in range.
            return _EARLIEST

    def admit(self, key: str, at: datetime) -> bool:
        window_start = self._window_start(at)

        with self._lock:
            history = self._history.get(key)
            if history is None:
                self._history[key] = [at]
                return True

            # Inclusive: an entry exactly one window old still counts.
            in_window = [t for t in history if t >= window_start]
            self._history[key] = in_window

            if len(in_window) < self._limit:
                in_window.append(at)
                return True
            return False

    def remaining(self, key: str) -> int:
        window_start = self._window_start(self._clock())

        with self._lock:
            history = self._history.get(key, ())
            in_window = sum(1 for t in history if t >= window_start)

        return self._limit - in_window

    def tracked_keys(self) -> int:
        """Number of keys with recorded history."""
        with self._lock:
            return len(self._history)


__all__ = ["SlidingWindowRateLimiter"]
