"""Rate limiting for the ingest pipeline.

The pipeline depends on `AbstractRateLimiter`; `SlidingWindowRateLimiter` is
the in-process implementation keyed by customer id.
"""

from customer_ingest.ratelimit.base import AbstractRateLimiter
from customer_ingest.ratelimit.sliding_window import SlidingWindowRateLimiter

__all__ = ["AbstractRateLimiter", "SlidingWindowRateLimiter"]
