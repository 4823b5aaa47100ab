"""
Utilities package for Customer Ingest.

Exports shared helpers for logging, profiling, and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from customer_ingest.utils.logging import configure_logging, get_logger
from customer_ingest.utils.profiler import BatchProfile, profile_batch

__all__ = [
    "configure_logging",
    "get_logger",
    "BatchProfile",
    "profile_batch",
]
