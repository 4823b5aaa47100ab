"""
Profiling utilities for Customer Ingest.

Measures a batch run so the CLI can report throughput alongside the
success/failure counts:
- Wall-clock time (perf_counter)
- CPU usage (psutil)
- Resident memory at the start and end of the block (psutil)

Usage:
    from customer_ingest.utils.profiler import profile_batch

    with profile_batch("samples.json") as stats:
        result = pipeline.process_file("samples.json")

    print(stats.duration_seconds, stats.records_per_second(result.attempted))
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

import psutil


@dataclass
class BatchProfile:
    """
    Container for measurements taken around one batch.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    start_rss_bytes: Optional[int] = field(default=None)
    end_rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)
    extra: dict[str, Any] = field(default_factory=dict)

    def records_per_second(self, records: int) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return records / self.duration_seconds

    @property
    def rss_delta_bytes(self) -> Optional[int]:
        if self.start_rss_bytes is None or self.end_rss_bytes is None:
            return None
        return self.end_rss_bytes - self.start_rss_bytes


@contextlib.contextmanager
def profile_batch(label: str) -> Generator[BatchProfile, None, None]:
    """
    Context manager to profile a batch run.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block (usually the batch source).

    Notes
    -----
    CPU percent needs a priming call; the value captured at exit covers the
    interval since entering the block.
    """
    stats = BatchProfile(label=label)
    process = psutil.Process()
    process.cpu_percent(interval=None)
    stats.start_rss_bytes = process.memory_info().rss

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stats.end_rss_bytes = process.memory_info().rss
        stats.cpu_percent = process.cpu_percent(interval=None)


__all__ = ["BatchProfile", "profile_batch"]
