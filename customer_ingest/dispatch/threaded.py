"""
Threaded dispatcher: fan records out to a pool of worker threads.

All workers share the pipeline's single rate limiter and validator, whose
locks serialize admissions per key and keep the rejection log and counter in
step. Which of two concurrent same-customer records wins a contended rate-limit
slot is not defined; the number admitted never exceeds the limit.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from customer_ingest.config import get_settings
from customer_ingest.dispatch.abstract import AbstractDispatcher, RecordHandler
from customer_ingest.domain.models import RawRecord
from customer_ingest.utils.logging import get_logger

log = get_logger(__name__)


class ThreadedDispatcher(AbstractDispatcher):
    name: str = "threaded"
    description: str = "ThreadPoolExecutor; one task per record, shared limiter and validator."

    def __init__(self, workers: Optional[int] = None) -> None:
        self.workers = workers or get_settings().dispatch_workers
        if self.workers < 1:
            raise ValueError("workers must be >= 1")

    def dispatch(self, records: Sequence[RawRecord], handle: RecordHandler) -> int:
        if not records:
            return 0

        log.debug("Dispatching batch", extra={"records": len(records), "workers": self.workers})
        success = 0
        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="ingest-worker"
        ) as pool:
            # map() re-raises the first handler exception while iterating.
            for ok in pool.map(handle, records):
                if ok:
                    success += 1
        return success


__all__ = ["ThreadedDispatcher"]
