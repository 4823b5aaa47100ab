"""
Sequential dispatcher: one record at a time, in input order.

The baseline policy. Because records are handled in file order, rate-limit
decisions for a customer follow the order their records appear in the batch.
"""

from __future__ import annotations

from typing import Sequence

from customer_ingest.dispatch.abstract import AbstractDispatcher, RecordHandler
from customer_ingest.domain.models import RawRecord


class SequentialDispatcher(AbstractDispatcher):
    name: str = "sequential"
    description: str = "Process records one by one on the calling thread."

    def dispatch(self, records: Sequence[RawRecord], handle: RecordHandler) -> int:
        success = 0
        for raw in records:
            if handle(raw):
                success += 1
        return success


__all__ = ["SequentialDispatcher"]
