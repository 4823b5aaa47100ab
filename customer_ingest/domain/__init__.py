"""
Domain package for Customer Ingest.

Exports the data definitions shared by the validator, rate limiter, sinks and
pipeline. Keep this package free of I/O.
"""

from customer_ingest.domain.models import Batch, BatchResult, ErrorEntry, RawRecord, Record
from customer_ingest.domain.timestamps import TimestampFormatError, parse_timestamp

__all__ = [
    "Batch",
    "BatchResult",
    "ErrorEntry",
    "RawRecord",
    "Record",
    "TimestampFormatError",
    "parse_timestamp",
]
