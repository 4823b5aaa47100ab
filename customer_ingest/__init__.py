"""
Customer Ingest - batch ingestion of customer records.

Each record of a batch is parsed, validated, rate-limited per customer with a
sliding window, and persisted. Every rejection, whatever the stage, is written
to one append-only error log and counted once:

- Validation rules with a fixed precedence and failure taxonomy
- Per-customer sliding-window rate limiting driven by record timestamps
- Sequential or threaded dispatch over one shared limiter and validator
- Pluggable sinks (Postgres via a connection pool, or in-memory)
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from customer_ingest.config import Settings, get_settings
from customer_ingest.domain.models import BatchResult, RawRecord, Record
from customer_ingest.errors import BatchFormatError, IngestError, SinkError
from customer_ingest.pipeline import (
    IngestionPipeline,
    available_dispatchers,
    build_pipeline,
)
from customer_ingest.ratelimit import SlidingWindowRateLimiter
from customer_ingest.utils.logging import configure_logging, get_logger
from customer_ingest.validation import ErrorLog, Validator

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "BatchResult",
    "RawRecord",
    "Record",
    # Errors
    "BatchFormatError",
    "IngestError",
    "SinkError",
    # Pipeline
    "IngestionPipeline",
    "available_dispatchers",
    "build_pipeline",
    # Components
    "ErrorLog",
    "SlidingWindowRateLimiter",
    "Validator",
    # Logging
    "configure_logging",
    "get_logger",
]
