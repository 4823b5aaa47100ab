"""
Exception types for Customer Ingest.

Only structural failures (`BatchFormatError`) escape a batch. `SinkError` is
raised by sinks and absorbed by the pipeline as a per-record rejection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(eq=False)
class IngestError(Exception):
    """
    Base error for ingest failures.

    Attributes
    ----------
    code : str
        Stable, machine-readable error code.
    message : str
        Human-readable error message.
    details : dict | None
        Optional structured context for logging.
    """

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is the message.
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class BatchFormatError(IngestError):
    """Raised when a batch source cannot be read or its container is malformed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(code="batch_format", message=message, details=details)


class SinkError(IngestError):
    """Raised by a record sink when an insert fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(code="sink_insert", message=message, details=details)


__all__ = ["IngestError", "BatchFormatError", "SinkError"]
