"""
Domain models for Customer Ingest.

`RawRecord` and `Batch` mirror the JSON batch file exactly as it arrives.
`Record` is the parsed unit of work handed to the validator, rate limiter and
sink. `ErrorEntry` is one rejection as written to the error log, and
`BatchResult` is the aggregate returned for each processed batch.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, StrictStr

ERROR_LOG_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class RawRecord(BaseModel):
    """
    One entry of the batch file, before any parsing.

    Missing fields decode as empty strings so the record-level rules can reject
    them; non-string values make the whole batch malformed.
    """

    customer_id: StrictStr = Field("", alias="customerId")
    email: StrictStr = Field("", alias="email")
    name: StrictStr = Field("", alias="name")
    created_at: StrictStr = Field("", alias="createdAt")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }


class Batch(BaseModel):
    """
    Batch container: `{"samples": [...]}`.
    """

    samples: List[RawRecord] = Field(..., description="Ordered raw records of this batch.")

    model_config = {
        "extra": "ignore",
    }


class Record(BaseModel):
    """
    A customer record with its creation timestamp parsed.

    `created_at` is None when unset. `updated_at` stays None until a successful
    validation defaults it to the current time.
    """

    customer_id: str = Field(..., description="Customer identifier and rate-limit key.")
    email: str = Field(..., description="Contact email address.")
    name: str = Field(..., description="Display name.")
    created_at: Optional[datetime] = Field(None, description="Record creation timestamp.")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


@dataclass(frozen=True)
class ErrorEntry:
    """
    One rejection, as appended to the error log.
    """

    customer_id: str
    reason: str
    created_at: datetime

    def to_block(self) -> str:
        """Render the self-describing, tab-indented JSON block written to the log."""
        stamp = self.created_at.astimezone(timezone.utc).strftime(ERROR_LOG_TIMESTAMP_FORMAT)
        payload = {
            "status": "error",
            "customerId": self.customer_id,
            "reason": self.reason,
            "createdAt": stamp,
        }
        return json.dumps(payload, indent="\t", ensure_ascii=False) + "\n"


@dataclass(frozen=True)
class BatchResult:
    """
    Outcome of one batch.

    `failure` is read from the shared rejection counter, so on a long-lived
    validator it is cumulative across batches.
    """

    success: int
    failure: int

    @property
    def attempted(self) -> int:
        return self.success + self.failure

    def as_dict(self) -> dict:
        return {"attempted": self.attempted, "success": self.success, "failure": self.failure}


__all__ = ["RawRecord", "Batch", "Record", "ErrorEntry", "BatchResult"]
