"""
Rejection accounting shared by every failure path of the pipeline.

Validation failures, rate-limit denials and sink failures all land in one
`RejectionSink`: an append-only error log plus a counter. The append and the
increment happen under the same lock, so the counter always equals the number
of entries written by this instance. A failed write is reported on the
operational logger and leaves the counter untouched.
"""

from __future__ import annotations

import threading
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Protocol, runtime_checkable

from customer_ingest.domain.models import ErrorEntry
from customer_ingest.utils.logging import get_logger

log = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def reason_category(reason: str) -> str:
    """Strip the per-record detail: "invalid date format: x" -> "invalid date format"."""
    return reason.split(": ", 1)[0]


@runtime_checkable
class RejectionSink(Protocol):
    """
    Anything that can durably record a rejection and count it.
    """

    def record(self, customer_id: str, reason: str) -> ErrorEntry:
        """Append one rejection and bump the counter."""
        ...

    def count(self) -> int:
        """Total rejections recorded by this instance."""
        ...


class ErrorLog:
    """
    File-backed rejection sink.

    Each rejection is appended to `path` as a tab-indented JSON block. The
    file is opened per write in append mode so external rotation or truncation
    between writes is harmless.
    """

    def __init__(self, path: Path | str, clock: Callable[[], datetime] = _utcnow) -> None:
        self.path = Path(path)
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._write_failures = 0
        self._by_reason: Counter[str] = Counter()

    def record(self, customer_id: str, reason: str) -> ErrorEntry:
        entry = ErrorEntry(customer_id=customer_id, reason=reason, created_at=self._clock())
        block = entry.to_block()

        with self._lock:
            try:
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(block)
            except OSError as exc:
                # The record stays rejected; only its log entry is lost.
                self._write_failures += 1
                log.error(
                    "Failed to write error log",
                    extra={
                        "path": str(self.path),
                        "customer_id": customer_id,
                        "reason": reason,
                        "error": str(exc),
                    },
                )
                return entry
            self._count += 1
            self._by_reason[reason_category(reason)] += 1

        log.debug("Rejection recorded", extra={"customer_id": customer_id, "reason": reason})
        return entry

    def count(self) -> int:
        with self._lock:
            return self._count

    def write_failures(self) -> int:
        """Rejections whose entry could not be appended, and so were not counted."""
        with self._lock:
            return self._write_failures

    def reason_counts(self) -> Dict[str, int]:
        """Rejections per reason category, for reporting."""
        with self._lock:
            return dict(self._by_reason)

    def reset_file(self) -> None:
        """
        Truncate the log file so a run starts fresh.

        The counter is left alone; it only resets with a new instance.
        """
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("", encoding="utf-8")


__all__ = ["ErrorLog", "RejectionSink", "reason_category"]
