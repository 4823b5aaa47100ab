"""
Record validation rules.

Rules are checked in a fixed order and the first failure wins:

1. customer id present
2. email matches the accepted grammar
3. name present
4. creation timestamp set (the zero instant 0001-01-01T00:00:00Z counts as unset)

Every failure is recorded through the injected rejection sink, which the rate
limit and persistence paths share through `log_error`, so one counter tallies
every rejection regardless of stage.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from customer_ingest.domain.models import Record
from customer_ingest.validation.rejections import RejectionSink

# Lowercase only. Uppercase addresses are rejected; callers rely on that.
EMAIL_PATTERN = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,4}$")

REASON_CUSTOMER_ID_REQUIRED = "customer_id is required"
REASON_INVALID_EMAIL = "invalid email format"
REASON_NAME_REQUIRED = "name is required"
REASON_CREATED_AT_REQUIRED = "created_at is required"

# Zero value of a timestamp; treated the same as an unset one.
ZERO_INSTANT = datetime(1, 1, 1, tzinfo=timezone.utc)


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of validating one record.

    On success `record` is the validated record (with `updated_at` defaulted);
    on failure `reason` names the first rule that failed.
    """

    record: Optional[Record] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


class Validator:
    """
    Stateless rule evaluation plus access to the shared rejection sink.
    """

    def __init__(
        self,
        rejections: RejectionSink,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._rejections = rejections
        self._clock = clock

    @property
    def rejections(self) -> RejectionSink:
        return self._rejections

    def _first_failure(self, record: Record) -> Optional[str]:
        if not record.customer_id:
            return REASON_CUSTOMER_ID_REQUIRED
        if not is_valid_email(record.email):
            return REASON_INVALID_EMAIL
        if not record.name:
            return REASON_NAME_REQUIRED
        if record.created_at is None or record.created_at == ZERO_INSTANT:
            return REASON_CREATED_AT_REQUIRED
        return None

    def validate(self, record: Record) -> ValidationOutcome:
        reason = self._first_failure(record)
        if reason is not None:
            self.log_error(record.customer_id, reason)
            return ValidationOutcome(reason=reason)

        if record.updated_at is None:
            record = record.model_copy(update={"updated_at": self._clock()})
        return ValidationOutcome(record=record)

    def log_error(self, customer_id: str, reason: str) -> None:
        """Record a rejection from any stage in the shared log and counter."""
        self._rejections.record(customer_id, reason)

    def error_count(self) -> int:
        return self._rejections.count()


__all__ = [
    "EMAIL_PATTERN",
    "REASON_CREATED_AT_REQUIRED",
    "REASON_CUSTOMER_ID_REQUIRED",
    "REASON_INVALID_EMAIL",
    "REASON_NAME_REQUIRED",
    "ZERO_INSTANT",
    "ValidationOutcome",
    "Validator",
    "is_valid_email",
]
