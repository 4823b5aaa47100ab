"""
Validation package: record rules and the shared rejection sink.
"""

from customer_ingest.validation.rejections import ErrorLog, RejectionSink, reason_category
from customer_ingest.validation.validator import ValidationOutcome, Validator, is_valid_email

__all__ = [
    "ErrorLog",
    "RejectionSink",
    "ValidationOutcome",
    "Validator",
    "is_valid_email",
    "reason_category",
]
