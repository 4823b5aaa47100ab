"""
Ingestion pipeline: parse -> validate -> rate-check -> persist, per record.

Usage:
    from customer_ingest.pipeline import build_pipeline

    pipeline = build_pipeline(sink=InMemoryRecordSink(), dispatcher_name="sequential")
    result = pipeline.process_file("samples.json")
    print(result.success, result.failure)

A record failing any stage is logged once to the shared error log and the
batch moves on. Only a malformed batch container (`BatchFormatError`) stops a
batch.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from customer_ingest.config import Settings, get_settings
from customer_ingest.dispatch.abstract import Dispatcher
from customer_ingest.dispatch.sequential import SequentialDispatcher
from customer_ingest.dispatch.threaded import ThreadedDispatcher
from customer_ingest.domain.models import BatchResult, RawRecord, Record
from customer_ingest.domain.timestamps import TimestampFormatError, parse_timestamp
from customer_ingest.errors import BatchFormatError, SinkError
from customer_ingest.infrastructure.sinks import RecordSink
from customer_ingest.ratelimit.base import AbstractRateLimiter
from customer_ingest.ratelimit.sliding_window import SlidingWindowRateLimiter
from customer_ingest.sources import parse_batch, read_batch_file
from customer_ingest.utils.logging import get_logger
from customer_ingest.validation.rejections import ErrorLog, RejectionSink
from customer_ingest.validation.validator import Validator

log = get_logger(__name__)

REASON_RATE_LIMITED = "rate limit exceeded"
INVALID_DATE_PREFIX = "invalid date format: "
INSERT_FAILED_PREFIX = "failed to insert: "


def _dispatcher_factories(workers: Optional[int] = None) -> Dict[str, Callable[[], Dispatcher]]:
    """Registry of available dispatchers."""
    return {
        "sequential": lambda: SequentialDispatcher(),
        "threaded": lambda: ThreadedDispatcher(workers=workers),
    }


def available_dispatchers() -> List[str]:
    """List available dispatcher names."""
    return sorted(_dispatcher_factories().keys())


def resolve_dispatcher(name: str, workers: Optional[int] = None) -> Dispatcher:
    factories = _dispatcher_factories(workers)
    if name not in factories:
        raise ValueError(f"Unknown dispatcher '{name}'. Available: {', '.join(sorted(factories))}")
    return factories[name]()


def _coerce_records(raw_records: Iterable[Union[RawRecord, Mapping]]) -> List[RawRecord]:
    records: List[RawRecord] = []
    for index, item in enumerate(raw_records):
        if isinstance(item, RawRecord):
            records.append(item)
            continue
        try:
            records.append(RawRecord.model_validate(item))
        except ValidationError as exc:
            raise BatchFormatError(
                f"malformed record at index {index}", details={"index": index}
            ) from exc
    return records


class IngestionPipeline:
    """
    Drives records through the four stages and aggregates batch counts.

    The validator (and with it the rejection counter) and the rate limiter are
    long-lived: their state carries over from one batch to the next, so the
    `failure` count of a `BatchResult` is cumulative for this pipeline.
    """

    def __init__(
        self,
        validator: Validator,
        rate_limiter: AbstractRateLimiter,
        sink: RecordSink,
        dispatcher: Optional[Dispatcher] = None,
    ) -> None:
        self.validator = validator
        self.rate_limiter = rate_limiter
        self.sink = sink
        self.dispatcher = dispatcher or SequentialDispatcher()

    def process_record(self, raw: RawRecord) -> bool:
        """
        Run one raw record through every stage.

        Returns True when the record was persisted, False when it was rejected
        (the rejection has already been logged).
        """
        try:
            created_at = parse_timestamp(raw.created_at)
        except TimestampFormatError:
            self.validator.log_error(raw.customer_id, INVALID_DATE_PREFIX + raw.created_at)
            return False

        record = Record(
            customer_id=raw.customer_id,
            email=raw.email,
            name=raw.name,
            created_at=created_at,
        )

        outcome = self.validator.validate(record)
        if not outcome.ok:
            return False
        record = outcome.record

        if not self.rate_limiter.admit(record.customer_id, record.created_at):
            self.validator.log_error(record.customer_id, REASON_RATE_LIMITED)
            return False

        try:
            self.sink.insert(record)
        except SinkError as exc:
            self.validator.log_error(record.customer_id, INSERT_FAILED_PREFIX + str(exc))
            return False

        return True

    def process_batch(self, raw_records: Iterable[Union[RawRecord, Mapping]]) -> BatchResult:
        """
        Process every record of a batch and return the aggregate counts.

        `success` counts records persisted by this call. `failure` is the
        validator's cumulative rejection counter read after the batch.
        """
        records: Sequence[RawRecord] = _coerce_records(raw_records)
        log.info(
            "[BATCH START]",
            extra={"records": len(records), "dispatcher": self.dispatcher.name},
        )

        success = self.dispatcher.dispatch(records, self.process_record)
        result = BatchResult(success=success, failure=self.validator.error_count())

        log.info(
            "[BATCH COMPLETE]",
            extra={
                "records": len(records),
                "success": result.success,
                "failure": result.failure,
                "dispatcher": self.dispatcher.name,
            },
        )
        return result

    def process_payload(self, payload: Union[str, bytes]) -> BatchResult:
        """Decode a JSON batch document and process it."""
        return self.process_batch(parse_batch(payload).samples)

    def process_file(self, path: Union[Path, str]) -> BatchResult:
        """Read a batch file and process it."""
        batch = read_batch_file(path)
        log.info("Batch file loaded", extra={"path": str(path), "records": len(batch.samples)})
        return self.process_batch(batch.samples)


def build_pipeline(
    sink: RecordSink,
    dispatcher_name: str = "sequential",
    workers: Optional[int] = None,
    rate_limit: Optional[int] = None,
    error_log_path: Optional[Union[Path, str]] = None,
    rejections: Optional[RejectionSink] = None,
    settings: Optional[Settings] = None,
) -> IngestionPipeline:
    """
    Assemble a pipeline from settings, with explicit overrides.

    Parameters
    ----------
    sink : RecordSink
        Where admitted records are persisted.
    dispatcher_name : str
        One of `available_dispatchers()`.
    workers : int | None
        Worker threads for the threaded dispatcher. Defaults to settings.
    rate_limit : int | None
        Accepted records per customer per window. Defaults to settings.
    error_log_path : Path | str | None
        Rejection log file. Defaults to settings. Ignored when `rejections` is given.
    rejections : RejectionSink | None
        Pre-built rejection sink, e.g. an `ErrorLog` the caller wants to inspect.
    settings : Settings | None
        Explicit settings; defaults to `get_settings()`.
    """
    settings = settings or get_settings()
    if rejections is None:
        rejections = ErrorLog(error_log_path or settings.error_log_path)
    limiter = SlidingWindowRateLimiter(
        limit=rate_limit or settings.rate_limit_per_minute,
        window_seconds=settings.rate_window_seconds,
    )
    dispatcher = resolve_dispatcher(dispatcher_name, workers or settings.dispatch_workers)
    log.info(
        "Pipeline assembled",
        extra={
            "dispatcher": dispatcher.name,
            "sink": sink.name,
            "rate_limit": limiter.limit,
        },
    )
    return IngestionPipeline(
        validator=Validator(rejections),
        rate_limiter=limiter,
        sink=sink,
        dispatcher=dispatcher,
    )


__all__ = [
    "IngestionPipeline",
    "available_dispatchers",
    "build_pipeline",
    "resolve_dispatcher",
]
