"""
Record sinks: where accepted records are persisted.

The pipeline only needs `insert(record)`, raising `SinkError` on failure.
`PostgresRecordSink` is the production sink; `InMemoryRecordSink` backs dry
runs and tests.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol, runtime_checkable

import psycopg
from psycopg_pool import ConnectionPool

from customer_ingest.config import get_settings
from customer_ingest.domain.models import Record
from customer_ingest.errors import SinkError
from customer_ingest.infrastructure.db_factory import create_pool, ensure_schema
from customer_ingest.utils.logging import get_logger

log = get_logger(__name__)

INSERT_SQL = (
    "INSERT INTO public.customer_records (customer_id, email, name, created_at, ingested_at) "
    "VALUES (%s, %s, %s, %s, %s);"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StoredRecord:
    """A persisted row: the record's fields plus the ingestion timestamp."""

    customer_id: str
    email: str
    name: str
    created_at: datetime
    ingested_at: datetime


@runtime_checkable
class RecordSink(Protocol):
    """
    Persistence capability consumed by the pipeline.
    """

    name: str

    def insert(self, record: Record) -> None:
        """
        Persist one validated, admitted record.

        Raises
        ------
        SinkError
            If the record could not be stored.
        """
        ...


class InMemoryRecordSink:
    """
    Thread-safe list of stored rows.
    """

    name: str = "memory"

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._rows: List[StoredRecord] = []

    def insert(self, record: Record) -> None:
        row = StoredRecord(
            customer_id=record.customer_id,
            email=record.email,
            name=record.name,
            created_at=record.created_at,
            ingested_at=self._clock(),
        )
        with self._lock:
            self._rows.append(row)

    @property
    def rows(self) -> List[StoredRecord]:
        with self._lock:
            return list(self._rows)

    def close(self) -> None:
        return None


class PostgresRecordSink:
    """
    Insert records into `public.customer_records` through a connection pool.

    The pool is created lazily on first insert and sized so every dispatcher
    worker can hold a connection at once. If the database cannot be reached
    when the pool is first opened, the failure is remembered and every later
    insert fails fast with the same reason instead of waiting again.
    """

    name: str = "postgres"

    def __init__(
        self,
        pool_min_size: int = 1,
        pool_max_size: Optional[int] = None,
        dsn_override: Optional[str] = None,
        create_schema: bool = True,
        pool_timeout_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        settings = get_settings()
        self.pool_min_size = pool_min_size
        self.pool_max_size = pool_max_size or settings.dispatch_workers
        self.pool_timeout_seconds = (
            pool_timeout_seconds
            if pool_timeout_seconds is not None
            else settings.db_pool_timeout_seconds
        )
        self._dsn_override = dsn_override
        self._create_schema = create_schema
        self._clock = clock
        self._pool_lock = threading.Lock()
        self._pool_instance: ConnectionPool | None = None
        self._pool_error: Optional[str] = None

    def _get_pool(self) -> ConnectionPool:
        with self._pool_lock:
            if self._pool_error is not None:
                raise SinkError(self._pool_error)
            if self._pool_instance is None:
                pool = create_pool(
                    dsn=self._dsn_override,
                    min_size=self.pool_min_size,
                    max_size=max(self.pool_min_size, self.pool_max_size),
                    pool_timeout_seconds=self.pool_timeout_seconds,
                )
                try:
                    pool.wait(timeout=self.pool_timeout_seconds)
                    if self._create_schema:
                        with pool.connection() as conn:
                            ensure_schema(conn)
                except psycopg.Error as exc:
                    pool.close()
                    self._pool_error = str(exc) or type(exc).__name__
                    log.error("Database unavailable", extra={"error": self._pool_error})
                    raise SinkError(self._pool_error) from exc
                self._pool_instance = pool
            return self._pool_instance

    def insert(self, record: Record) -> None:
        params = (
            record.customer_id,
            record.email,
            record.name,
            record.created_at,
            self._clock(),
        )
        try:
            with self._get_pool().connection() as conn:
                conn.execute(INSERT_SQL, params)
        except psycopg.Error as exc:
            log.warning(
                "Insert failed",
                extra={"customer_id": record.customer_id, "error": str(exc)},
            )
            raise SinkError(str(exc), details={"customer_id": record.customer_id}) from exc

    def close(self) -> None:
        with self._pool_lock:
            if self._pool_instance is not None:
                try:
                    self._pool_instance.close()
                finally:
                    self._pool_instance = None


__all__ = ["INSERT_SQL", "InMemoryRecordSink", "PostgresRecordSink", "RecordSink", "StoredRecord"]
