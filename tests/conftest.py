"""
Pytest configuration for Customer Ingest.

Provides fixtures for:
- Fresh pipeline components (error log, rate limiter, sinks) per test
- Reading the error log back
- Database connection management for integration tests
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, List, Optional

import psycopg
import pytest

from customer_ingest.config import Settings
from customer_ingest.dispatch.abstract import Dispatcher
from customer_ingest.domain.models import Record
from customer_ingest.errors import SinkError
from customer_ingest.infrastructure.db_factory import ensure_schema
from customer_ingest.infrastructure.sinks import InMemoryRecordSink
from customer_ingest.pipeline import IngestionPipeline
from customer_ingest.ratelimit.sliding_window import SlidingWindowRateLimiter
from customer_ingest.validation.rejections import ErrorLog
from customer_ingest.validation.validator import Validator

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def ts(seconds: float = 0) -> str:
    """RFC 3339 string `seconds` after BASE_TIME."""
    return (BASE_TIME + timedelta(seconds=seconds)).strftime("%Y-%m-%dT%H:%M:%SZ")


def sample(
    customer_id: str,
    email: Optional[str] = None,
    name: str = "Test User",
    created_at: Optional[str] = None,
) -> dict:
    """Raw batch entry with valid defaults for every field not given."""
    return {
        "customerId": customer_id,
        "email": email if email is not None else f"{customer_id}@example.com",
        "name": name,
        "createdAt": created_at if created_at is not None else ts(),
    }


def read_error_entries(path: Path) -> List[dict]:
    """Decode the concatenated JSON blocks of an error log."""
    if not path.exists():
        return []
    text = path.read_text(encoding="utf-8")
    decoder = json.JSONDecoder()
    entries: List[dict] = []
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return entries
        entry, pos = decoder.raw_decode(text, pos)
        entries.append(entry)


class FailingSink:
    """Sink that rejects inserts for chosen customers."""

    name = "failing"

    def __init__(self, fail_for: set[str], reason: str = "duplicate key") -> None:
        self.fail_for = fail_for
        self.reason = reason
        self.inserted: List[Record] = []

    def insert(self, record: Record) -> None:
        if record.customer_id in self.fail_for:
            raise SinkError(self.reason)
        self.inserted.append(record)


@pytest.fixture
def error_log_path(tmp_path: Path) -> Path:
    return tmp_path / "error.log"


@pytest.fixture
def error_log(error_log_path: Path) -> ErrorLog:
    return ErrorLog(error_log_path)


@pytest.fixture
def memory_sink() -> InMemoryRecordSink:
    return InMemoryRecordSink()


@pytest.fixture
def make_pipeline(
    error_log: ErrorLog, memory_sink: InMemoryRecordSink
) -> Callable[..., IngestionPipeline]:
    """
    Factory for pipelines sharing the test's error log.

    Defaults: limit 5, in-memory sink, sequential dispatcher.
    """

    def _make(
        limit: int = 5,
        sink=None,
        dispatcher: Optional[Dispatcher] = None,
    ) -> IngestionPipeline:
        return IngestionPipeline(
            validator=Validator(error_log),
            rate_limiter=SlidingWindowRateLimiter(limit=limit),
            sink=sink if sink is not None else memory_sink,
            dispatcher=dispatcher,
        )

    return _make


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "customer_ingest"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        ensure_schema(conn)
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def clean_customer_records(db_connection: psycopg.Connection):
    """
    Empty the customer_records table before and after each test.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.customer_records RESTART IDENTITY;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.customer_records RESTART IDENTITY;")
    db_connection.commit()
