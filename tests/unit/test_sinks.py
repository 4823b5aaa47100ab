from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone

import psycopg
import pytest
from psycopg_pool import PoolTimeout

from customer_ingest.domain.models import Record
from customer_ingest.errors import SinkError
from customer_ingest.infrastructure import sinks
from customer_ingest.infrastructure.db_factory import statement_timeout_options
from customer_ingest.infrastructure.sinks import (
    INSERT_SQL,
    InMemoryRecordSink,
    PostgresRecordSink,
    RecordSink,
)

CREATED = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
INGESTED = datetime(2024, 3, 2, 9, 0, tzinfo=timezone.utc)


def _record(customer_id: str = "c1") -> Record:
    return Record(
        customer_id=customer_id,
        email=f"{customer_id}@example.com",
        name="Test",
        created_at=CREATED,
        updated_at=INGESTED,
    )


class FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    def execute(self, sql, params=None):
        if self._pool.fail_with is not None:
            raise self._pool.fail_with
        self._pool.executed.append((sql, params))


class FakePool:
    def __init__(self) -> None:
        self.executed = []
        self.fail_with = None
        self.closed = False
        self.wait_error = None
        self.wait_calls = 0

    def wait(self, timeout=None):
        self.wait_calls += 1
        if self.wait_error is not None:
            raise self.wait_error

    @contextmanager
    def connection(self):
        yield FakeConnection(self)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_pool(monkeypatch) -> FakePool:
    pool = FakePool()
    calls = []

    def _create_pool(**kwargs):
        calls.append(kwargs)
        return pool

    monkeypatch.setattr(sinks, "create_pool", _create_pool)
    monkeypatch.setattr(sinks, "ensure_schema", lambda conn: None)
    pool.create_calls = calls
    return pool


def test_memory_sink_stores_rows() -> None:
    sink = InMemoryRecordSink(clock=lambda: INGESTED)

    sink.insert(_record("c1"))
    sink.insert(_record("c2"))

    assert isinstance(sink, RecordSink)
    assert [row.customer_id for row in sink.rows] == ["c1", "c2"]
    assert sink.rows[0].created_at == CREATED
    assert sink.rows[0].ingested_at == INGESTED


def test_memory_sink_rows_is_a_snapshot() -> None:
    sink = InMemoryRecordSink()
    sink.insert(_record())

    snapshot = sink.rows
    sink.insert(_record("c2"))

    assert len(snapshot) == 1


def test_postgres_sink_inserts_through_pool(fake_pool: FakePool) -> None:
    sink = PostgresRecordSink(pool_max_size=3, clock=lambda: INGESTED)

    sink.insert(_record("c1"))
    sink.insert(_record("c2"))

    assert len(fake_pool.create_calls) == 1
    assert fake_pool.create_calls[0]["max_size"] == 3
    assert fake_pool.executed[0] == (
        INSERT_SQL,
        ("c1", "c1@example.com", "Test", CREATED, INGESTED),
    )
    assert len(fake_pool.executed) == 2


def test_postgres_sink_wraps_driver_errors(fake_pool: FakePool) -> None:
    fake_pool.fail_with = psycopg.OperationalError("server closed the connection")
    sink = PostgresRecordSink()

    with pytest.raises(SinkError, match="server closed the connection") as excinfo:
        sink.insert(_record("c9"))

    assert excinfo.value.code == "sink_insert"
    assert excinfo.value.details == {"customer_id": "c9"}


def test_postgres_sink_close_releases_pool(fake_pool: FakePool) -> None:
    sink = PostgresRecordSink()
    sink.insert(_record())

    sink.close()
    sink.close()

    assert fake_pool.closed
    assert sink._pool_instance is None


def test_postgres_sink_closes_pool_when_schema_setup_fails(fake_pool: FakePool, monkeypatch) -> None:
    def _broken_schema(conn):
        raise psycopg.OperationalError("permission denied")

    monkeypatch.setattr(sinks, "ensure_schema", _broken_schema)
    sink = PostgresRecordSink()

    with pytest.raises(SinkError, match="permission denied"):
        sink.insert(_record())

    assert fake_pool.closed
    assert sink._pool_instance is None


def test_statement_timeout_options() -> None:
    assert statement_timeout_options(5000) == "-c statement_timeout=5000"
    assert statement_timeout_options(0) is None


def test_postgres_sink_fails_fast_after_database_unreachable(fake_pool: FakePool) -> None:
    fake_pool.wait_error = PoolTimeout("pool initialization incomplete after 0.5 sec")
    sink = PostgresRecordSink(pool_timeout_seconds=0.5)

    for customer_id in ("c1", "c2", "c3"):
        with pytest.raises(SinkError, match="pool initialization incomplete"):
            sink.insert(_record(customer_id))

    assert len(fake_pool.create_calls) == 1
    assert fake_pool.create_calls[0]["pool_timeout_seconds"] == 0.5
    assert fake_pool.wait_calls == 1
    assert fake_pool.closed
    assert fake_pool.executed == []


def test_pool_timeout_defaults_from_settings(fake_pool: FakePool) -> None:
    sink = PostgresRecordSink()

    sink.insert(_record())

    assert sink.pool_timeout_seconds == 5.0
    assert fake_pool.create_calls[0]["pool_timeout_seconds"] == 5.0
