"""
Infrastructure package for Customer Ingest.

Centralizes persistence concerns (connection factories, pooling, sinks).
Keep this layer focused on I/O and resource management, decoupled from
validation and orchestration logic.
"""

from customer_ingest.infrastructure.db_factory import (
    build_dsn,
    create_pool,
    ensure_schema,
    get_sync_connection,
)
from customer_ingest.infrastructure.sinks import (
    InMemoryRecordSink,
    PostgresRecordSink,
    RecordSink,
    StoredRecord,
)

__all__ = [
    "build_dsn",
    "create_pool",
    "ensure_schema",
    "get_sync_connection",
    "InMemoryRecordSink",
    "PostgresRecordSink",
    "RecordSink",
    "StoredRecord",
]
