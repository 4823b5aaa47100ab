"""
Database connection factory utilities for Customer Ingest.

Builds the Postgres DSN from settings, opens connections and pools for the
persistence sink, and creates the `customer_records` table when missing.

Connection establishment retries transient failures using tenacity. Inserts
are never retried; a failed insert is a per-record rejection.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from customer_ingest.config import get_settings
from customer_ingest.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS public.customer_records (
    id BIGSERIAL PRIMARY KEY,
    customer_id TEXT NOT NULL,
    email TEXT NOT NULL,
    name TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    ingested_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS customer_records_customer_id_idx
    ON public.customer_records (customer_id);
"""


def build_dsn() -> str:
    """Compose a DSN string from settings."""
    settings = get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def statement_timeout_options(timeout_ms: int) -> Optional[str]:
    """
    libpq `options` value applying a statement timeout to every session.

    Returns None when the timeout is disabled (0).
    """
    if timeout_ms <= 0:
        return None
    return f"-c statement_timeout={int(timeout_ms)}"


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection
    errors. Used for one-off work such as schema setup; the sink uses a pool.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def create_pool(
    dsn: Optional[str] = None,
    min_size: int = 1,
    max_size: int = 4,
    timeout_ms: Optional[int] = None,
    pool_timeout_seconds: Optional[float] = None,
) -> ConnectionPool:
    """
    Open a connection pool sized for the dispatcher's worker count.

    Parameters
    ----------
    dsn : str | None
        Override for the settings-derived DSN.
    min_size, max_size : int
        Pool bounds.
    timeout_ms : int | None
        Statement timeout per session; defaults to settings.
    pool_timeout_seconds : float | None
        How long a caller waits for a connection; defaults to settings.
    """
    settings = get_settings()
    if timeout_ms is None:
        timeout_ms = settings.db_statement_timeout_ms
    if pool_timeout_seconds is None:
        pool_timeout_seconds = settings.db_pool_timeout_seconds
    kwargs = {}
    options = statement_timeout_options(timeout_ms)
    if options:
        kwargs["options"] = options

    log.info("Opening connection pool", extra={"min_size": min_size, "max_size": max_size})
    return ConnectionPool(
        conninfo=dsn or build_dsn(),
        min_size=min_size,
        max_size=max_size,
        kwargs=kwargs,
        timeout=pool_timeout_seconds,
        open=True,
    )


def ensure_schema(conn: Connection) -> None:
    """Create the customer_records table and index if they do not exist."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    conn.commit()


__all__ = [
    "SCHEMA_SQL",
    "build_dsn",
    "create_pool",
    "ensure_schema",
    "get_sync_connection",
    "statement_timeout_options",
]
