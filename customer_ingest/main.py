from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from customer_ingest.config import get_settings
from customer_ingest.errors import BatchFormatError
from customer_ingest.infrastructure.db_factory import ensure_schema, get_sync_connection
from customer_ingest.infrastructure.sinks import InMemoryRecordSink, PostgresRecordSink
from customer_ingest.pipeline import available_dispatchers, build_pipeline
from customer_ingest.reporter import build_summary, print_results
from customer_ingest.utils.logging import configure_logging, get_logger
from customer_ingest.utils.profiler import profile_batch
from customer_ingest.validation.rejections import ErrorLog

app = typer.Typer(help="Customer Ingest CLI.")
log = get_logger(__name__)

SINK_CHOICES = ("postgres", "memory")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"rate_limit={settings.rate_limit_per_minute}/{settings.rate_window_seconds}s "
        f"workers={settings.dispatch_workers} error_log={settings.error_log_path}"
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create the customer_records table if it does not exist.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    with get_sync_connection() as conn:
        ensure_schema(conn)
    typer.echo("Schema ready.")


@app.command()
def run(
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="Batch file to ingest (default from settings).",
    ),
    dispatch: str = typer.Option(
        "sequential",
        "--dispatch",
        "-d",
        help="Dispatcher to use (sequential, threaded, or 'list' to show all).",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Worker threads for the threaded dispatcher.",
    ),
    sink: str = typer.Option(
        "postgres",
        "--sink",
        "-s",
        help="Where accepted records go: postgres or memory (dry run).",
    ),
    rate_limit: Optional[int] = typer.Option(
        None,
        "--rate-limit",
        "-r",
        min=1,
        help="Accepted records per customer per window (default from settings).",
    ),
    keep_log: bool = typer.Option(
        False,
        "--keep-log",
        help="Append to the existing error log instead of starting fresh.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the summary as JSON instead of tables.",
    ),
) -> None:
    """
    Ingest one batch file and report the outcome.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)

    if dispatch == "list":
        typer.echo("Available dispatchers: " + ", ".join(available_dispatchers()))
        return
    if dispatch not in available_dispatchers():
        typer.echo(
            f"Unknown dispatcher '{dispatch}'. Available: {', '.join(available_dispatchers())}",
            err=True,
        )
        raise typer.Exit(code=2)
    if sink not in SINK_CHOICES:
        typer.echo(f"Unknown sink '{sink}'. Available: {', '.join(SINK_CHOICES)}", err=True)
        raise typer.Exit(code=2)

    batch_file = file or Path(settings.batch_file)
    error_log = ErrorLog(settings.error_log_path)
    if not keep_log:
        error_log.reset_file()

    record_sink = InMemoryRecordSink() if sink == "memory" else PostgresRecordSink(
        pool_max_size=workers or settings.dispatch_workers
    )
    pipeline = build_pipeline(
        sink=record_sink,
        dispatcher_name=dispatch,
        workers=workers,
        rate_limit=rate_limit,
        rejections=error_log,
        settings=settings,
    )

    try:
        with profile_batch(str(batch_file)) as stats:
            result = pipeline.process_file(batch_file)
    except BatchFormatError as exc:
        log.error("Batch aborted", extra={"code": exc.code, "error": exc.message})
        typer.echo(f"Failed to process batch: {exc}", err=True)
        raise typer.Exit(code=1)
    finally:
        record_sink.close()

    if error_log.write_failures():
        typer.echo(
            f"Warning: {error_log.write_failures()} rejection(s) could not be written to "
            f"{error_log.path}",
            err=True,
        )

    reasons = error_log.reason_counts()
    if as_json:
        typer.echo(json.dumps(build_summary(result, stats, reasons), indent=2))
    else:
        print_results(result, stats, reasons)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
