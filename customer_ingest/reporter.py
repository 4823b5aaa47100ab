from __future__ import annotations

from typing import Dict, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from customer_ingest.domain.models import BatchResult
from customer_ingest.utils.profiler import BatchProfile


def build_summary(
    result: BatchResult,
    profile: Optional[BatchProfile] = None,
    reason_counts: Optional[Dict[str, int]] = None,
) -> dict:
    """
    Flatten a batch outcome into a JSON-friendly dict.
    """
    summary = result.as_dict()
    if profile is not None:
        summary["duration_seconds"] = round(profile.duration_seconds, 3)
        summary["records_per_sec"] = round(profile.records_per_second(result.attempted), 2)
        summary["rss_delta_bytes"] = profile.rss_delta_bytes
        summary["cpu_percent"] = (
            round(profile.cpu_percent, 1) if profile.cpu_percent is not None else None
        )
    if reason_counts is not None:
        summary["rejections_by_reason"] = dict(sorted(reason_counts.items()))
    return summary


def print_results(
    result: BatchResult,
    profile: Optional[BatchProfile] = None,
    reason_counts: Optional[Dict[str, int]] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Render a batch outcome as rich tables.

    The first table holds the counts (and timing when a profile is given);
    the second breaks rejections down by reason, largest first.
    """
    console = console or Console()

    title = "Customer Ingest Results"
    if profile is not None:
        title = f"{title}\n[dim]{profile.label}[/dim]"

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Attempted", justify="right", style="cyan")
    table.add_column("Succeeded", justify="right", style="bold green")
    table.add_column("Failed", justify="right", style="red")
    if profile is not None:
        table.add_column("Duration (s)", justify="right", style="green")
        table.add_column("Records/s", justify="right", style="magenta")

    row = [f"{result.attempted:,}", f"{result.success:,}", f"{result.failure:,}"]
    if profile is not None:
        row.append(f"{profile.duration_seconds:.3f}")
        row.append(f"{profile.records_per_second(result.attempted):,.2f}")
    table.add_row(*row)
    console.print(table)

    if not reason_counts:
        return

    reasons = Table(title="Rejections by Reason", box=box.ROUNDED)
    reasons.add_column("Reason", style="yellow")
    reasons.add_column("Count", justify="right", style="red")
    for reason, count in sorted(reason_counts.items(), key=lambda item: (-item[1], item[0])):
        reasons.add_row(reason, f"{count:,}")
    console.print(reasons)


__all__ = ["build_summary", "print_results"]
