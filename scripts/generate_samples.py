"""
Sample batch generator for Customer Ingest.

Writes a deterministic pseudo-random `{"samples": [...]}` file mixing valid
records with the failure modes the pipeline must reject: bad emails, missing
names or ids, unparsable timestamps and bursts from a single customer that
trip the rate limit.
"""

from __future__ import annotations

import json
import random
import sys
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

import typer

app = typer.Typer(help="Generate a synthetic customer batch file.")

FIRST_NAMES = ["Ana", "Bruno", "Chen", "Dara", "Eli", "Fatima", "Goran", "Hana"]
LAST_NAMES = ["Silva", "Okafor", "Novak", "Ito", "Moreau", "Khan", "Berg", "Reyes"]
DOMAINS = ["example.com", "mail.test", "corp.example.org"]
BAD_EMAILS = ["not-an-email", "Upper@Example.com", "a@b", "missing-at.example.com", ""]
BAD_TIMESTAMPS = ["2024-13-01T00:00:00Z", "yesterday", "2024-01-01 10:00:00", ""]


def _format_ts(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def _generate_samples(
    rows: int,
    seed: int,
    invalid_ratio: float,
    burst_size: int,
    start: datetime,
) -> list[dict[str, str]]:
    rng = random.Random(seed)
    samples: list[dict[str, str]] = []

    for i in range(rows):
        first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
        customer_id = f"cust-{rng.randint(1, max(rows // 3, 1)):05d}"
        sample = {
            "customerId": customer_id,
            "email": f"{first.lower()}.{last.lower()}{i}@{rng.choice(DOMAINS)}",
            "name": f"{first} {last}",
            "createdAt": _format_ts(start + timedelta(seconds=i * rng.randint(1, 90))),
        }

        if rng.random() < invalid_ratio:
            flaw = rng.choice(["email", "name", "customer", "timestamp"])
            if flaw == "email":
                sample["email"] = rng.choice(BAD_EMAILS)
            elif flaw == "name":
                sample["name"] = ""
            elif flaw == "customer":
                sample["customerId"] = ""
            else:
                sample["createdAt"] = rng.choice(BAD_TIMESTAMPS)
        samples.append(sample)

    # A burst of records for one customer within a few seconds.
    burst_at = start + timedelta(hours=1)
    for j in range(burst_size):
        samples.append(
            {
                "customerId": "cust-burst",
                "email": f"burst{j}@example.com",
                "name": "Burst Customer",
                "createdAt": _format_ts(burst_at + timedelta(seconds=j)),
            }
        )
    return samples


def _write_batch(path: Path, samples: list[dict[str, str]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump({"samples": samples}, f, indent=2)


@app.command()
def main(
    rows: int = typer.Option(
        100,
        "--rows",
        "-r",
        help="Number of regular records to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    invalid_ratio: float = typer.Option(
        0.1,
        "--invalid-ratio",
        min=0.0,
        max=1.0,
        help="Share of regular records given one validation flaw.",
    ),
    burst_size: int = typer.Option(
        10,
        "--burst-size",
        min=0,
        help="Records for a single customer within a few seconds.",
    ),
    output: Path = typer.Option(
        Path("samples.json"),
        "--output",
        "-o",
        help="Batch file to write.",
    ),
) -> None:
    """
    Generate a synthetic batch file.
    """
    started = time.perf_counter()
    start = datetime.now(UTC).replace(microsecond=0) - timedelta(days=1)
    samples = _generate_samples(rows, seed, invalid_ratio, burst_size, start)
    _write_batch(output, samples)
    typer.echo(
        f"Wrote {len(samples):,} samples -> {output} "
        f"(seed={seed}, invalid_ratio={invalid_ratio}) in {time.perf_counter() - started:.2f}s"
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
