"""
Batch sources: turn a JSON document into a `Batch`.

Any problem with the container itself (unreadable file, invalid JSON, missing
`samples` list, wrongly typed fields) raises `BatchFormatError` before a single
record is processed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

from pydantic import ValidationError

from customer_ingest.domain.models import Batch
from customer_ingest.errors import BatchFormatError


def _summarize(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', 'invalid')}"


def parse_batch(payload: Union[str, bytes]) -> Batch:
    """
    Decode a JSON batch document.

    Raises
    ------
    BatchFormatError
        If the document is not a well-formed batch container.
    """
    try:
        return Batch.model_validate_json(payload)
    except ValidationError as exc:
        raise BatchFormatError(
            f"malformed batch: {_summarize(exc)}",
            details={"errors": exc.error_count()},
        ) from exc


def read_batch_file(path: Union[Path, str]) -> Batch:
    """
    Read and decode a batch file.

    Raises
    ------
    BatchFormatError
        If the file cannot be read or is not a well-formed batch container.
    """
    source = Path(path)
    try:
        payload = source.read_bytes()
    except OSError as exc:
        raise BatchFormatError(
            f"cannot read batch file {source}: {exc.strerror or exc}",
            details={"path": str(source)},
        ) from exc
    return parse_batch(payload)


__all__ = ["parse_batch", "read_batch_file"]
