"""
Strict RFC 3339 timestamp parsing for batch records.

Accepted shape: `YYYY-MM-DDTHH:MM:SS[.fraction](Z|+HH:MM|-HH:MM)`. No
defaulting, no lenient fallbacks: anything else is a parse failure.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

_RFC3339 = re.compile(
    r"^(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})"
    r"T(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})"
    r"(?:\.(?P<fraction>[0-9]+))?"
    r"(?P<offset>Z|[+-][0-9]{2}:[0-9]{2})$"
)


class TimestampFormatError(ValueError):
    """Raised when a string is not a strict RFC 3339 timestamp."""


def _parse_offset(raw: str) -> timezone:
    if raw == "Z":
        return timezone.utc
    sign = -1 if raw[0] == "-" else 1
    hours, minutes = int(raw[1:3]), int(raw[4:6])
    if minutes >= 60:
        raise TimestampFormatError(f"offset minutes out of range: {raw}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_timestamp(value: str) -> datetime:
    """
    Parse `value` into a timezone-aware datetime.

    Fractions beyond microsecond precision are truncated.

    Raises
    ------
    TimestampFormatError
        If the string does not match the format or a field is out of range.
    """
    match = _RFC3339.fullmatch(value)
    if match is None:
        raise TimestampFormatError(f"not an RFC 3339 timestamp: {value!r}")

    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")
    try:
        return datetime(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            int(fraction),
            tzinfo=_parse_offset(match.group("offset")),
        )
    except ValueError as exc:
        if isinstance(exc, TimestampFormatError):
            raise
        raise TimestampFormatError(f"timestamp field out of range: {value!r}") from exc


__all__ = ["TimestampFormatError", "parse_timestamp"]
