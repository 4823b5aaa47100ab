from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from customer_ingest.domain.timestamps import TimestampFormatError, parse_timestamp


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-01T12:00:00Z", datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)),
        (
            "2024-03-01T12:00:00+02:00",
            datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))),
        ),
        (
            "2024-03-01T12:00:00-05:30",
            datetime(2024, 3, 1, 12, 0, tzinfo=timezone(-timedelta(hours=5, minutes=30))),
        ),
        (
            "2024-03-01T12:00:00.5Z",
            datetime(2024, 3, 1, 12, 0, 0, 500000, tzinfo=timezone.utc),
        ),
        (
            "2024-03-01T12:00:00.123456789Z",
            datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc),
        ),
    ],
)
def test_parses_rfc3339(value: str, expected: datetime) -> None:
    parsed = parse_timestamp(value)

    assert parsed == expected
    assert parsed.tzinfo is not None


def test_offsets_compare_as_instants() -> None:
    assert parse_timestamp("2024-03-01T14:00:00+02:00") == parse_timestamp("2024-03-01T12:00:00Z")


@pytest.mark.parametrize(
    "value",
    [
        "",
        "yesterday",
        "2024-03-01",
        "2024-03-01 12:00:00Z",
        "2024-03-01T12:00:00",
        "2024-03-01T12:00Z",
        "2024-03-01t12:00:00z",
        "2024-13-01T00:00:00Z",
        "2024-02-30T00:00:00Z",
        "2024-03-01T24:00:00Z",
        "2024-03-01T12:00:00+25:00",
        "2024-03-01T12:00:00+02:60",
        " 2024-03-01T12:00:00Z",
        "2024-03-01T12:00:00Z\n",
    ],
)
def test_rejects_anything_else(value: str) -> None:
    with pytest.raises(TimestampFormatError):
        parse_timestamp(value)
