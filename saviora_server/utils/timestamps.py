from __future__ import annotations

import time
from datetime import datetime, timezone

from dateutil import parser as date_parser


UTC = timezone.utc


def utc_now() -> datetime:
    """Return the current time in UTC."""

    return datetime.now(UTC)


def epoch_ms() -> int:
    """Wall-clock time in epoch milliseconds, the unit actor windows are kept in."""

    return int(time.time() * 1000)


def to_storage_timestamp(moment: datetime) -> str:
    """Normalize timestamps before writing to SQLite.

    Millisecond precision keeps lexical order equal to chronological order.
    """

    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(timestamp: str) -> datetime:
    """Parse an ISO timestamp, defaulting to UTC when timezone is absent."""

    dt = date_parser.isoparse(timestamp)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def ms_to_iso(value: int) -> str:
    return to_storage_timestamp(datetime.fromtimestamp(value / 1000, tz=UTC))


__all__ = ["UTC", "epoch_ms", "ms_to_iso", "parse_iso", "to_storage_timestamp", "utc_now"]
