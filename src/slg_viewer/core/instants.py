"""Timestamp-token resolution and chronological ordering.

Time-only tokens carry no date. They are combined with the date of an explicit
``resolution_instant`` supplied by the caller at comparison time, so two
time-only records compared at different real-world moments (for instance
before and after midnight) can sort differently. Callers pass the same instant
for every comparison within one sort or one alignment.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime

from .models import LogRecord

FULL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S,%f"
TIME_ONLY_FORMAT = "%H:%M:%S,%f"

_FULL_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3}$")
_TIME_ONLY_RE = re.compile(r"^\d{2}:\d{2}:\d{2},\d{3}$")


def resolve_instant(timestamp: str, *, resolution_instant: datetime) -> datetime | None:
    """Resolve a timestamp token to a naive datetime, or None if it does not parse."""
    try:
        if _FULL_RE.match(timestamp):
            return datetime.strptime(timestamp, FULL_TIMESTAMP_FORMAT)
        if _TIME_ONLY_RE.match(timestamp):
            t = datetime.strptime(timestamp, TIME_ONLY_FORMAT).time()
            return datetime.combine(resolution_instant.date(), t)
    except ValueError:
        # shape matched but values are out of range (e.g. 25:00:00,000)
        return None
    return None


def record_instant(record: LogRecord, *, resolution_instant: datetime) -> datetime | None:
    return resolve_instant(record.timestamp, resolution_instant=resolution_instant)


def sort_chronologically(
    records: Iterable[LogRecord],
    *,
    resolution_instant: datetime,
) -> list[LogRecord]:
    """Stable ascending sort by instant; unresolvable records go last."""

    def key(r: LogRecord) -> tuple[bool, datetime]:
        inst = record_instant(r, resolution_instant=resolution_instant)
        if inst is None:
            return (True, datetime.min)
        return (False, inst)

    return sorted(records, key=key)
