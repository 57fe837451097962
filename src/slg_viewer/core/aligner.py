"""Closest-record lookup over a chronologically sorted sequence."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from .instants import record_instant
from .models import LogRecord


def closest_index(
    records: Sequence[LogRecord],
    target: datetime,
    *,
    resolution_instant: datetime,
) -> int | None:
    """Return the index whose instant is closest to ``target``.

    ``records`` must be sorted ascending (``instants.sort_chronologically``);
    this is not checked. Returns None only for an empty sequence.

    Among equally close candidates the first one visited by the search wins.
    Records whose timestamp does not resolve sort last and are treated as
    lying after every instant.
    """
    if not records:
        return None

    low = 0
    high = len(records) - 1
    best: int | None = None
    best_diff: timedelta | None = None

    while low <= high:
        mid = (low + high) // 2
        inst = record_instant(records[mid], resolution_instant=resolution_instant)
        if inst is None:
            high = mid - 1
            continue

        diff = abs(inst - target)
        if best_diff is None or diff < best_diff:
            best_diff = diff
            best = mid

        if inst < target:
            low = mid + 1
        elif inst > target:
            high = mid - 1
        else:
            return mid

    if best is None:
        # nothing resolvable; the sequence is all trailing garbage
        return 0
    return best
