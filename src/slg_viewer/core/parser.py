"""Parser for .slg log text.

A record line looks like::

    2024-01-01 10:00:00,000 INFO service started
    10:00:05,500 ERROR upstream timeout

Lines that do not have this shape are skipped silently.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from .models import LogRecord, Severity

_LINE_RE = re.compile(
    r"(?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3}|\d{2}:\d{2}:\d{2},\d{3})"
    r" (?P<level>INFO|WARN|ERROR)"
    r" (?P<msg>[^\r\n]+)"
)


def iter_records(text: str) -> Iterator[LogRecord]:
    """Yield records in source-line order."""
    for m in _LINE_RE.finditer(text):
        yield LogRecord(
            timestamp=m.group("ts"),
            severity=Severity(m.group("level")),
            message=m.group("msg"),
        )


def parse_records(text: str) -> list[LogRecord]:
    """Parse every matching line of ``text``; an empty list if none match."""
    return list(iter_records(text))
