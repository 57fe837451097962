from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from slg_viewer.core.models import LogRecord, Severity
from slg_viewer.core.store import FileLogStore

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def store(tmp_path: Path) -> FileLogStore:
    return FileLogStore(tmp_path / "store")


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def make_records() -> Callable[..., list[LogRecord]]:
    """Build INFO records from full timestamps (message defaults to the token)."""

    def _make(*timestamps: str, severity: Severity = Severity.INFO) -> list[LogRecord]:
        return [LogRecord(timestamp=ts, severity=severity, message=f"at {ts}") for ts in timestamps]

    return _make


@pytest.fixture
def write_slg_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "2024-01-01 10:00:00,000 INFO service started",
                    "2024-01-01 10:00:03,250 WARN retrying request id=abc123",
                    "not a log line",
                    "2024-01-01 10:00:05,500 ERROR upstream timeout route=/api/v1/items",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write
