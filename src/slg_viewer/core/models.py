"""Core data models for the log viewer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Severity levels recognized in .slg log lines."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class FileState(str, Enum):
    """Load state of a file opened in a session."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class LogRecord:
    """One parsed log line.

    ``timestamp`` is the verbatim token from the source line; instants are
    resolved on demand (see ``instants.resolve_instant``).
    """

    timestamp: str
    severity: Severity
    message: str
    # store-assigned sequence key; bookkeeping only
    key: int | None = field(default=None, compare=False)
