"""Typed failures raised by the store, the aligner and the session."""

from __future__ import annotations


class SlgViewerError(Exception):
    """Base class for log viewer errors."""


class StorageError(SlgViewerError):
    """Persistence failed (I/O error or corrupt document)."""


class StorageUnsupported(StorageError):
    """The storage backend cannot enumerate its collections."""


class NotFound(StorageError, LookupError):
    """No persisted collection exists under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Log file not found in store: {name}")
        self.name = name


class AlignmentUnresolvable(SlgViewerError):
    """The selected record's timestamp does not resolve to an instant."""

    def __init__(self, file: str, index: int, timestamp: str) -> None:
        super().__init__(f"Cannot align on {file}[{index}]: unresolvable timestamp {timestamp!r}")
        self.file = file
        self.index = index
        self.timestamp = timestamp


class NoActiveMatch(SlgViewerError):
    """step_search was called while no search match is highlighted."""


class FileNotOpen(SlgViewerError, LookupError):
    """The file is not part of the session's open set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Log file is not open: {name}")
        self.name = name


class PartialDeleteFailure(SlgViewerError):
    """One or more deletions in a batch failed.

    ``failures`` maps each failed name to its error. Deletions that succeeded
    in the same batch are not rolled back.
    """

    def __init__(self, failures: dict[str, Exception]) -> None:
        names = ", ".join(sorted(failures))
        super().__init__(f"Failed to delete {len(failures)} log file(s): {names}")
        self.failures = failures
