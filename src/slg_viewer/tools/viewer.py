"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into session/store
calls, and return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from slg_viewer.core.errors import PartialDeleteFailure, SlgViewerError, StorageUnsupported
from slg_viewer.core.ingest import ingest_files
from slg_viewer.core.models import LogRecord, Severity
from slg_viewer.core.session import FileView, LogSession
from slg_viewer.core.store import LogStore

DEFAULT_LIMIT = 200
HARD_LIMIT = 5000
ALL_SEVERITIES = [s.value for s in Severity]


@contextmanager
def _user_errors() -> Iterator[None]:
    """Report session errors to the client as ValueError."""
    try:
        yield
    except (SlgViewerError, IndexError) as e:
        raise ValueError(str(e)) from e


def _parse_severity(severity: str | None) -> Severity | None:
    """Parse a user-supplied severity name (case-insensitive)."""
    if severity is None or not severity.strip():
        return None
    name = severity.strip().upper()
    try:
        return Severity(name)
    except ValueError as e:
        valid = ", ".join(ALL_SEVERITIES)
        raise ValueError(f"Unknown severity '{severity}'. Valid values: {valid}.") from e


def _parse_direction(direction: str) -> int:
    d = direction.strip().lower()
    if d in ("next", "+1", "1"):
        return 1
    if d in ("prev", "previous", "-1"):
        return -1
    raise ValueError("direction must be 'next' or 'prev'")


def _record_to_dict(record: LogRecord, index: int) -> dict[str, Any]:
    """Convert a record into a JSON-serializable dict."""
    return {
        "index": index,
        "timestamp": record.timestamp,
        "severity": record.severity.value,
        "message": record.message,
    }


def _view_summary(view: FileView) -> dict[str, Any]:
    d: dict[str, Any] = {
        "state": view.state.value,
        "count": len(view),
        "reversed": view.reversed,
        "highlight": view.highlight,
    }
    if view.filtered:
        d["filter"] = {
            "severity": view.severity.value if view.severity is not None else None,
            "contains": view.contains,
        }
    if view.error is not None:
        d["error"] = str(view.error)
    return d


async def upload_logs_impl(
    *,
    store: LogStore,
    paths: Sequence[str],
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> dict[str, Any]:
    """Parse local log files and save them; returns the stored names."""
    if not paths:
        raise ValueError("Provide at least one file path.")
    names = await ingest_files(store, paths, encoding=encoding, decode_errors=decode_errors)
    return {"count": len(names), "names": names}


async def list_logs_impl(*, session: LogSession) -> dict[str, Any]:
    """List stored log files; reports unavailability instead of failing."""
    try:
        names = await session.available_files()
    except StorageUnsupported as e:
        return {"available": False, "names": [], "error": str(e)}
    return {"available": True, "names": names}


async def open_logs_impl(*, session: LogSession, names: Sequence[str]) -> dict[str, Any]:
    """Open ``names`` side by side (replacing the current selection)."""
    await session.open_files(names)
    return {
        "ready": session.ready,
        "files": {name: _view_summary(session.view(name)) for name in session.open_names},
    }


def get_rows_impl(
    *,
    session: LogSession,
    name: str,
    offset: int = 0,
    limit: int | None = None,
) -> dict[str, Any]:
    """Return a page of rows of an open file in display order."""
    if offset < 0:
        raise ValueError("offset must be >= 0")
    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    if limit > HARD_LIMIT:
        limit = HARD_LIMIT

    with _user_errors():
        view = session.view(name)
        end = min(len(view), offset + limit)
        rows = [_record_to_dict(view.record_at(i), i) for i in range(offset, end)]

    return {
        "name": name,
        "total": len(view),
        "highlight": view.highlight,
        "rows": rows,
    }


def select_record_impl(*, session: LogSession, name: str, index: int) -> dict[str, Any]:
    """Align every other open file to the clicked row."""
    with _user_errors():
        highlights = session.select_record(name, index)
        record = session.record_at(name, index)
    return {"source": _record_to_dict(record, index), "highlights": highlights}


def search_logs_impl(*, session: LogSession, name: str, query: str) -> dict[str, Any]:
    """Case-insensitive message search within one open file."""
    with _user_errors():
        matches = session.search(name, query)
        highlight = session.highlighted(name)
    return {"count": len(matches), "matches": matches, "highlight": highlight}


def step_search_impl(*, session: LogSession, name: str, direction: str = "next") -> dict[str, Any]:
    """Move to the next or previous search match."""
    step = _parse_direction(direction)
    with _user_errors():
        index = session.step_search(name, step)
        record = session.record_at(name, index)
    return {"highlight": index, "row": _record_to_dict(record, index)}


async def filter_logs_impl(
    *,
    session: LogSession,
    names: Sequence[str],
    severity: str | None = None,
    contains: str | None = None,
) -> dict[str, Any]:
    """Filter open files by severity and/or message substring."""
    sev = _parse_severity(severity)
    with _user_errors():
        await session.filter(names, severity=sev, contains=contains)
        return {"files": {name: _view_summary(session.view(name)) for name in names}}


def reverse_logs_impl(*, session: LogSession, names: Sequence[str]) -> dict[str, Any]:
    """Flip display order of open files."""
    with _user_errors():
        session.reverse(names)
        return {"files": {name: _view_summary(session.view(name)) for name in names}}


async def delete_logs_impl(*, session: LogSession, names: Sequence[str]) -> dict[str, Any]:
    """Delete stored files; every failure is reported individually."""
    unique = list(dict.fromkeys(names))
    try:
        await session.delete_files(unique)
    except PartialDeleteFailure as e:
        failed = {name: str(err) for name, err in e.failures.items()}
    else:
        failed = {}
    return {
        "deleted": [name for name in unique if name not in failed],
        "failed": failed,
    }
