"""Multi-file viewing session.

Holds the chronologically sorted records of every open file and answers the
questions a side-by-side viewer asks: what does each pane show, which rows
match a search, and which row of every other pane lines up in time with the
row the user clicked.

Display order may be reversed per file. Reversal is a view flag only: each
view keeps its records in chronological order and maps display indices onto
them, so alignment always works on timestamp values.
"""

from __future__ import annotations

import asyncio
import logging
import math
from bisect import bisect_left
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from .aligner import closest_index
from .errors import (
    AlignmentUnresolvable,
    FileNotOpen,
    NoActiveMatch,
    PartialDeleteFailure,
)
from .instants import record_instant, sort_chronologically
from .models import FileState, LogRecord, Severity
from .store import LogStore

logger = logging.getLogger(__name__)

DEFAULT_HIGHLIGHT_SECONDS = 5.0

HighlightCallback = Callable[[str, int | None], None]


@dataclass(slots=True)
class FileView:
    """View state of one open file."""

    name: str
    state: FileState = FileState.UNLOADED
    records: list[LogRecord] = field(default_factory=list)  # chronological
    reversed: bool = False
    severity: Severity | None = None
    contains: str | None = None
    query: str = ""
    matches: list[int] = field(default_factory=list)  # display indices, ascending
    highlight: int | None = None  # display index
    error: Exception | None = None
    generation: int = 0

    @property
    def filtered(self) -> bool:
        return self.severity is not None or self.contains is not None

    def __len__(self) -> int:
        return len(self.records)

    def position(self, index: int) -> int:
        """Map a display index to a position in ``records``."""
        n = len(self.records)
        if not 0 <= index < n:
            raise IndexError(f"{self.name}: index {index} out of range (0..{n - 1})")
        return n - 1 - index if self.reversed else index

    def display_index(self, position: int) -> int:
        """Map a position in ``records`` to a display index."""
        return len(self.records) - 1 - position if self.reversed else position

    def record_at(self, index: int) -> LogRecord:
        return self.records[self.position(index)]

    def displayed(self) -> list[LogRecord]:
        """Records in display order."""
        return list(reversed(self.records)) if self.reversed else list(self.records)


def _find_matches(view: FileView, query: str) -> list[int]:
    """Display indices whose message contains ``query`` (case-insensitive)."""
    if not query:
        return []
    needle = query.casefold()
    return [i for i, r in enumerate(view.displayed()) if needle in r.message.casefold()]


def _keep(record: LogRecord, severity: Severity | None, contains: str | None) -> bool:
    if severity is not None and record.severity != severity:
        return False
    if contains is not None and contains not in record.message:
        return False
    return True


class LogSession:
    """Coordinates a LogStore and the aligner across open files.

    Must be used from within a running asyncio event loop: highlight expiry is
    scheduled with ``loop.call_later``.
    """

    def __init__(
        self,
        store: LogStore,
        *,
        highlight_seconds: float = DEFAULT_HIGHLIGHT_SECONDS,
        now: Callable[[], datetime] = datetime.now,
        on_highlight: HighlightCallback | None = None,
    ) -> None:
        if not math.isfinite(highlight_seconds) or highlight_seconds <= 0:
            raise ValueError("highlight_seconds must be a finite number > 0")
        self._store = store
        self._highlight_seconds = highlight_seconds
        self._now = now
        self._on_highlight = on_highlight
        self._views: dict[str, FileView] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

    # -- rendering boundary -------------------------------------------------

    @property
    def open_names(self) -> list[str]:
        return list(self._views)

    @property
    def ready(self) -> bool:
        """True once every open file is READY or FAILED."""
        return all(v.state in (FileState.READY, FileState.FAILED) for v in self._views.values())

    def view(self, name: str) -> FileView:
        try:
            return self._views[name]
        except KeyError:
            raise FileNotOpen(name) from None

    def length(self, name: str) -> int:
        return len(self.view(name))

    def record_at(self, name: str, index: int) -> LogRecord:
        return self.view(name).record_at(index)

    def highlighted(self, name: str) -> int | None:
        return self.view(name).highlight

    async def available_files(self) -> list[str]:
        """Names known to the store, sorted."""
        return sorted(await self._store.list_names())

    # -- loading ------------------------------------------------------------

    async def open_files(self, names: Iterable[str]) -> dict[str, FileState]:
        """Make ``names`` the open set and load each file from the store.

        Files loaded concurrently; one file failing marks only that file
        FAILED. Files previously open but not named here are closed.
        """
        wanted = list(dict.fromkeys(names))
        for name in list(self._views):
            if name not in wanted:
                self._close_view(name)

        views = []
        for name in wanted:
            view = self._views.get(name)
            if view is None:
                view = self._views[name] = FileView(name=name)
            views.append(view)

        await asyncio.gather(*(self._load(v, severity=None, contains=None) for v in views))
        return {v.name: v.state for v in views}

    async def filter(
        self,
        names: Iterable[str],
        severity: Severity | str | None = None,
        contains: str | None = None,
    ) -> dict[str, FileState]:
        """Reload ``names`` from the store keeping only matching records.

        Both predicates are ANDed; passing neither clears the filter. The
        filter always applies to the stored records, never to a previous
        filter result.
        """
        sev = Severity(severity) if severity is not None else None
        contains = contains or None
        views = [self.view(name) for name in dict.fromkeys(names)]
        await asyncio.gather(*(self._load(v, severity=sev, contains=contains) for v in views))
        return {v.name: v.state for v in views}

    async def _load(
        self,
        view: FileView,
        *,
        severity: Severity | None,
        contains: str | None,
    ) -> None:
        view.generation += 1
        generation = view.generation
        view.state = FileState.LOADING
        view.error = None

        try:
            loaded = await self._store.load_all(view.name)
        except Exception as exc:
            if self._is_stale(view, generation):
                return
            logger.warning("Failed to load %r: %s", view.name, exc)
            self._set_highlight(view, None)
            view.records = []
            view.matches = []
            view.reversed = False
            view.error = exc
            view.state = FileState.FAILED
            return

        if self._is_stale(view, generation):
            logger.debug("Discarding superseded load of %r", view.name)
            return

        records = sort_chronologically(loaded, resolution_instant=self._now())
        if severity is not None or contains is not None:
            records = [r for r in records if _keep(r, severity, contains)]

        self._set_highlight(view, None)
        view.records = records
        view.reversed = False
        view.severity = severity
        view.contains = contains
        view.matches = _find_matches(view, view.query)
        view.state = FileState.READY
        logger.debug("Loaded %r: %d of %d records shown", view.name, len(records), len(loaded))

    def _is_stale(self, view: FileView, generation: int) -> bool:
        return self._views.get(view.name) is not view or view.generation != generation

    # -- alignment ----------------------------------------------------------

    def select_record(self, name: str, index: int) -> dict[str, int | None]:
        """Highlight the closest record in every other open file.

        Returns the new highlight per other file (None when that file has no
        records or is not loaded). Highlights clear themselves after the
        dwell time unless a newer selection replaces them first.
        """
        view = self.view(name)
        record = view.record_at(index)
        resolution = self._now()
        target = record_instant(record, resolution_instant=resolution)
        if target is None:
            raise AlignmentUnresolvable(name, index, record.timestamp)

        result: dict[str, int | None] = {}
        for other in self._views.values():
            if other is view:
                continue
            idx: int | None = None
            if other.state is FileState.READY:
                pos = closest_index(other.records, target, resolution_instant=resolution)
                if pos is not None:
                    idx = other.display_index(pos)
            self._set_highlight(other, idx, expires=True)
            result[other.name] = idx

        self._set_highlight(view, None)
        logger.debug("Aligned %s[%d] (%s): %s", name, index, record.timestamp, result)
        return result

    # -- search -------------------------------------------------------------

    def search(self, name: str, query: str) -> list[int]:
        """Find display indices whose message contains ``query``.

        The first match becomes the highlight. An empty query clears the
        matches and the highlight.
        """
        view = self.view(name)
        view.query = query
        view.matches = _find_matches(view, query)
        self._set_highlight(view, view.matches[0] if view.matches else None)
        return list(view.matches)

    def step_search(self, name: str, direction: int) -> int:
        """Move the highlight to the next (+1) or previous (-1) match, wrapping."""
        if direction not in (1, -1):
            raise ValueError("direction must be 1 or -1")
        view = self.view(name)
        matches = view.matches
        current = view.highlight
        if current is None or not matches:
            raise NoActiveMatch(f"{name}: no search match is highlighted")
        pos = bisect_left(matches, current)
        if pos == len(matches) or matches[pos] != current:
            raise NoActiveMatch(f"{name}: highlighted row {current} is not a search match")

        new = matches[(pos + direction) % len(matches)]
        self._set_highlight(view, new)
        return new

    # -- ordering -----------------------------------------------------------

    def reverse(self, names: Iterable[str]) -> None:
        """Flip the display order of ``names``; the store is untouched."""
        views = [self.view(name) for name in dict.fromkeys(names)]
        for view in views:
            view.reversed = not view.reversed
            view.matches = _find_matches(view, view.query)
            if view.highlight is not None:
                # same record, mirrored index; a pending expiry stays scheduled
                view.highlight = len(view.records) - 1 - view.highlight
                self._notify(view.name, view.highlight)

    # -- deletion -----------------------------------------------------------

    async def delete_files(self, names: Iterable[str]) -> None:
        """Delete ``names`` from the store and drop them from the session.

        Every name is attempted. Raises PartialDeleteFailure listing each
        failure; successful deletions stay deleted.
        """
        failures: dict[str, Exception] = {}
        for name in dict.fromkeys(names):
            try:
                await self._store.delete(name)
            except Exception as exc:
                logger.warning("Failed to delete %r: %s", name, exc)
                failures[name] = exc
                continue
            self._close_view(name)

        if failures:
            raise PartialDeleteFailure(failures)

    def close(self) -> None:
        """Cancel every pending highlight expiry."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    # -- highlight bookkeeping ---------------------------------------------

    def _close_view(self, name: str) -> None:
        self._cancel_timer(name)
        self._views.pop(name, None)

    def _cancel_timer(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _set_highlight(self, view: FileView, index: int | None, *, expires: bool = False) -> None:
        self._cancel_timer(view.name)
        changed = view.highlight != index
        view.highlight = index
        if expires and index is not None:
            loop = asyncio.get_running_loop()
            self._timers[view.name] = loop.call_later(
                self._highlight_seconds, self._expire_highlight, view.name
            )
        if changed:
            self._notify(view.name, index)

    def _expire_highlight(self, name: str) -> None:
        self._timers.pop(name, None)
        view = self._views.get(name)
        if view is None or view.highlight is None:
            return
        view.highlight = None
        self._notify(name, None)

    def _notify(self, name: str, index: int | None) -> None:
        if self._on_highlight is not None:
            self._on_highlight(name, index)
