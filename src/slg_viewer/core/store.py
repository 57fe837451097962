"""Durable per-file record storage.

Each named log file is one JSON-lines document under the store's root
directory. Documents are written to a temp file and renamed into place, so a
collection is either fully saved or absent.

The store assumes a single writer: concurrent ``save``/``delete`` calls for
the same name are not serialized here.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, unquote

import aiofiles
import aiofiles.os
from pydantic import BaseModel, Field, ValidationError

from .errors import NotFound, StorageError, StorageUnsupported
from .models import LogRecord, Severity

logger = logging.getLogger(__name__)

NAME_PREFIX = "log_"
DOCUMENT_SUFFIX = ".jsonl"


class LogStore(Protocol):
    """Storage interface consumed by the session and the ingest path."""

    async def save(self, name: str, records: Iterable[LogRecord]) -> str:
        """Persist ``records`` under a unique name derived from ``name``."""
        ...

    async def list_names(self) -> set[str]:
        """Return every known log file name."""
        ...

    async def load_all(self, name: str) -> list[LogRecord]:
        """Return all records saved under ``name``, in storage order."""
        ...

    async def delete(self, name: str) -> None:
        """Remove ``name`` and its records; absent names are ignored."""
        ...


class RecordDocument(BaseModel):
    """On-disk shape of one stored record."""

    key: int = Field(ge=1, description="Store-assigned sequence key.")
    timestamp: str = Field(description="Verbatim timestamp token.")
    severity: Severity
    message: str

    @classmethod
    def from_record(cls, key: int, record: LogRecord) -> RecordDocument:
        return cls(
            key=key,
            timestamp=record.timestamp,
            severity=record.severity,
            message=record.message,
        )

    def to_record(self) -> LogRecord:
        return LogRecord(
            timestamp=self.timestamp,
            severity=self.severity,
            message=self.message,
            key=self.key,
        )


def unique_name(name: str, existing: set[str]) -> str:
    """Return ``name``, or ``name_1``, ``name_2``, ... whichever is unused.

    Names are compared case-insensitively, since the backing file names may
    live on a case-insensitive filesystem.
    """
    taken = {n.casefold() for n in existing}
    if name.casefold() not in taken:
        return name
    n = 1
    while f"{name}_{n}".casefold() in taken:
        n += 1
    return f"{name}_{n}"


class FileLogStore:
    """LogStore backed by a local directory (async I/O via aiofiles)."""

    def __init__(self, root: str | Path, *, encoding: str = "utf-8") -> None:
        self.root = Path(root).expanduser()
        self.encoding = encoding

    def _path_for(self, name: str) -> Path:
        return self.root / f"{NAME_PREFIX}{quote(name, safe='')}{DOCUMENT_SUFFIX}"

    def _name_for(self, filename: str) -> str | None:
        if not (filename.startswith(NAME_PREFIX) and filename.endswith(DOCUMENT_SUFFIX)):
            return None
        return unquote(filename[len(NAME_PREFIX) : -len(DOCUMENT_SUFFIX)])

    async def list_names(self) -> set[str]:
        """Return all stored names.

        A missing root means nothing has been saved yet. Any other listing
        failure raises StorageUnsupported.
        """
        try:
            entries = await aiofiles.os.listdir(self.root)
        except FileNotFoundError:
            return set()
        except OSError as exc:
            raise StorageUnsupported(f"Cannot list log files under {self.root}") from exc

        names: set[str] = set()
        for filename in entries:
            name = self._name_for(filename)
            if name is not None:
                names.add(name)
        return names

    async def save(self, name: str, records: Iterable[LogRecord]) -> str:
        """Save ``records`` as a new collection and return the name used."""
        if not name:
            raise ValueError("name must be a non-empty string")

        stored = unique_name(name, await self.list_names())
        path = self._path_for(stored)
        tmp = path.with_name(f".{path.name}.tmp")

        lines = [
            RecordDocument.from_record(key, r).model_dump_json() + "\n"
            for key, r in enumerate(records, start=1)
        ]

        try:
            await aiofiles.os.makedirs(self.root, exist_ok=True)
            async with aiofiles.open(tmp, mode="w", encoding=self.encoding) as f:
                await f.write("".join(lines))
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(tmp, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(tmp)
            raise StorageError(f"Failed to save log file {stored!r}") from exc

        logger.debug("Saved %d records as %r", len(lines), stored)
        return stored

    async def load_all(self, name: str) -> list[LogRecord]:
        """Load every record of ``name`` in storage order."""
        path = self._path_for(name)
        try:
            async with aiofiles.open(path, encoding=self.encoding) as f:
                content = await f.read()
        except FileNotFoundError as exc:
            raise NotFound(name) from exc
        except OSError as exc:
            raise StorageError(f"Failed to read log file {name!r}") from exc

        records: list[LogRecord] = []
        for line_no, line in enumerate(content.split("\n"), start=1):
            if not line.strip():
                continue
            try:
                doc = RecordDocument.model_validate_json(line)
            except ValidationError as exc:
                raise StorageError(f"Corrupt record in {name!r} at line {line_no}") from exc
            records.append(doc.to_record())

        logger.debug("Loaded %d records from %r", len(records), name)
        return records

    async def delete(self, name: str) -> None:
        """Delete ``name``. Deleting an absent name is a no-op."""
        path = self._path_for(name)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug("Delete of %r skipped: not stored", name)
            return
        except OSError as exc:
            raise StorageError(f"Failed to delete log file {name!r}") from exc
        logger.debug("Deleted %r", name)
