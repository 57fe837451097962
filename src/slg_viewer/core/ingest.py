"""Upload path: read log text, parse it and save it to a store."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import aiofiles

from .parser import parse_records
from .store import LogStore

logger = logging.getLogger(__name__)


async def ingest_text(store: LogStore, name: str, text: str) -> str:
    """Parse ``text`` and save it under ``name``. Returns the stored name."""
    records = parse_records(text)
    if not records and text.strip():
        logger.info("No record lines recognized in %r", name)
    return await store.save(name, records)


async def ingest_file(
    store: LogStore,
    path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> str:
    """Ingest a file from disk, named after its base name."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Log file not found: {p}")

    async with aiofiles.open(p, encoding=encoding, errors=decode_errors) as f:
        text = await f.read()

    stored = await ingest_text(store, p.name, text)
    logger.info("Ingested %s as %r", p, stored)
    return stored


async def ingest_files(
    store: LogStore,
    paths: Iterable[str | Path],
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> list[str]:
    """Ingest files one after another; names are returned in input order."""
    stored: list[str] = []
    for path in paths:
        stored.append(
            await ingest_file(store, path, encoding=encoding, decode_errors=decode_errors)
        )
    return stored
