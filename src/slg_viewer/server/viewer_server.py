"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: upload, list, open, page through, align, search, filter, reverse and
  delete log files
- Resources: addressable data blobs (e.g., a stored log via URI)

Run locally (stdio):
    python -m slg_viewer.server.viewer_server
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from functools import cache
from typing import Any

from mcp.server.fastmcp import FastMCP

from slg_viewer.config import ViewerConfig, resolve_config
from slg_viewer.core.session import LogSession
from slg_viewer.core.store import FileLogStore
from slg_viewer.resources.registry import register_resources
from slg_viewer.tools.viewer import (
    delete_logs_impl,
    filter_logs_impl,
    get_rows_impl,
    list_logs_impl,
    open_logs_impl,
    reverse_logs_impl,
    search_logs_impl,
    select_record_impl,
    step_search_impl,
    upload_logs_impl,
)

LOGGER = logging.getLogger(__name__)


def _configure_logging(cfg: ViewerConfig) -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level = getattr(logging, cfg.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cache
def _config() -> ViewerConfig:
    return resolve_config()


@cache
def _store() -> FileLogStore:
    cfg = _config()
    return FileLogStore(cfg.data_dir)


@cache
def _session() -> LogSession:
    return LogSession(_store(), highlight_seconds=_config().highlight_seconds)


mcp = FastMCP("slg-viewer", json_response=True)

register_resources(mcp, _store)


@mcp.tool()
async def upload_logs(paths: Sequence[str]) -> dict[str, Any]:
    """Parse local .slg files and store their records.

    Each file is stored under its base name; a name already in use gets a
    `_1`, `_2`, ... suffix. Lines that are not log records are skipped.
    """
    cfg = _config()
    return await upload_logs_impl(
        store=_store(),
        paths=paths,
        encoding=cfg.encoding,
        decode_errors=cfg.decode_errors,
    )


@mcp.tool()
async def list_logs() -> dict[str, Any]:
    """List stored log files."""
    return await list_logs_impl(session=_session())


@mcp.tool()
async def open_logs(names: Sequence[str]) -> dict[str, Any]:
    """Open stored log files side by side, each sorted chronologically."""
    return await open_logs_impl(session=_session(), names=names)


@mcp.tool()
def get_rows(name: str, offset: int = 0, limit: int | None = None) -> dict[str, Any]:
    """Return rows of an open file in display order, plus its current highlight."""
    return get_rows_impl(session=_session(), name=name, offset=offset, limit=limit)


@mcp.tool()
async def select_record(name: str, index: int) -> dict[str, Any]:
    """Highlight the row closest in time to `name[index]` in every other open file.

    Highlights clear after a few seconds unless another row is selected first.
    """
    return select_record_impl(session=_session(), name=name, index=index)


@mcp.tool()
def search_logs(name: str, query: str) -> dict[str, Any]:
    """Case-insensitive search over messages of an open file. Empty query clears it."""
    return search_logs_impl(session=_session(), name=name, query=query)


@mcp.tool()
def step_search(name: str, direction: str = "next") -> dict[str, Any]:
    """Jump to the next or previous search match ("next" / "prev"), wrapping around."""
    return step_search_impl(session=_session(), name=name, direction=direction)


@mcp.tool()
async def filter_logs(
    names: Sequence[str],
    severity: str | None = None,
    contains: str | None = None,
) -> dict[str, Any]:
    """Show only records of the given severity and/or containing a substring.

    Call without severity and contains to clear the filter.
    """
    return await filter_logs_impl(
        session=_session(), names=names, severity=severity, contains=contains
    )


@mcp.tool()
def reverse_logs(names: Sequence[str]) -> dict[str, Any]:
    """Reverse the display order of open files (not persisted)."""
    return reverse_logs_impl(session=_session(), names=names)


@mcp.tool()
async def delete_logs(names: Sequence[str]) -> dict[str, Any]:
    """Delete stored log files. Failures are reported per file."""
    return await delete_logs_impl(session=_session(), names=names)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    cfg = _config()
    _configure_logging(cfg)
    LOGGER.debug("Starting MCP server (transport=stdio, data_dir=%s)", cfg.data_dir)
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
