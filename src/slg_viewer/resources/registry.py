"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.server.fastmcp import FastMCP

from slg_viewer.core.models import LogRecord
from slg_viewer.core.store import LogStore, RecordDocument

SAMPLE_LOG = (
    "2024-01-01 10:00:00,000 INFO service started\n"
    "2024-01-01 10:00:03,250 WARN retrying request id=abc123\n"
    "2024-01-01 10:00:05,500 ERROR upstream timeout route=/api/v1/items\n"
    "10:00:07,000 INFO time-only entry, dated on view\n"
)


def render_records(records: list[LogRecord]) -> str:
    """Render records back to .slg text, one line each."""
    return "".join(f"{r.timestamp} {r.severity.value} {r.message}\n" for r in records)


def register_resources(mcp: FastMCP, get_store: Callable[[], LogStore]) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://slg-viewer/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://slg-viewer/help\n"
            "- app://slg-viewer/examples/sample-log\n"
            "- app://slg-viewer/schemas/record\n"
            "- slg://{name} (a stored log file, in storage order)\n"
            "\nLine format: '<YYYY-MM-DD HH:MM:SS,mmm|HH:MM:SS,mmm> <INFO|WARN|ERROR> <message>'\n"
        )

    @mcp.resource("app://slg-viewer/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny sample log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("app://slg-viewer/schemas/record")
    def record_schema() -> dict[str, Any]:
        """Return the JSON schema of a stored record."""
        return RecordDocument.model_json_schema()

    @mcp.resource("slg://{name}")
    async def stored_log(name: str) -> str:
        """Return a stored log file rendered as text."""
        records = await get_store().load_all(name)
        return render_records(records)
