"""Viewer configuration with environment overrides."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from pathlib import Path

from slg_viewer.core.session import DEFAULT_HIGHLIGHT_SECONDS

DATA_DIR_ENV = "SLG_VIEWER_DATA_DIR"
HIGHLIGHT_SECONDS_ENV = "SLG_VIEWER_HIGHLIGHT_SECONDS"
ENCODING_ENV = "SLG_VIEWER_ENCODING"
LOG_LEVEL_ENV = "SLG_VIEWER_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class ViewerConfig:
    data_dir: Path = Path("~/.slg-viewer/logs")
    highlight_seconds: float = DEFAULT_HIGHLIGHT_SECONDS
    encoding: str = "utf-8"
    decode_errors: str = "replace"
    log_level: str = "INFO"


def resolve_config(cfg: ViewerConfig | None = None) -> ViewerConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = ViewerConfig()

    changes: dict[str, object] = {}

    data_dir = os.getenv(DATA_DIR_ENV)
    if data_dir:
        changes["data_dir"] = Path(data_dir)

    seconds = os.getenv(HIGHLIGHT_SECONDS_ENV)
    if seconds:
        try:
            value = float(seconds)
        except ValueError as exc:
            raise ValueError(f"{HIGHLIGHT_SECONDS_ENV} must be a number") from exc
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"{HIGHLIGHT_SECONDS_ENV} must be a finite number > 0")
        changes["highlight_seconds"] = value

    encoding = os.getenv(ENCODING_ENV)
    if encoding:
        changes["encoding"] = encoding

    level = os.getenv(LOG_LEVEL_ENV)
    if level:
        changes["log_level"] = level.upper()

    if not changes:
        return cfg
    return replace(cfg, **changes)
