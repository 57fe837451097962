from __future__ import annotations

from pathlib import Path

import pytest

from slg_viewer.config import ViewerConfig, resolve_config

_ENV = (
    "SLG_VIEWER_DATA_DIR",
    "SLG_VIEWER_HIGHLIGHT_SECONDS",
    "SLG_VIEWER_ENCODING",
    "SLG_VIEWER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_env() -> None:
    cfg = resolve_config()
    assert cfg == ViewerConfig()
    assert cfg.highlight_seconds == 5.0
    assert cfg.encoding == "utf-8"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SLG_VIEWER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SLG_VIEWER_HIGHLIGHT_SECONDS", "1.5")
    monkeypatch.setenv("SLG_VIEWER_ENCODING", "latin-1")
    monkeypatch.setenv("SLG_VIEWER_LOG_LEVEL", "debug")

    cfg = resolve_config()

    assert cfg.data_dir == tmp_path
    assert cfg.highlight_seconds == 1.5
    assert cfg.encoding == "latin-1"
    assert cfg.log_level == "DEBUG"


def test_invalid_highlight_seconds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLG_VIEWER_HIGHLIGHT_SECONDS", "soon")
    with pytest.raises(ValueError, match="SLG_VIEWER_HIGHLIGHT_SECONDS"):
        resolve_config()

    for bad in ("0", "-1", "nan", "inf"):
        monkeypatch.setenv("SLG_VIEWER_HIGHLIGHT_SECONDS", bad)
        with pytest.raises(ValueError, match="finite number > 0"):
            resolve_config()


def test_explicit_config_is_returned_unchanged() -> None:
    cfg = ViewerConfig(highlight_seconds=2.0)
    assert resolve_config(cfg) is cfg
