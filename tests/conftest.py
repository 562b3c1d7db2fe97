from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gotodir.config import GotoConfig
from gotodir.store import ConfigStore

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def cfg(tmp_path: Path) -> GotoConfig:
    """Config with every record file in a private directory."""
    return GotoConfig.in_dir(tmp_path / ".goto", lock_timeout=2.0)


@pytest.fixture
def store(cfg: GotoConfig) -> ConfigStore:
    return ConfigStore(cfg)


@pytest.fixture
def make_dir(tmp_path: Path) -> Callable[[str], Path]:
    """Create a directory under tmp_path/work and return its canonical path."""

    def _make(name: str) -> Path:
        path = tmp_path / "work" / name
        path.mkdir(parents=True, exist_ok=True)
        return path.resolve()

    return _make


@pytest.fixture
def goto_env(monkeypatch: pytest.MonkeyPatch, cfg: GotoConfig) -> GotoConfig:
    """Point the environment at cfg's files so load_config() / the CLI use them."""
    monkeypatch.setenv("GOTO_HOME", str(cfg.home))
    monkeypatch.setenv("TO_CONFIG_FILE", str(cfg.shortcuts_file))
    monkeypatch.setenv("TO_CONFIG_META_FILE", str(cfg.expirations_file))
    monkeypatch.setenv("TO_RECENT_FILE", str(cfg.recents_file))
    monkeypatch.setenv("TO_USER_CONFIG_FILE", str(cfg.preferences_file))
    monkeypatch.setenv("GOTO_LOCK_TIMEOUT", "2")
    monkeypatch.delenv("GOTO_ASSUME_YES", raising=False)
    return cfg


@pytest.fixture
def write_lines() -> Callable[..., None]:
    """Write raw lines to a record file, creating parents."""

    def _write(path: Path, *lines: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(line + "\n" for line in lines))

    return _write
