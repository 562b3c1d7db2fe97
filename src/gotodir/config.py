"""GotoConfig: where the shortcut records live and how the store behaves.

Default layout (all under ~/.goto, or $GOTO_HOME when set):

    to_dirs           # keyword=path, one per line, insertion order
    to_dirs_meta      # keyword=expire_epoch
    to_dirs_recent    # keyword=last_used_epoch
    to_zsh_config     # sort_order=added|alpha|recent (other lines kept)
    to_dirs.lock      # flock target for read-modify-write

Each file can be redirected on its own, which is how tests isolate a store:

    TO_CONFIG_FILE, TO_CONFIG_META_FILE, TO_RECENT_FILE, TO_USER_CONFIG_FILE

Behaviour switches:

    GOTO_LOCK_TIMEOUT   seconds to wait for the lock (default 5)
    GOTO_ASSUME_YES     1/true/yes: pre-approve adding an already saved path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from gotodir.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

_DEFAULT_HOME = "~/.goto"
_DEFAULT_LOCK_TIMEOUT = 5.0
_TRUTHY = {"1", "true", "yes", "y", "on"}

# env var -> default file name under the home directory
_FILE_VARS = {
    "shortcuts_file": ("TO_CONFIG_FILE", "to_dirs"),
    "expirations_file": ("TO_CONFIG_META_FILE", "to_dirs_meta"),
    "recents_file": ("TO_RECENT_FILE", "to_dirs_recent"),
    "preferences_file": ("TO_USER_CONFIG_FILE", "to_zsh_config"),
}


@dataclass
class GotoConfig:
    """Resolved locations and settings for one invocation."""

    home: Path
    shortcuts_file: Path = field(default_factory=Path)
    expirations_file: Path = field(default_factory=Path)
    recents_file: Path = field(default_factory=Path)
    preferences_file: Path = field(default_factory=Path)
    lock_timeout: float = _DEFAULT_LOCK_TIMEOUT
    assume_yes: bool = False

    @property
    def lock_file(self) -> Path:
        return self.shortcuts_file.with_name(self.shortcuts_file.name + ".lock")

    @classmethod
    def in_dir(cls, home: Path | str, **overrides: object) -> GotoConfig:
        """Config with every file at its default name under home."""
        home_path = Path(home)
        paths = {attr: home_path / name for attr, (_, name) in _FILE_VARS.items()}
        return cls(home=home_path, **{**paths, **overrides})  # type: ignore[arg-type]


def _env_value(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key, "").strip()
    return value or None


def load_config(env: Mapping[str, str] | None = None) -> GotoConfig:
    """Build a GotoConfig from environment variables (os.environ by default)."""
    if env is None:
        env = os.environ

    home = Path(_env_value(env, "GOTO_HOME") or _DEFAULT_HOME).expanduser()

    paths: dict[str, Path] = {}
    for attr, (var, default_name) in _FILE_VARS.items():
        override = _env_value(env, var)
        paths[attr] = Path(override).expanduser() if override else home / default_name

    raw_timeout = _env_value(env, "GOTO_LOCK_TIMEOUT")
    lock_timeout = _DEFAULT_LOCK_TIMEOUT
    if raw_timeout is not None:
        try:
            lock_timeout = float(raw_timeout)
        except ValueError as exc:
            msg = f"GOTO_LOCK_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
            raise ConfigError(msg) from exc
        if lock_timeout < 0:
            msg = f"GOTO_LOCK_TIMEOUT must not be negative, got {raw_timeout!r}"
            raise ConfigError(msg)

    assume_yes = (_env_value(env, "GOTO_ASSUME_YES") or "").lower() in _TRUTHY

    return GotoConfig(
        home=home,
        lock_timeout=lock_timeout,
        assume_yes=assume_yes,
        **paths,
    )
