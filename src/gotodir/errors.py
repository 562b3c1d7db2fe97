"""Error taxonomy for shortcut operations.

Every failure the core reports is a GotoError subclass so the CLI can map them
to a single exit path. Malformed lines found while loading are not raised; they
come back as MalformedRecord values on the snapshot.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class GotoError(Exception):
    """Base class for all shortcut store errors."""


class KeywordNotFound(GotoError):
    def __init__(self, keyword: str) -> None:
        super().__init__(f"Shortcut or path '{keyword}' not found.")
        self.keyword = keyword


class DuplicateKeyword(GotoError):
    def __init__(self, keyword: str, existing: Path, requested: Path) -> None:
        super().__init__(
            f"Keyword '{keyword}' already exists for '{existing}'. "
            f"Re-run with --force to replace it with '{requested}'."
        )
        self.keyword = keyword
        self.existing = existing
        self.requested = requested


class DuplicatePath(GotoError):
    """The path is already saved under other keywords; needs confirmation."""

    def __init__(self, path: Path, keyword: str, keywords: list[str]) -> None:
        super().__init__(
            f"Path '{path}' is already saved under keyword(s): {', '.join(keywords)}."
        )
        self.path = path
        self.keyword = keyword
        self.keywords = keywords


class InvalidPattern(GotoError):
    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern '{pattern}': {reason}")
        self.pattern = pattern


class InvalidKeyword(GotoError):
    def __init__(self, keyword: str, reason: str) -> None:
        super().__init__(f"Invalid keyword '{keyword}': {reason}")
        self.keyword = keyword


class LockTimeout(GotoError):
    def __init__(self, lock_path: Path, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for lock {lock_path}")
        self.lock_path = lock_path
        self.timeout = timeout


class IoError(GotoError):
    """Filesystem failure: directory creation, record file read or write."""


class PathNotFound(IoError):
    def __init__(self, path: Path, reason: str = "does not exist") -> None:
        super().__init__(f"Path '{path}' {reason}.")
        self.path = path


class ConfigError(GotoError):
    pass
