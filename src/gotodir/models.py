"""Data models for the shortcut store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from gotodir.errors import GotoError, InvalidKeyword

# Field delimiter shared by every record file.
DELIMITER = "="


class SortMode(str, Enum):
    ADDED = "added"
    ALPHA = "alpha"
    RECENT = "recent"


DEFAULT_SORT = SortMode.ALPHA


def validate_keyword(keyword: str) -> str:
    """Return keyword unchanged if it can be stored, else raise InvalidKeyword."""
    if not keyword:
        raise InvalidKeyword(keyword, "must not be empty")
    if keyword != keyword.strip():
        raise InvalidKeyword(keyword, "must not start or end with whitespace")
    if "/" in keyword:
        raise InvalidKeyword(keyword, "must not contain '/'")
    if DELIMITER in keyword:
        raise InvalidKeyword(keyword, f"must not contain '{DELIMITER}'")
    if "\n" in keyword or "\r" in keyword:
        raise InvalidKeyword(keyword, "must not contain line breaks")
    return keyword


@dataclass
class Shortcut:
    """A keyword bound to a canonical directory path."""

    keyword: str
    path: Path
    order: int                         # insertion order, drives `added` sort


@dataclass(frozen=True)
class MalformedRecord:
    """A line skipped while loading a record file."""

    file: Path
    line_no: int
    line: str
    reason: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line_no}: {self.reason}: {self.line!r}"


@dataclass
class StoreSnapshot:
    """In-memory copy of all record files for one operation."""

    shortcuts: dict[str, Shortcut] = field(default_factory=dict)
    expirations: dict[str, int] = field(default_factory=dict)
    recents: dict[str, int] = field(default_factory=dict)
    warnings: list[MalformedRecord] = field(default_factory=list)

    def get(self, keyword: str) -> Shortcut | None:
        return self.shortcuts.get(keyword)

    def in_order(self) -> list[Shortcut]:
        return sorted(self.shortcuts.values(), key=lambda s: s.order)

    def next_order(self) -> int:
        return max((s.order for s in self.shortcuts.values()), default=-1) + 1

    def keywords_for_path(self, path: Path, exclude: str | None = None) -> list[str]:
        return [s.keyword for s in self.in_order() if s.path == path and s.keyword != exclude]

    def is_expired(self, keyword: str, now: int) -> bool:
        expire = self.expirations.get(keyword)
        return expire is not None and expire <= now

    def active(self, now: int) -> list[Shortcut]:
        """Shortcuts whose expiration has not passed."""
        return [s for s in self.in_order() if not self.is_expired(s.keyword, now)]

    def put(self, keyword: str, path: Path) -> Shortcut:
        """Insert a new shortcut at the end, or repoint an existing one in place."""
        existing = self.shortcuts.get(keyword)
        if existing is not None:
            existing.path = path
            return existing
        shortcut = Shortcut(keyword=keyword, path=path, order=self.next_order())
        self.shortcuts[keyword] = shortcut
        return shortcut

    def drop(self, keyword: str) -> Shortcut | None:
        self.expirations.pop(keyword, None)
        self.recents.pop(keyword, None)
        return self.shortcuts.pop(keyword, None)

    def set_expiration(self, keyword: str, expire: int | None) -> bool:
        """Set or clear an expiration. Returns True if the stored value changed."""
        previous = self.expirations.get(keyword)
        if expire is None:
            self.expirations.pop(keyword, None)
        else:
            self.expirations[keyword] = expire
        return previous != expire

    def prune_orphans(self) -> None:
        """Drop expiration and recents rows whose shortcut no longer exists."""
        self.expirations = {k: v for k, v in self.expirations.items() if k in self.shortcuts}
        self.recents = {k: v for k, v in self.recents.items() if k in self.shortcuts}


class AddStatus(str, Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    REPLACED = "replaced"


@dataclass
class AddOutcome:
    status: AddStatus
    keyword: str
    path: Path
    expire: int | None = None
    previous_path: Path | None = None
    expiry_changed: bool = False
    duplicate_keywords: list[str] = field(default_factory=list)


@dataclass
class BulkItem:
    """Result of one derived add in a bulk operation: outcome or error."""

    keyword: str
    path: Path
    outcome: AddOutcome | None = None
    error: GotoError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ResolvedPath:
    keyword: str
    base_path: Path
    target_path: Path
    created: bool = False
