"""Map a typed target (``keyword[/sub/path]``) to a directory.

The winning keyword is the one that covers the most leading segments of the
target, matching only on segment boundaries: with shortcuts ``proj`` and
``proj/api`` (hand-edited file), ``proj/api/v1`` resolves through
``proj/api``, and ``proj-old/x`` never matches ``proj``. Ties go to the
lexicographically smallest keyword. Expired shortcuts are invisible here but
stay in the store.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from gotodir.errors import IoError, KeywordNotFound
from gotodir.models import ResolvedPath
from gotodir.ordering import touch

if TYPE_CHECKING:
    from pathlib import Path

    from gotodir.models import Shortcut, StoreSnapshot
    from gotodir.store import ConfigStore

logger = logging.getLogger("gotodir.resolver")


def match_keyword(snap: StoreSnapshot, target: str, now: int) -> tuple[Shortcut, str]:
    """Return (shortcut, remainder) for the longest segment-aligned keyword prefix."""
    candidates: list[tuple[int, str, Shortcut]] = []
    for shortcut in snap.active(now):
        kw = shortcut.keyword
        if target == kw or target.startswith(kw + "/"):
            candidates.append((-len(kw.split("/")), kw, shortcut))

    if not candidates:
        raise KeywordNotFound(target)

    _, kw, shortcut = min(candidates, key=lambda c: (c[0], c[1]))
    remainder = target[len(kw):].lstrip("/")
    return shortcut, remainder


def resolve(
    store: ConfigStore,
    target: str,
    *,
    create_missing: bool = False,
    now: int | None = None,
    snap: StoreSnapshot | None = None,
) -> ResolvedPath:
    """Resolve target to a path. Reads without the lock.

    With create_missing, a missing target directory (and its ancestors) is
    created, and a target that exists as a non-directory raises IoError.
    """
    if not target:
        raise KeywordNotFound(target)
    if now is None:
        now = int(time.time())
    if snap is None:
        snap = store.load()

    shortcut, remainder = match_keyword(snap, target, now)
    target_path = shortcut.path / remainder if remainder else shortcut.path
    resolved = ResolvedPath(keyword=shortcut.keyword, base_path=shortcut.path, target_path=target_path)

    if create_missing:
        if not target_path.exists():
            _make_dirs(target_path)
            resolved.created = True
        elif not target_path.is_dir():
            msg = f"Resolved path '{target_path}' is not a directory."
            raise IoError(msg)
    return resolved


def jump(
    store: ConfigStore,
    target: str,
    *,
    create_missing: bool = True,
    now: int | None = None,
) -> ResolvedPath:
    """Resolve a target that is about to be entered and record it as recently used.

    Only the keyword that was actually selected gets its recents entry updated.
    """
    if now is None:
        now = int(time.time())

    resolved = resolve(store, target, create_missing=create_missing, now=now)
    path = resolved.target_path
    if not path.exists():
        msg = f"Resolved path '{path}' does not exist."
        raise IoError(msg)
    if not path.is_dir():
        msg = f"Resolved path '{path}' is not a directory."
        raise IoError(msg)

    touch(store, resolved.keyword, now=now)
    return resolved


def _make_dirs(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as exc:
        msg = f"Cannot create '{path}': a file is in the way"
        raise IoError(msg) from exc
    except OSError as exc:
        msg = f"Cannot create '{path}': {exc.strerror or exc}"
        raise IoError(msg) from exc
    logger.info("created missing directory %s", path)
