"""add / remove / copy / bulk-add, each as one locked read-modify-write.

Duplicate policy for add:
    same keyword, same path      -> ALREADY_PRESENT (expiration may still move)
    same keyword, other path     -> DuplicateKeyword, or REPLACED with force
    new keyword, path known      -> DuplicatePath until confirmed
                                    (allow_duplicate_path, force, GOTO_ASSUME_YES)
    otherwise                    -> ADDED at the end of the insertion order

DuplicatePath is raised before anything is written, so the caller can ask the
user outside the lock and retry with allow_duplicate_path=True.
"""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from gotodir.errors import (
    DuplicateKeyword,
    DuplicatePath,
    GotoError,
    KeywordNotFound,
    PathNotFound,
)
from gotodir.models import AddOutcome, AddStatus, BulkItem, validate_keyword

if TYPE_CHECKING:
    from gotodir.models import Shortcut, StoreSnapshot
    from gotodir.store import ConfigStore

logger = logging.getLogger("gotodir.mutator")


def canonical_dir(path: Path | str) -> Path:
    """Absolute, symlink-free path of an existing directory."""
    raw = Path(path).expanduser()
    if not raw.exists():
        raise PathNotFound(raw)
    if not raw.is_dir():
        raise PathNotFound(raw, "exists but is not a directory")
    try:
        return raw.resolve(strict=True)
    except OSError as exc:
        raise PathNotFound(raw, f"cannot be resolved ({exc})") from exc


def add(
    store: ConfigStore,
    keyword: str,
    path: Path | str,
    *,
    expire: int | None = None,
    force: bool = False,
    allow_duplicate_path: bool = False,
) -> AddOutcome:
    """Save keyword -> path. See module docstring for the duplicate policy."""
    validate_keyword(keyword)
    abs_path = canonical_dir(path)
    approved = force or allow_duplicate_path or store.cfg.assume_yes

    def _apply(snap: StoreSnapshot) -> AddOutcome:
        return _add_to_snapshot(snap, keyword, abs_path, expire=expire, force=force, approved=approved)

    outcome = store.transaction(_apply)
    logger.info("add %s -> %s: %s", keyword, abs_path, outcome.status.value)
    return outcome


def _add_to_snapshot(
    snap: StoreSnapshot,
    keyword: str,
    abs_path: Path,
    *,
    expire: int | None,
    force: bool,
    approved: bool,
) -> AddOutcome:
    others = snap.keywords_for_path(abs_path, exclude=keyword)
    existing = snap.get(keyword)

    if existing is not None:
        if existing.path == abs_path:
            changed = snap.set_expiration(keyword, expire)
            return AddOutcome(
                status=AddStatus.ALREADY_PRESENT,
                keyword=keyword,
                path=abs_path,
                expire=snap.expirations.get(keyword),
                expiry_changed=changed,
                duplicate_keywords=others,
            )
        if not force:
            raise DuplicateKeyword(keyword, existing.path, abs_path)
        previous = existing.path
        snap.put(keyword, abs_path)
        snap.set_expiration(keyword, expire)
        return AddOutcome(
            status=AddStatus.REPLACED,
            keyword=keyword,
            path=abs_path,
            expire=expire,
            previous_path=previous,
            duplicate_keywords=others,
        )

    if others and not approved:
        raise DuplicatePath(abs_path, keyword, others)

    snap.put(keyword, abs_path)
    snap.set_expiration(keyword, expire)
    return AddOutcome(
        status=AddStatus.ADDED,
        keyword=keyword,
        path=abs_path,
        expire=expire,
        duplicate_keywords=others,
    )


def remove(store: ConfigStore, keyword: str) -> Shortcut:
    """Delete a shortcut with its expiration and recents rows."""

    def _apply(snap: StoreSnapshot) -> Shortcut:
        removed = snap.drop(keyword)
        if removed is None:
            raise KeywordNotFound(keyword)
        return removed

    removed = store.transaction(_apply)
    logger.info("removed %s (%s)", keyword, removed.path)
    return removed


def copy(
    store: ConfigStore,
    existing: str,
    new: str,
    *,
    force: bool = False,
    allow_duplicate_path: bool = True,
) -> AddOutcome:
    """Save new under the same path as existing."""
    validate_keyword(new)

    def _apply(snap: StoreSnapshot) -> AddOutcome:
        source = snap.get(existing)
        if source is None:
            raise KeywordNotFound(existing)
        approved = force or allow_duplicate_path or store.cfg.assume_yes
        return _add_to_snapshot(snap, new, source.path, expire=None, force=force, approved=approved)

    outcome = store.transaction(_apply)
    logger.info("copy %s -> %s: %s", existing, new, outcome.status.value)
    return outcome


def bulk_add(
    store: ConfigStore,
    pattern: str,
    *,
    force: bool = False,
    allow_duplicate_path: bool = False,
) -> list[BulkItem]:
    """Add one shortcut per directory matching pattern, keyword = base name.

    Every directory is its own transaction; a failure is recorded on its item
    and does not undo the others.
    """
    items: list[BulkItem] = []
    for match in sorted(glob.glob(str(Path(pattern).expanduser()))):
        candidate = Path(match)
        if not candidate.is_dir():
            continue
        keyword = candidate.resolve().name if candidate.name in ("", ".", "..") else candidate.name
        item = BulkItem(keyword=keyword, path=candidate)
        try:
            item.outcome = add(
                store,
                keyword,
                candidate,
                force=force,
                allow_duplicate_path=allow_duplicate_path,
            )
            item.path = item.outcome.path
        except GotoError as exc:
            logger.warning("bulk add skipped %s: %s", candidate, exc)
            item.error = exc
        items.append(item)
    return items
