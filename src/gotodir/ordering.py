"""Display ordering (added / alpha / recent) and recents tracking."""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING

from gotodir.errors import KeywordNotFound
from gotodir.models import SortMode

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from gotodir.models import Shortcut, StoreSnapshot
    from gotodir.store import ConfigStore

_DIGITS_RE = re.compile(r"(\d+)")


def natural_key(text: str) -> tuple[list[str | int], str]:
    """Sort key comparing embedded digit runs numerically: item2 < item10.

    re.split with a capture group alternates text/digits starting with text,
    so items at the same index always have the same type. Ties (a01 vs a1)
    fall back to the raw string.
    """
    parts = _DIGITS_RE.split(text)
    return [int(p) if i % 2 else p for i, p in enumerate(parts)], text


def order(
    shortcuts: Iterable[Shortcut],
    mode: SortMode,
    recents: Mapping[str, int] | None = None,
) -> list[Shortcut]:
    """Return shortcuts in display order for mode."""
    by_added = sorted(shortcuts, key=lambda s: s.order)

    if mode is SortMode.ALPHA:
        return sorted(by_added, key=lambda s: natural_key(s.keyword))

    if mode is SortMode.RECENT:
        recents = recents or {}
        used = [s for s in by_added if s.keyword in recents]
        unused = [s for s in by_added if s.keyword not in recents]
        # Stable sort: equal timestamps keep insertion order
        used.sort(key=lambda s: recents[s.keyword], reverse=True)
        return used + unused

    return by_added


def touch(store: ConfigStore, keyword: str, now: int | None = None) -> int:
    """Record keyword as used now. Returns the stored timestamp."""
    stamp = int(time.time()) if now is None else now

    def _apply(snap: StoreSnapshot) -> int:
        if keyword not in snap.shortcuts:
            raise KeywordNotFound(keyword)
        snap.recents[keyword] = stamp
        return stamp

    return store.transaction(_apply)
