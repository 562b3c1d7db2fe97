"""Filter shortcuts by keyword and/or path.

Match modes (all case-insensitive):
    substring   query occurs anywhere in the field (default)
    glob        fnmatch pattern against the whole field
    regex       re.search anywhere in the field

The matcher is built once per request; an invalid pattern fails before any
record is looked at. Results are sorted, then truncated to ``limit``.
"""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gotodir.errors import InvalidPattern
from gotodir.ordering import order

if TYPE_CHECKING:
    from collections.abc import Callable

    from gotodir.models import Shortcut, SortMode, StoreSnapshot
    from gotodir.store import ConfigStore


class FieldScope(str, Enum):
    KEYWORD = "keyword"      # keyword only
    PATH = "path"            # path only
    ALL = "all"              # keyword AND path
    ANY = "any"              # keyword OR path


class MatchMode(str, Enum):
    SUBSTRING = "substring"
    GLOB = "glob"
    REGEX = "regex"


@dataclass
class SearchOptions:
    query: str | None = None
    scope: FieldScope = FieldScope.ANY
    mode: MatchMode = MatchMode.SUBSTRING
    root: Path | None = None
    max_depth: int | None = None
    limit: int | None = None
    structured: bool = False
    sort: SortMode | None = None      # None = stored preference


def _substring(query: str) -> Callable[[str], bool]:
    needle = query.casefold()
    return lambda value: needle in value.casefold()


def _check_brackets(query: str) -> None:
    """Reject character classes that fnmatch would quietly treat as literals."""
    i, n = 0, len(query)
    while i < n:
        if query[i] != "[":
            i += 1
            continue
        j = i + 1
        if j < n and query[j] == "!":
            j += 1
        if j < n and query[j] == "]":      # leading ']' is a member, as in fnmatch
            j += 1
        close = query.find("]", j)
        if close < 0:
            raise InvalidPattern(query, f"unclosed character class at position {i}")
        i = close + 1


def _glob(query: str) -> Callable[[str], bool]:
    _check_brackets(query)
    try:
        compiled = re.compile(fnmatch.translate(query.casefold()))
    except re.error as exc:
        raise InvalidPattern(query, str(exc)) from exc
    return lambda value: compiled.match(value.casefold()) is not None


def _regex(query: str) -> Callable[[str], bool]:
    try:
        compiled = re.compile(query, re.IGNORECASE)
    except re.error as exc:
        raise InvalidPattern(query, str(exc)) from exc
    return lambda value: compiled.search(value) is not None


_MATCHERS: dict[MatchMode, Callable[[str], Callable[[str], bool]]] = {
    MatchMode.SUBSTRING: _substring,
    MatchMode.GLOB: _glob,
    MatchMode.REGEX: _regex,
}


def build_matcher(query: str, mode: MatchMode) -> Callable[[str], bool]:
    """Compile query for mode into a single-field predicate."""
    return _MATCHERS[mode](query)


def _field_filter(options: SearchOptions) -> Callable[[Shortcut], bool]:
    if options.query is None:
        return lambda _s: True

    matches = build_matcher(options.query, options.mode)
    scope = options.scope
    if scope is FieldScope.KEYWORD:
        return lambda s: matches(s.keyword)
    if scope is FieldScope.PATH:
        return lambda s: matches(str(s.path))
    if scope is FieldScope.ALL:
        return lambda s: matches(s.keyword) and matches(str(s.path))
    return lambda s: matches(s.keyword) or matches(str(s.path))


def _depth_below(path: Path, root: Path) -> int | None:
    """Segments from root down to path, or None when path is outside root."""
    try:
        return len(path.relative_to(root).parts)
    except ValueError:
        return None


def search(
    store: ConfigStore,
    options: SearchOptions,
    *,
    snap: StoreSnapshot | None = None,
) -> list[Shortcut]:
    """Return the shortcuts matching options, in display order.

    Expired shortcuts are included; callers can flag them via the snapshot's
    expirations.
    """
    keep = _field_filter(options)
    if snap is None:
        snap = store.load()

    root = options.root.expanduser().resolve() if options.root is not None else None

    results: list[Shortcut] = []
    for shortcut in snap.in_order():
        if root is not None:
            depth = _depth_below(shortcut.path, root)
            if depth is None:
                continue
            if options.max_depth is not None and depth > options.max_depth:
                continue
        if keep(shortcut):
            results.append(shortcut)

    mode = options.sort if options.sort is not None else store.get_sort()
    ordered = order(results, mode, snap.recents)
    if options.limit is not None:
        ordered = ordered[: max(options.limit, 0)]
    return ordered


def list_shortcuts(
    store: ConfigStore,
    sort: SortMode | None = None,
    *,
    snap: StoreSnapshot | None = None,
) -> list[Shortcut]:
    """Every shortcut, expired ones included, in display order."""
    return search(store, SearchOptions(sort=sort), snap=snap)


def to_records(snap: StoreSnapshot, shortcuts: list[Shortcut]) -> list[dict[str, Any]]:
    """JSON-ready rows for structured output."""
    return [
        {
            "keyword": s.keyword,
            "path": str(s.path),
            "expires": snap.expirations.get(s.keyword),
        }
        for s in shortcuts
    ]
