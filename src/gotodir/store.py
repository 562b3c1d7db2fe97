"""Read and write the shortcut record files.

ConfigStore is the public API:
    store = ConfigStore(load_config())
    snap = store.load()                       # lock-free read, may be slightly stale
    store.transaction(lambda snap: snap.put("proj", Path("/src/proj")))

Record files are line-oriented, ``keyword=value`` split on the first ``=``:
    to_dirs          proj=/home/u/src/proj
    to_dirs_meta     proj=1767225600
    to_dirs_recent   proj=1767139200

Concurrent writes: every read-modify-write holds flock(LOCK_EX) on a dedicated
``<shortcuts file>.lock`` and reloads from disk inside the lock. Each file is
written to ``<file>.tmp`` and renamed over the original, so readers never see a
half-written file.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from gotodir.errors import IoError, LockTimeout
from gotodir.models import (
    DEFAULT_SORT,
    DELIMITER,
    MalformedRecord,
    Shortcut,
    SortMode,
    StoreSnapshot,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from gotodir.config import GotoConfig

logger = logging.getLogger("gotodir.store")

T = TypeVar("T")

_SORT_KEY = "sort_order"
_LOCK_POLL_INTERVAL = 0.02


class ConfigStore:
    """Plain-text shortcut store shared between independent processes."""

    def __init__(self, cfg: GotoConfig) -> None:
        self.cfg = cfg

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self) -> StoreSnapshot:
        """Parse all record files. Malformed lines are skipped and reported."""
        snap = StoreSnapshot()
        self._load_shortcuts(snap)
        snap.expirations = self._load_numbers(self.cfg.expirations_file, snap.warnings)
        snap.recents = self._load_numbers(self.cfg.recents_file, snap.warnings)
        return snap

    def _load_shortcuts(self, snap: StoreSnapshot) -> None:
        path = self.cfg.shortcuts_file
        for line_no, key, value in self._iter_records(path, snap.warnings):
            existing = snap.shortcuts.get(key)
            if existing is not None:
                # Last line wins for the path; the first one keeps its position
                _warn(snap.warnings, path, line_no, f"{key}{DELIMITER}{value}", "duplicate keyword")
                existing.path = Path(value)
                continue
            snap.shortcuts[key] = Shortcut(keyword=key, path=Path(value), order=len(snap.shortcuts))

    def _load_numbers(self, path: Path, warnings: list[MalformedRecord]) -> dict[str, int]:
        numbers: dict[str, int] = {}
        for line_no, key, value in self._iter_records(path, warnings):
            try:
                numbers[key] = int(value.strip())
            except ValueError:
                _warn(warnings, path, line_no, f"{key}{DELIMITER}{value}", "not an integer")
        return numbers

    def _iter_records(
        self, path: Path, warnings: list[MalformedRecord]
    ) -> Iterator[tuple[int, str, str]]:
        for line_no, line in enumerate(_read_lines(path), start=1):
            if not line.strip():
                continue
            key, sep, value = line.partition(DELIMITER)
            if not sep:
                _warn(warnings, path, line_no, line, "missing delimiter")
                continue
            if not key.strip() or not value.strip():
                _warn(warnings, path, line_no, line, "empty field")
                continue
            yield line_no, key, value

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the exclusive cross-process lock for the duration of the block."""
        lock_path = self.cfg.lock_file
        timeout = self.cfg.lock_timeout
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            f = lock_path.open("a")
        except OSError as exc:
            msg = f"Cannot open lock file {lock_path}: {exc}"
            raise IoError(msg) from exc

        with f:
            deadline = time.monotonic() + timeout
            while True:
                try:
                    fcntl.flock(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    if time.monotonic() >= deadline:
                        raise LockTimeout(lock_path, timeout) from None
                    time.sleep(_LOCK_POLL_INTERVAL)
            logger.debug("lock acquired: %s", lock_path)
            try:
                yield
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)
                logger.debug("lock released: %s", lock_path)

    def transaction(self, op: Callable[[StoreSnapshot], T]) -> T:
        """Reload under the lock, apply op to the snapshot, persist, return op's result.

        If op raises, nothing is written.
        """
        with self.locked():
            snap = self.load()
            result = op(snap)
            self.save(snap)
            return result

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, snap: StoreSnapshot) -> None:
        """Write every record file atomically. Callers must hold the lock."""
        snap.prune_orphans()
        shortcuts = [f"{s.keyword}{DELIMITER}{s.path}\n" for s in snap.in_order()]
        _atomic_write(self.cfg.shortcuts_file, shortcuts)
        _atomic_write(self.cfg.expirations_file, _number_lines(snap.expirations))
        _atomic_write(self.cfg.recents_file, _number_lines(snap.recents))

    # ------------------------------------------------------------------
    # Sort preference
    # ------------------------------------------------------------------

    def get_sort(self) -> SortMode:
        for line in _read_lines(self.cfg.preferences_file):
            key, sep, value = line.partition(DELIMITER)
            if sep and key.strip() == _SORT_KEY:
                try:
                    return SortMode(value.strip())
                except ValueError:
                    logger.warning("unknown sort mode %r in %s", value.strip(), self.cfg.preferences_file)
                    return DEFAULT_SORT
        return DEFAULT_SORT

    def set_sort(self, mode: SortMode) -> SortMode:
        """Persist the sort preference, keeping any unrelated lines."""
        path = self.cfg.preferences_file
        with self.locked():
            kept = [
                line + "\n"
                for line in _read_lines(path)
                if line.partition(DELIMITER)[0].strip() != _SORT_KEY
            ]
            kept.append(f"{_SORT_KEY}{DELIMITER}{mode.value}\n")
            _atomic_write(path, kept)
        return mode


def _warn(warnings: list[MalformedRecord], path: Path, line_no: int, line: str, reason: str) -> None:
    record = MalformedRecord(file=path, line_no=line_no, line=line, reason=reason)
    logger.warning("skipping malformed record %s", record)
    warnings.append(record)


def _read_lines(path: Path) -> list[str]:
    """Lines of path, with undecodable bytes kept as surrogates (like os.fsdecode)."""
    if not path.exists():
        return []
    try:
        data = path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read {path}: {exc}"
        raise IoError(msg) from exc
    return [line.decode("utf-8", "surrogateescape") for line in data.splitlines()]


def _number_lines(numbers: dict[str, int]) -> list[str]:
    return [f"{key}{DELIMITER}{value}\n" for key, value in sorted(numbers.items())]


def _atomic_write(path: Path, lines: list[str]) -> None:
    """Write to a sibling tmp file, fsync, then rename over path."""
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8", errors="surrogateescape") as f:
            f.writelines(lines)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)
    except (OSError, UnicodeError) as exc:
        with contextlib.suppress(OSError):
            tmp.unlink()
        msg = f"Cannot write {path}: {exc}"
        raise IoError(msg) from exc
