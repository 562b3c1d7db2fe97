"""Persistent directory shortcuts: plain-text files as the only source of truth.

Layout (see gotodir.config for overrides):
    ~/.goto/
        to_dirs           # keyword=path, insertion order
        to_dirs_meta      # keyword=expire_epoch (sparse)
        to_dirs_recent    # keyword=last_used_epoch
        to_zsh_config     # sort_order=added|alpha|recent

Every invocation is a separate short-lived process. Reads load the files
without locking; mutations take flock(LOCK_EX) on to_dirs.lock, reload, apply
and replace each file via tmp + rename.
"""

from gotodir.config import GotoConfig, load_config
from gotodir.models import AddOutcome, AddStatus, ResolvedPath, Shortcut, SortMode
from gotodir.store import ConfigStore

__all__ = [
    "AddOutcome",
    "AddStatus",
    "ConfigStore",
    "GotoConfig",
    "ResolvedPath",
    "Shortcut",
    "SortMode",
    "load_config",
]
