"""Cross-process mutation: independent interpreters racing on one store."""

from __future__ import annotations

import os
import subprocess
import sys
import textwrap

from gotodir import mutator

_WORKERS = 8

_ADD_SCRIPT = textwrap.dedent(
    """
    import sys
    from gotodir import ConfigStore, load_config
    from gotodir.mutator import add

    store = ConfigStore(load_config())
    for i in range(int(sys.argv[3])):
        add(store, f"{sys.argv[1]}-{i}", sys.argv[2])  # same dir: needs GOTO_ASSUME_YES
    """
)


def _env_for(cfg) -> dict[str, str]:
    env = dict(os.environ)
    env.update(
        {
            "TO_CONFIG_FILE": str(cfg.shortcuts_file),
            "TO_CONFIG_META_FILE": str(cfg.expirations_file),
            "TO_RECENT_FILE": str(cfg.recents_file),
            "TO_USER_CONFIG_FILE": str(cfg.preferences_file),
            "GOTO_LOCK_TIMEOUT": "30",
            "GOTO_ASSUME_YES": "1",
        }
    )
    return env


def test_concurrent_adds_are_all_kept(store, cfg, make_dir):
    mutator.add(store, "seed", make_dir("seed"))
    per_worker = 5
    dirs = [make_dir(f"w{n}") for n in range(_WORKERS)]

    procs = [
        subprocess.Popen(
            [sys.executable, "-c", _ADD_SCRIPT, f"w{n}", str(dirs[n]), str(per_worker)],
            env=_env_for(cfg),
            stderr=subprocess.PIPE,
            text=True,
        )
        for n in range(_WORKERS)
    ]
    for proc in procs:
        _, err = proc.communicate(timeout=120)
        assert proc.returncode == 0, err

    snap = store.load()
    assert snap.warnings == []
    expected = {"seed"} | {f"w{n}-{i}" for n in range(_WORKERS) for i in range(per_worker)}
    assert set(snap.shortcuts) == expected
    assert len(snap.shortcuts) == 1 + _WORKERS * per_worker
    # Each worker's keywords land in the order that worker added them
    for n in range(_WORKERS):
        orders = [snap.get(f"w{n}-{i}").order for i in range(per_worker)]
        assert orders == sorted(orders)
