"""Tests for add / remove / copy / bulk-add and the duplicate policy."""

from __future__ import annotations

import pytest

from gotodir import mutator
from gotodir.errors import (
    DuplicateKeyword,
    DuplicatePath,
    InvalidKeyword,
    KeywordNotFound,
    PathNotFound,
)
from gotodir.models import AddStatus

# ============================================================================
# add
# ============================================================================


def test_add_new_shortcut(store, cfg, make_dir):
    path = make_dir("proj")
    outcome = mutator.add(store, "proj", path, expire=1900000000)
    assert outcome.status is AddStatus.ADDED
    assert outcome.path == path
    assert cfg.shortcuts_file.read_text() == f"proj={path}\n"
    assert store.load().expirations == {"proj": 1900000000}


def test_add_same_keyword_same_path_is_idempotent(store, cfg, make_dir):
    a, b = make_dir("a"), make_dir("b")
    mutator.add(store, "a", a)
    mutator.add(store, "b", b)
    before = cfg.shortcuts_file.read_text()

    outcome = mutator.add(store, "a", a)

    assert outcome.status is AddStatus.ALREADY_PRESENT
    assert not outcome.expiry_changed
    assert cfg.shortcuts_file.read_text() == before


def test_add_same_path_updates_expiration(store, make_dir):
    path = make_dir("p")
    mutator.add(store, "p", path)
    outcome = mutator.add(store, "p", path, expire=1900000000)
    assert outcome.status is AddStatus.ALREADY_PRESENT
    assert outcome.expiry_changed
    assert store.load().expirations == {"p": 1900000000}


def test_add_existing_keyword_other_path_needs_force(store, make_dir):
    mutator.add(store, "k", make_dir("one"))
    with pytest.raises(DuplicateKeyword):
        mutator.add(store, "k", make_dir("two"))


def test_force_replaces_in_place_keeping_order(store, make_dir):
    one, two = make_dir("one"), make_dir("two")
    mutator.add(store, "k", one, expire=1900000000)
    mutator.add(store, "z", make_dir("z"))

    outcome = mutator.add(store, "k", two, force=True)

    assert outcome.status is AddStatus.REPLACED
    assert outcome.previous_path == one
    snap = store.load()
    assert [s.keyword for s in snap.in_order()] == ["k", "z"]
    assert snap.get("k").path == two
    assert snap.expirations == {}


def test_duplicate_path_requires_confirmation(store, cfg, make_dir):
    path = make_dir("shared")
    mutator.add(store, "first", path)
    before = cfg.shortcuts_file.read_text()

    with pytest.raises(DuplicatePath) as info:
        mutator.add(store, "second", path)

    assert info.value.keywords == ["first"]
    assert cfg.shortcuts_file.read_text() == before

    outcome = mutator.add(store, "second", path, allow_duplicate_path=True)
    assert outcome.status is AddStatus.ADDED
    assert outcome.duplicate_keywords == ["first"]


def test_assume_yes_preapproves_duplicate_path(store, cfg, make_dir):
    cfg.assume_yes = True
    path = make_dir("shared")
    mutator.add(store, "first", path)
    assert mutator.add(store, "second", path).status is AddStatus.ADDED


def test_add_rejects_missing_or_file_path(store, tmp_path):
    with pytest.raises(PathNotFound):
        mutator.add(store, "gone", tmp_path / "nope")
    afile = tmp_path / "file.txt"
    afile.write_text("x")
    with pytest.raises(PathNotFound):
        mutator.add(store, "file", afile)


@pytest.mark.parametrize("keyword", ["", "a/b", "a=b", " pad", "two\nlines"])
def test_add_rejects_bad_keywords(store, make_dir, keyword):
    with pytest.raises(InvalidKeyword):
        mutator.add(store, keyword, make_dir("d"))


# ============================================================================
# remove
# ============================================================================


def test_remove_drops_expiration_and_recent(store, cfg, make_dir):
    mutator.add(store, "a", make_dir("a"), expire=1900000000)
    mutator.add(store, "b", make_dir("b"))
    store.transaction(lambda snap: snap.recents.update(a=5, b=6))

    removed = mutator.remove(store, "a")

    assert removed.keyword == "a"
    snap = store.load()
    assert list(snap.shortcuts) == ["b"]
    assert snap.expirations == {}
    assert snap.recents == {"b": 6}


def test_remove_unknown_keyword(store):
    with pytest.raises(KeywordNotFound):
        mutator.remove(store, "ghost")


# ============================================================================
# copy
# ============================================================================


def test_copy_creates_new_keyword_same_path(store, make_dir):
    path = make_dir("src")
    mutator.add(store, "src", path)
    outcome = mutator.copy(store, "src", "clone")
    assert outcome.status is AddStatus.ADDED
    assert store.load().get("clone").path == path


def test_copy_missing_source(store):
    with pytest.raises(KeywordNotFound):
        mutator.copy(store, "ghost", "clone")


def test_copy_onto_existing_keyword_needs_force(store, make_dir):
    mutator.add(store, "a", make_dir("a"))
    mutator.add(store, "b", make_dir("b"))
    with pytest.raises(DuplicateKeyword):
        mutator.copy(store, "a", "b")
    assert mutator.copy(store, "a", "b", force=True).status is AddStatus.REPLACED


# ============================================================================
# bulk_add
# ============================================================================


def test_bulk_add_uses_directory_names(store, make_dir, tmp_path):
    for name in ("alpha", "beta", "gamma"):
        make_dir(name)
    (tmp_path / "work" / "notes.txt").write_text("not a dir")

    items = mutator.bulk_add(store, str(tmp_path / "work" / "*"))

    assert [i.keyword for i in items] == ["alpha", "beta", "gamma"]
    assert all(i.ok for i in items)
    assert list(store.load().shortcuts) == ["alpha", "beta", "gamma"]


def test_bulk_add_partial_failure_keeps_others(store, make_dir, tmp_path):
    mutator.add(store, "beta", make_dir("elsewhere"))
    make_dir("alpha")
    (tmp_path / "bulk" / "beta").mkdir(parents=True)
    (tmp_path / "bulk" / "alpha").symlink_to(tmp_path / "work" / "alpha")

    items = mutator.bulk_add(store, str(tmp_path / "bulk" / "*"))

    by_kw = {i.keyword: i for i in items}
    assert by_kw["alpha"].ok
    assert isinstance(by_kw["beta"].error, DuplicateKeyword)
    assert set(store.load().shortcuts) == {"beta", "alpha"}


def test_bulk_add_no_matches(store, tmp_path):
    assert mutator.bulk_add(store, str(tmp_path / "nothing-*")) == []
