"""to CLI: jump to saved directory shortcuts.

Commands:
    to TARGET                  resolve keyword[/sub/path], record use, print the path
    to path TARGET             print the resolved path only
    to add [KEYWORD] PATH      save a shortcut (keyword defaults to the base name)
    to add-bulk PATTERN        save every directory matching a glob
    to copy EXISTING NEW       save NEW for the same path as EXISTING
    to rm KEYWORD              remove a shortcut
    to list                    list shortcuts in the current sort order
    to search [QUERY]          filter by keyword/path (substring, glob, regex)
    to sort [MODE]             show or set the sort order

A shell function does the actual cd:  to() { cd "$(command to "$@")"; }
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path

import click

from gotodir import mutator, resolver, search as search_mod
from gotodir.config import GotoConfig, load_config
from gotodir.errors import DuplicatePath, GotoError
from gotodir.models import AddOutcome, AddStatus, SortMode
from gotodir.search import FieldScope, MatchMode, SearchOptions
from gotodir.store import ConfigStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> GotoConfig:
    try:
        return load_config()
    except GotoError as exc:
        raise click.ClickException(str(exc)) from exc


def _open_store() -> ConfigStore:
    return ConfigStore(_load_cfg())


def _fail(exc: GotoError) -> click.ClickException:
    return click.ClickException(str(exc))


def _echo_warnings(store: ConfigStore) -> None:
    for warning in store.load().warnings:
        click.echo(f"warning: {warning}", err=True)


def _echo_path(path: Path) -> None:
    """Print a path for the shell as raw bytes, so non-UTF-8 names survive."""
    click.echo(os.fsencode(path))


def _format_expiry(expire: int | None, now: int) -> str:
    if expire is None:
        return ""
    state = "expired" if expire <= now else "expires"
    return f"  ({state} {expire})"


def _report_add(outcome: AddOutcome) -> None:
    expiry = f" (expires {outcome.expire})" if outcome.expire is not None else ""
    if outcome.status is AddStatus.ADDED:
        click.echo(f"Added {outcome.keyword} → {click.format_filename(outcome.path)}{expiry}")
    elif outcome.status is AddStatus.REPLACED:
        previous = click.format_filename(outcome.previous_path or "")
        click.echo(f"Replaced {outcome.keyword}: {previous} → {click.format_filename(outcome.path)}{expiry}")
    else:
        note = " (expiration updated)" if outcome.expiry_changed else ""
        click.echo(f"{outcome.keyword} already points to {click.format_filename(outcome.path)}{note}")
    if outcome.duplicate_keywords:
        click.echo(f"  also saved as: {', '.join(outcome.duplicate_keywords)}", err=True)


def _confirm_duplicate(exc: DuplicatePath) -> None:
    """Ask before saving a path that already has a keyword; abort on no."""
    click.echo(str(exc), err=True)
    prompt = f"Add keyword '{exc.keyword}' for the same path?"
    if not click.confirm(prompt, default=False, err=True):
        msg = f"Aborted adding '{exc.keyword}'. Use --force or set GOTO_ASSUME_YES=1 to proceed."
        raise click.ClickException(msg)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


class _TargetGroup(click.Group):
    """Group that treats an unrecognised first positional arg as the jump TARGET."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        # Root options are all flags, so the first non-option arg is the command or target
        idx = next((i for i, arg in enumerate(args) if not arg.startswith("-")), None)
        if idx is not None and args[idx] not in self.commands:
            ctx.meta["jump_target"] = args[idx]
            args = args[:idx] + args[idx + 1 :]
        return super().parse_args(ctx, args)


@click.group(cls=_TargetGroup, invoke_without_command=True)
@click.version_option(package_name="gotodir")
@click.option("--no-create", is_flag=True, help="Fail instead of creating a missing subdirectory")
@click.option("--verbose", "-v", is_flag=True, help="Log store activity to stderr")
@click.pass_context
def cli(ctx: click.Context, no_create: bool, verbose: bool) -> None:
    """to: persistent directory shortcuts.

    \b
    to proj              # print the directory for shortcut 'proj'
    to proj/src/api      # subpath below it (created if missing)
    to add proj ~/code/proj
    """
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")

    if ctx.invoked_subcommand is not None:
        return

    target: str | None = ctx.meta.get("jump_target")
    if target is None:
        click.echo(ctx.get_help())
        return

    store = _open_store()
    try:
        _echo_warnings(store)
        resolved = resolver.jump(store, target, create_missing=not no_create)
    except GotoError as exc:
        raise _fail(exc) from exc
    if resolved.created:
        click.echo(f"Created {click.format_filename(resolved.target_path)}", err=True)
    _echo_path(resolved.target_path)


# ---------------------------------------------------------------------------
# to path
# ---------------------------------------------------------------------------


@cli.command("path")
@click.argument("target")
def print_path(target: str) -> None:
    """Print the resolved path for TARGET without recording a jump."""
    store = _open_store()
    try:
        resolved = resolver.resolve(store, target)
    except GotoError as exc:
        raise _fail(exc) from exc
    _echo_path(resolved.target_path)


# ---------------------------------------------------------------------------
# to add / add-bulk / copy / rm
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("args", nargs=-1, required=True)
@click.option("--expire", type=int, default=None, help="Expiration timestamp (seconds since epoch)")
@click.option("--force", "-f", is_flag=True, help="Replace an existing keyword")
@click.option("--yes", "-y", is_flag=True, help="Save without asking when the path already has a keyword")
def add(args: tuple[str, ...], expire: int | None, force: bool, yes: bool) -> None:
    """Save a shortcut: KEYWORD PATH, or just PATH (keyword = directory name).

    \b
    to add proj ~/code/proj
    to add ~/code/proj --expire 1767225600
    """
    if len(args) > 2:
        raise click.UsageError("Usage: to add [KEYWORD] PATH")
    if len(args) == 1:
        path = Path(args[0]).expanduser()
        keyword = path.resolve().name
    else:
        keyword, path = args[0], Path(args[1])

    store = _open_store()
    try:
        try:
            outcome = mutator.add(store, keyword, path, expire=expire, force=force, allow_duplicate_path=yes)
        except DuplicatePath as dup:
            _confirm_duplicate(dup)
            outcome = mutator.add(store, keyword, path, expire=expire, force=force, allow_duplicate_path=True)
    except GotoError as exc:
        raise _fail(exc) from exc
    _report_add(outcome)


@cli.command("add-bulk")
@click.argument("pattern")
@click.option("--force", "-f", is_flag=True, help="Replace keywords that point elsewhere")
@click.option("--yes", "-y", is_flag=True, help="Save paths that already have a keyword")
def add_bulk(pattern: str, force: bool, yes: bool) -> None:
    """Save every directory matching the glob PATTERN under its base name.

    \b
    to add-bulk '~/code/*'
    """
    store = _open_store()
    try:
        items = mutator.bulk_add(store, pattern, force=force, allow_duplicate_path=yes)
    except GotoError as exc:
        raise _fail(exc) from exc
    if not items:
        click.echo("No directories matched.")
        return

    failed = 0
    for item in items:
        if item.outcome is not None:
            _report_add(item.outcome)
        else:
            failed += 1
            click.echo(f"  skipped {item.keyword}: {item.error}", err=True)
    if failed:
        click.echo(f"{len(items) - failed} saved, {failed} skipped", err=True)


@cli.command()
@click.argument("existing")
@click.argument("new")
@click.option("--force", "-f", is_flag=True, help="Replace NEW if it already exists")
def copy(existing: str, new: str, force: bool) -> None:
    """Save NEW as another keyword for EXISTING's path."""
    store = _open_store()
    try:
        outcome = mutator.copy(store, existing, new, force=force)
    except GotoError as exc:
        raise _fail(exc) from exc
    click.echo(f"Copied {existing} → {new}")
    _report_add(outcome)


@cli.command("rm")
@click.argument("keyword")
def remove(keyword: str) -> None:
    """Remove a saved shortcut."""
    store = _open_store()
    try:
        mutator.remove(store, keyword)
    except GotoError as exc:
        raise _fail(exc) from exc
    click.echo(f"Removed {keyword}")


# ---------------------------------------------------------------------------
# to list / search
# ---------------------------------------------------------------------------


def _print_shortcuts(options: SearchOptions, store: ConfigStore) -> None:
    try:
        snap = store.load()
        results = search_mod.search(store, options, snap=snap)
    except GotoError as exc:
        raise _fail(exc) from exc
    for warning in snap.warnings:
        click.echo(f"warning: {warning}", err=True)

    if options.structured:
        click.echo(json.dumps(search_mod.to_records(snap, results), indent=2))
        return

    if not results:
        click.echo("No shortcuts saved." if options.query is None and options.root is None else "(no matches)")
        return

    now = int(time.time())
    width = max(len(s.keyword) for s in results)
    for s in results:
        expiry = _format_expiry(snap.expirations.get(s.keyword), now)
        keyword = click.format_filename(s.keyword)
        click.echo(f"{keyword:<{width}}  → {click.format_filename(s.path)}{expiry}")


@cli.command("list")
@click.option("--json", "-j", "as_json", is_flag=True, help="Output JSON")
def list_cmd(as_json: bool) -> None:
    """List all shortcuts (expired ones are marked)."""
    _print_shortcuts(SearchOptions(structured=as_json), _open_store())


@cli.command()
@click.argument("query", required=False)
@click.option("--keyword", "-k", "keyword_only", is_flag=True, help="Search keywords only")
@click.option("--path", "-p", "path_only", is_flag=True, help="Search paths only")
@click.option("--and", "-A", "require_both", is_flag=True, help="Require keyword AND path to match")
@click.option("--glob", "-g", "use_glob", is_flag=True, help="Treat QUERY as a glob pattern")
@click.option("--regex", "-r", "use_regex", is_flag=True, help="Treat QUERY as a regular expression")
@click.option("--within", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Only shortcuts at or below this directory")
@click.option("--max-depth", type=click.IntRange(min=0), default=None,
              help="With --within: max segments below it (0 = the directory itself)")
@click.option("--limit", "-n", type=click.IntRange(min=0), default=None, help="Max results")
@click.option("--json", "-j", "as_json", is_flag=True, help="Output JSON")
def search(
    query: str | None,
    keyword_only: bool,
    path_only: bool,
    require_both: bool,
    use_glob: bool,
    use_regex: bool,
    within: Path | None,
    max_depth: int | None,
    limit: int | None,
    as_json: bool,
) -> None:
    """Search saved shortcuts.

    \b
    to search api              # keyword or path contains 'api'
    to search -k -g 'web-*'    # keyword glob
    to search -r '^/srv/'      # regex on keyword or path
    to search --within ~/code --max-depth 1
    """
    if use_glob and use_regex:
        raise click.UsageError("--glob and --regex are mutually exclusive")
    if max_depth is not None and within is None:
        raise click.UsageError("--max-depth requires --within")

    if keyword_only == path_only:
        scope = FieldScope.ALL if require_both else FieldScope.ANY
    else:
        scope = FieldScope.KEYWORD if keyword_only else FieldScope.PATH

    mode = MatchMode.GLOB if use_glob else MatchMode.REGEX if use_regex else MatchMode.SUBSTRING

    options = SearchOptions(
        query=query,
        scope=scope,
        mode=mode,
        root=within,
        max_depth=max_depth,
        limit=limit,
        structured=as_json,
    )
    _print_shortcuts(options, _open_store())


# ---------------------------------------------------------------------------
# to sort
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("mode", required=False, type=click.Choice([m.value for m in SortMode]))
def sort(mode: str | None) -> None:
    """Show the sort order, or set it to added | alpha | recent."""
    store = _open_store()
    try:
        if mode is None:
            click.echo(f"Current sorting mode: {store.get_sort().value}")
            return
        store.set_sort(SortMode(mode))
    except GotoError as exc:
        raise _fail(exc) from exc
    click.echo(f"Sorting mode set to {mode}")
