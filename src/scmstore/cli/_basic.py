"""Basic commands: commit, revert, log, show, verify."""

from __future__ import annotations

import json

import click

from ..exceptions import ScmError
from ..repo import DEFAULT_MESSAGE
from ._helpers import (
    main,
    _exclude_options,
    _format_option,
    _manifest_dict,
    _open_repo,
    _root_option,
    _status,
)


# ---------------------------------------------------------------------------
# commit
# ---------------------------------------------------------------------------

@main.command()
@_root_option
@click.option("-m", "--message", default=DEFAULT_MESSAGE, show_default=True,
              help="Commit message.")
@_exclude_options
@click.pass_context
def commit(ctx, message, exclude, exclude_from, ignore_files):
    """Snapshot the whole working tree as a new commit."""
    repo = _open_repo(ctx, exclude, exclude_from, ignore_files)
    try:
        manifest = repo.commit(message)
    except ScmError as e:
        raise click.ClickException(str(e))
    _status(ctx, f"{len(manifest.files)} file(s), parent {manifest.parent}")
    click.echo(f"Committed as {manifest.id}")


# ---------------------------------------------------------------------------
# revert
# ---------------------------------------------------------------------------

@main.command()
@_root_option
@_exclude_options
@click.pass_context
def revert(ctx, exclude, exclude_from, ignore_files):
    """Restore the working tree to the commit before head.

    Only one step back per call; files not in that commit are removed.
    """
    repo = _open_repo(ctx, exclude, exclude_from, ignore_files)
    try:
        old, new = repo.revert()
    except ScmError as e:
        raise click.ClickException(str(e))
    click.echo(f"Reverted from {old} → {new}")


# ---------------------------------------------------------------------------
# log
# ---------------------------------------------------------------------------

@main.command()
@_root_option
@click.option("--match", "match_pattern", default=None,
              help="Only show commits whose message matches this pattern (* and ? wildcards).")
@_format_option
@click.pass_context
def log(ctx, match_pattern, fmt):
    """Show commit history from head back to the first commit."""
    repo = _open_repo(ctx)
    try:
        entries = list(repo.log(match=match_pattern))
    except ScmError as e:
        raise click.ClickException(str(e))

    if fmt == "json":
        click.echo(json.dumps([_manifest_dict(m, files=False) for m in entries], indent=2))
    elif fmt == "jsonl":
        for m in entries:
            click.echo(json.dumps(_manifest_dict(m, files=False)))
    else:
        for m in entries:
            click.echo(f"{m.id}  {m.message}")


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------

@main.command()
@_root_option
@click.argument("commit_id", type=click.IntRange(min=1), required=False)
@_format_option
@click.pass_context
def show(ctx, commit_id, fmt):
    """Show a commit's message and file manifest (default: head)."""
    repo = _open_repo(ctx)
    try:
        m = repo.manifest(commit_id)
    except ScmError as e:
        raise click.ClickException(str(e))

    if fmt in ("json", "jsonl"):
        click.echo(json.dumps(_manifest_dict(m), indent=2 if fmt == "json" else None))
        return
    click.echo(f"commit {m.id}")
    click.echo(f"parent {m.parent}")
    click.echo(f"message {m.message}")
    for rec in m.files:
        click.echo(f"{rec.digest[:12]}  {rec.path}")


# ---------------------------------------------------------------------------
# verify
# ---------------------------------------------------------------------------

@main.command()
@_root_option
@click.argument("commit_id", type=click.IntRange(min=1), required=False)
@click.pass_context
def verify(ctx, commit_id):
    """Check a commit's stored copies against its recorded digests (default: head)."""
    repo = _open_repo(ctx)
    try:
        bad = repo.verify(commit_id)
    except ScmError as e:
        raise click.ClickException(str(e))
    for path in bad:
        click.echo(f"mismatch: {path}", err=True)
    if bad:
        raise click.ClickException(f"{len(bad)} file(s) failed verification")
    _status(ctx, "All digests match")
    click.echo("OK")
