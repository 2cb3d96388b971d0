"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import logging

import click

from .._exclude import ExcludeFilter
from ..manifest import Manifest
from ..repo import Repository


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _store_root(ctx, param, value):
    """Click callback: store --root value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["root"] = value
    return value


def _root_option(f):
    """Shared --root/-C option decorator for all commands."""
    return click.option(
        "--root", "-C", type=click.Path(file_okay=False), envvar="SCM_ROOT",
        help="Working tree root (default: current directory, or set SCM_ROOT).",
        expose_value=False, callback=_store_root, is_eager=True,
    )(f)


def _exclude_options(f):
    """Shared --exclude / --exclude-from / --ignore-files options."""
    f = click.option("--ignore-files", is_flag=True, default=False,
                     help="Honor .scmignore files in the working tree.")(f)
    f = click.option("--exclude-from", "exclude_from", type=click.Path(exists=True, dir_okay=False),
                     help="Read exclude patterns from file.")(f)
    f = click.option("--exclude", multiple=True,
                     help="Exclude files matching pattern (gitignore syntax, repeatable).")(f)
    return f


class _EchoHandler(logging.Handler):
    """Route library log records through click so they follow the current stderr."""

    def emit(self, record):
        click.echo(self.format(record), err=True)


def _configure_logging(verbose: bool) -> None:
    """Show scmstore log records on stderr in verbose mode, warnings otherwise."""
    logger = logging.getLogger("scmstore")
    if not any(isinstance(h, _EchoHandler) for h in logger.handlers):
        handler = _EchoHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _format_option(f):
    return click.option(
        "--format", "fmt", type=click.Choice(["text", "json", "jsonl"]),
        default="text", show_default=True, help="Output format.",
    )(f)


def _open_repo(ctx, exclude=(), exclude_from=None, ignore_files=False) -> Repository:
    """Build a Repository for --root, with an exclude filter when one is configured."""
    excl = None
    if exclude or exclude_from or ignore_files:
        excl = ExcludeFilter(
            patterns=exclude, exclude_from=exclude_from, ignore_files=ignore_files,
        )
    return Repository(ctx.obj.get("root") or ".", exclude=excl)


def _manifest_dict(manifest: Manifest, *, files: bool = True) -> dict:
    d = {
        "id": manifest.id,
        "parent": manifest.parent,
        "message": manifest.message,
    }
    if files:
        d["files"] = [{"path": rec.path, "digest": rec.digest} for rec in manifest.files]
    return d


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@_root_option
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, verbose):
    """scm — snapshot a working tree and step back through its history.

    \b
    Quick start:
      scm commit -m "first"
      scm commit -m "second"
      scm revert
      scm log

    \b
    Snapshots live in .scm/ at the working tree root.
    Set SCM_ROOT to work on a tree other than the current directory.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)
