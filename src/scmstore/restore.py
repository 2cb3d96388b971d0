"""Restore engine: rebuild the working tree from a stored commit."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from ._io import walk_files
from .exceptions import CorruptStateError
from .manifest import Manifest, load_commit
from .snapshot import TREE_DIR

if TYPE_CHECKING:
    from ._exclude import ExcludeFilter

logger = logging.getLogger(__name__)


def _check_relpath(rel: str, source: str) -> None:
    """Reject manifest paths that would land outside the working root."""
    parts = rel.split("/")
    if rel.startswith("/") or any(p in ("", ".", "..") for p in parts):
        raise CorruptStateError(f"Unsafe path in manifest: {rel!r}", source)


def _prune_empty_dirs(base: Path) -> None:
    """Remove *base* and the empty directories under it (bottom-up).

    A directory still holding untracked files raises :class:`OSError`.
    """
    for dirpath, _dirnames, _filenames in os.walk(base, topdown=False):
        Path(dirpath).rmdir()


def clear_tree(root: Path, *, exclude: ExcludeFilter | None = None) -> int:
    """Delete every tracked file under *root*; directories are left in place.

    Returns the number of files removed.
    """
    removed = 0
    for path, rel in list(walk_files(root, exclude=exclude)):
        path.unlink()
        removed += 1
        logger.debug("removed %s", rel)
    return removed


def restore(
    root: Path,
    commits_dir: Path,
    commit_id: int,
    *,
    exclude: ExcludeFilter | None = None,
) -> Manifest:
    """Replace the tracked files under *root* with those of commit *commit_id*.

    The manifest and every stored file are checked for presence before the
    working tree is touched.  Digests are not verified.
    """
    manifest = load_commit(commits_dir, commit_id)
    store = commits_dir / str(commit_id) / TREE_DIR
    for rec in manifest.files:
        _check_relpath(rec.path, str(store))
        if not store.joinpath(*rec.path.split("/")).is_file():
            raise CorruptStateError(
                f"Commit {commit_id} is missing its stored copy of {rec.path}",
                str(store),
            )

    removed = clear_tree(root, exclude=exclude)
    logger.debug("cleared %d files from %s", removed, root)

    for rec in manifest.files:
        parts = rec.path.split("/")
        target = root.joinpath(*parts)
        if target.is_dir() and not target.is_symlink():
            _prune_empty_dirs(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        src = store.joinpath(*parts)
        shutil.copyfile(src, target)
        shutil.copymode(src, target)
    logger.info("restored %d files from commit %d", len(manifest.files), commit_id)
    return manifest
