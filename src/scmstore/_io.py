"""File I/O helpers: hashing, tree walking, atomic writes."""

from __future__ import annotations

import hashlib
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._exclude import ExcludeFilter

logger = logging.getLogger(__name__)

CONTROL_DIR = ".scm"


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

_HASH_CHUNK_SIZE = 65536


def file_digest(path: str | os.PathLike[str]) -> str:
    """Return the SHA-256 hex digest of a file, streamed in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_HASH_CHUNK_SIZE)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


# ---------------------------------------------------------------------------
# Walking
# ---------------------------------------------------------------------------

def _raise(exc: OSError) -> None:
    raise exc


def _join(rel_dir: str, name: str) -> str:
    return f"{rel_dir}/{name}" if rel_dir else name


def walk_files(
    root: Path, *, exclude: ExcludeFilter | None = None,
) -> Iterator[tuple[Path, str]]:
    """Yield ``(absolute_path, relative_posix_path)`` for every file under *root*.

    Any entry named :data:`CONTROL_DIR` is skipped at every level, not only
    at the top.  Directories are visited in sorted order.  Symlinked
    directories are skipped with a warning; symlinks to files are yielded
    like regular files.  Unreadable directories raise.
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dp = Path(dirpath)
        rel_dir = Path(os.path.relpath(dp, root)).as_posix()
        if rel_dir == ".":
            rel_dir = ""
        if exclude is not None:
            exclude.enter_directory(dp, rel_dir)

        kept = []
        for name in sorted(dirnames):
            if name == CONTROL_DIR:
                continue
            if (dp / name).is_symlink():
                logger.warning("Skipping symlinked directory %s", _join(rel_dir, name))
                continue
            if exclude is not None and exclude.is_excluded_in_walk(
                _join(rel_dir, name), is_dir=True,
            ):
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            if name == CONTROL_DIR:
                continue
            rel = _join(rel_dir, name)
            if exclude is not None and exclude.is_excluded_in_walk(rel):
                continue
            yield dp / name, rel


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def write_text_atomic(path: Path, text: str) -> None:
    """Write *text* to a sibling temp file, then rename it over *path*."""
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)
