"""Snapshot engine: copy the working tree into a commit's private store."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from ._io import file_digest, walk_files
from .manifest import FileRecord

if TYPE_CHECKING:
    from ._exclude import ExcludeFilter

logger = logging.getLogger(__name__)

# Snapshot contents live in <commit dir>/tree, beside the manifest.
TREE_DIR = "tree"


def snapshot(
    root: Path, dest: Path, *, exclude: ExcludeFilter | None = None,
) -> list[FileRecord]:
    """Copy every tracked file under *root* into *dest* at the same relative path.

    Each file's digest is computed from the copy, not the source, so a
    corrupted copy shows up as a digest that does not match the source.
    Records are returned in traversal order.  Any unreadable file (including
    a broken symlink) raises and aborts the snapshot.
    """
    records: list[FileRecord] = []
    dest.mkdir(parents=True, exist_ok=True)
    for src, rel in walk_files(root, exclude=exclude):
        target = dest.joinpath(*rel.split("/"))
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(src, target)
        digest = file_digest(target)
        records.append(FileRecord(rel, digest))
        logger.debug("snapshot %s %s", digest[:12], rel)
    return records
