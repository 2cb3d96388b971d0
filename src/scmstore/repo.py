"""Repository: the control directory, head pointer, and commit/revert."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING

from ._io import CONTROL_DIR, file_digest, write_text_atomic
from ._lock import repo_lock
from .exceptions import (
    CommitNotFoundError,
    CorruptStateError,
    FilesystemError,
    NoPreviousCommitError,
)
from .manifest import Manifest, load_commit, write_manifest
from .restore import restore
from .snapshot import TREE_DIR, snapshot

if TYPE_CHECKING:
    from ._exclude import ExcludeFilter

logger = logging.getLogger(__name__)

COMMITS_DIR = "commits"
HEAD_FILE = "HEAD"
STAGING_SUFFIX = ".partial"
DEFAULT_MESSAGE = "commit"


@contextmanager
def _filesystem_errors():
    """Re-raise any OSError from the block as :class:`FilesystemError`."""
    try:
        yield
    except OSError as exc:
        raise FilesystemError(exc) from exc


class Repository:
    """A working tree and the ``.scm`` control directory at its root.

    Every operation works against *root*; nothing depends on the process's
    current directory.  The control directory is created lazily by the
    first :meth:`commit`.
    """

    def __init__(self, root: str | os.PathLike[str], *, exclude: ExcludeFilter | None = None):
        self.root = Path(root)
        self.control_dir = self.root / CONTROL_DIR
        self.commits_dir = self.control_dir / COMMITS_DIR
        self.head_path = self.control_dir / HEAD_FILE
        self._exclude = exclude

    def __repr__(self) -> str:
        return f"Repository({str(self.root)!r})"

    @property
    def initialized(self) -> bool:
        """True once the control directory exists."""
        return self.control_dir.is_dir()

    def commit_dir(self, commit_id: int) -> Path:
        return self.commits_dir / str(commit_id)

    # --- State store ---

    def ensure_initialized(self) -> None:
        """Create the control directory and commit store if absent."""
        with _filesystem_errors():
            # no parents=True: a missing working root is an error
            self.control_dir.mkdir(exist_ok=True)
            self.commits_dir.mkdir(exist_ok=True)

    def read_head(self) -> int:
        """Return the head commit id, or 0 when there are no commits yet.

        Raises :class:`CorruptStateError` if the head file holds anything
        other than a non-negative decimal integer.
        """
        try:
            text = self.head_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return 0
        except OSError as exc:
            raise FilesystemError(exc) from exc
        if not text:
            return 0
        if not (text.isascii() and text.isdigit()):
            raise CorruptStateError(
                f"Head pointer is not a commit id: {text!r}", str(self.head_path),
            )
        return int(text)

    def write_head(self, commit_id: int) -> None:
        """Point head at *commit_id*, replacing the head file atomically."""
        if commit_id < 0:
            raise ValueError(f"commit id must be >= 0, got {commit_id}")
        with _filesystem_errors():
            write_text_atomic(self.head_path, str(commit_id))
        logger.debug("head -> %d", commit_id)

    # --- Operations ---

    def commit(self, message: str = DEFAULT_MESSAGE) -> Manifest:
        """Snapshot the whole working tree as commit ``head + 1``.

        The snapshot is assembled in a staging directory and moved into
        place once its manifest is written; head advances last.  If a
        directory for the new id already exists (left behind by a revert),
        it is replaced.
        """
        self.ensure_initialized()
        with _filesystem_errors(), repo_lock(self.control_dir):
            head = self.read_head()
            new_id = head + 1
            staging = self.commits_dir / f"{new_id}{STAGING_SUFFIX}"
            if staging.exists():
                logger.info("Discarding stale staging directory %s", staging)
                shutil.rmtree(staging)

            records = snapshot(self.root, staging / TREE_DIR, exclude=self._exclude)
            manifest = Manifest(new_id, head, message, records)
            write_manifest(staging, manifest)

            final = self.commit_dir(new_id)
            if final.exists():
                logger.info("Replacing commit %d, abandoned by an earlier revert", new_id)
                shutil.rmtree(final)
            staging.rename(final)
            self.write_head(new_id)

        logger.info("Committed %d (%d files)", new_id, len(records))
        return manifest

    def revert(self) -> tuple[int, int]:
        """Move the working tree and head back to the commit before head.

        Returns ``(old_head, new_head)``.  Raises
        :class:`NoPreviousCommitError`, without touching anything, when
        head is 0 or 1.  The commit reverted from is kept on disk.
        """
        if not self.initialized:
            raise NoPreviousCommitError(0)
        with _filesystem_errors(), repo_lock(self.control_dir):
            head = self.read_head()
            if head <= 1:
                raise NoPreviousCommitError(head)
            target = head - 1
            restore(self.root, self.commits_dir, target, exclude=self._exclude)
            self.write_head(target)

        logger.info("Reverted %d -> %d", head, target)
        return head, target

    # --- History ---

    def manifest(self, commit_id: int | None = None) -> Manifest:
        """Return the manifest of *commit_id* (default: head)."""
        if commit_id is None:
            commit_id = self.read_head()
        if commit_id < 1:
            raise CommitNotFoundError(commit_id)
        with _filesystem_errors():
            return load_commit(self.commits_dir, commit_id)

    def log(self, *, match: str | None = None) -> Iterator[Manifest]:
        """Walk from head through parent ids, yielding each commit's manifest.

        Args:
            match: Only yield commits whose message matches this
                :func:`fnmatch` pattern.
        """
        current = self.read_head()
        while current:
            manifest = self.manifest(current)
            if match is None or fnmatch(manifest.message, match):
                yield manifest
            if manifest.parent >= current:
                raise CorruptStateError(
                    f"Commit {current} names parent {manifest.parent}",
                    str(self.commit_dir(current)),
                )
            current = manifest.parent

    def verify(self, commit_id: int | None = None) -> list[str]:
        """Recompute stored-copy digests of a commit (default: head).

        Returns the paths whose stored copy is missing or whose digest no
        longer matches the manifest.
        """
        manifest = self.manifest(commit_id)
        store = self.commit_dir(manifest.id) / TREE_DIR
        bad = []
        with _filesystem_errors():
            for rec in manifest.files:
                path = store.joinpath(*rec.path.split("/"))
                if not path.is_file() or file_digest(path) != rec.digest:
                    bad.append(rec.path)
        return bad
