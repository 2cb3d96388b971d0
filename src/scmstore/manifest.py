"""Commit manifests: the durable record of a commit's identity and files.

A manifest is a UTF-8 text file of ``key:value`` lines::

    id:2
    parent:1
    message:fix typo
    file:docs/readme.txt|9f86d081884c7d65...

Backslash, newline and carriage return are escaped in messages and paths
so that every value stays on one line.  In ``file`` lines the path and
digest are split at the *last* ``|``; digests are lowercase hex and never
contain it, so paths may.

File names that are not valid UTF-8 are written with ``surrogateescape``
so the original bytes come back on read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import CommitNotFoundError, CorruptStateError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "meta.txt"

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", "n": "\n", "r": "\r"}


@dataclass(frozen=True)
class FileRecord:
    """One tracked file: its path relative to the root and its content digest."""
    path: str
    digest: str


@dataclass
class Manifest:
    """A commit's id, lineage, message and file list."""
    id: int
    parent: int
    message: str
    files: list[FileRecord] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        return [rec.path for rec in self.files]


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def _unescape(value: str) -> str:
    out = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        if nxt not in _UNESCAPES:
            raise ValueError(f"bad escape sequence '\\{nxt}'")
        out.append(_UNESCAPES[nxt])
    return "".join(out)


def format_manifest(manifest: Manifest) -> str:
    """Serialize *manifest* to its text form."""
    lines = [
        f"id:{manifest.id}",
        f"parent:{manifest.parent}",
        f"message:{_escape(manifest.message)}",
    ]
    for rec in manifest.files:
        lines.append(f"file:{_escape(rec.path)}|{rec.digest}")
    return "\n".join(lines) + "\n"


def _parse_int(key: str, value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"{key} is not a non-negative integer: {value!r}")
    return int(value)


def parse_manifest(text: str, *, source: str | None = None) -> Manifest:
    """Parse manifest text back into a :class:`Manifest`.

    Unknown keys are ignored.  Raises :class:`CorruptStateError` when a
    required field is missing or a line cannot be decoded.
    """
    commit_id: int | None = None
    parent = 0
    message = ""
    files: list[FileRecord] = []
    try:
        for lineno, line in enumerate(text.split("\n"), 1):
            if not line:
                continue
            key, sep, value = line.partition(":")
            if not sep:
                raise ValueError(f"line {lineno} has no key")
            if key == "id":
                commit_id = _parse_int(key, value)
            elif key == "parent":
                parent = _parse_int(key, value)
            elif key == "message":
                message = _unescape(value)
            elif key == "file":
                path, bar, digest = value.rpartition("|")
                if not bar or not path:
                    raise ValueError(f"line {lineno} is not a path|digest pair")
                files.append(FileRecord(_unescape(path), digest))
    except ValueError as exc:
        where = f" {source}" if source else ""
        raise CorruptStateError(f"Malformed manifest{where}: {exc}", source) from exc
    if commit_id is None:
        where = f" {source}" if source else ""
        raise CorruptStateError(f"Manifest has no id{where}", source)
    return Manifest(commit_id, parent, message, files)


def write_manifest(commit_dir: Path, manifest: Manifest) -> Path:
    """Write *manifest* into *commit_dir* and return the file's path."""
    path = commit_dir / MANIFEST_NAME
    path.write_text(format_manifest(manifest), encoding="utf-8", errors="surrogateescape")
    logger.debug("wrote manifest for commit %d (%d files)", manifest.id, len(manifest.files))
    return path


def read_manifest(commit_dir: Path) -> Manifest:
    """Read the manifest stored in *commit_dir*.

    Raises :class:`FileNotFoundError` when it does not exist.
    """
    path = commit_dir / MANIFEST_NAME
    text = path.read_text(encoding="utf-8", errors="surrogateescape")
    return parse_manifest(text, source=str(path))


def load_commit(commits_dir: Path, commit_id: int) -> Manifest:
    """Read the manifest of commit *commit_id* from the commit store.

    Raises :class:`CommitNotFoundError` when the commit directory or its
    manifest is missing.
    """
    commit_dir = commits_dir / str(commit_id)
    try:
        manifest = read_manifest(commit_dir)
    except FileNotFoundError:
        raise CommitNotFoundError(commit_id) from None
    if manifest.id != commit_id:
        raise CorruptStateError(
            f"Manifest in {commit_dir} records id {manifest.id}, expected {commit_id}",
            str(commit_dir),
        )
    return manifest
