"""Exclude-filter support for snapshot and restore walks.

Combines ``--exclude`` patterns, ``--exclude-from`` files, and optional
per-directory ``.scmignore`` loading into a single predicate used by
:func:`scmstore._io.walk_files`.

Pattern syntax follows gitignore rules (implemented by
``dulwich.ignore.IgnoreFilter``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from dulwich.ignore import IgnoreFilter

IGNORE_FILE = ".scmignore"


class ExcludeFilter:
    """Combines --exclude patterns, --exclude-from, and .scmignore files."""

    def __init__(
        self,
        *,
        patterns: Sequence[str] | None = None,
        exclude_from: str | None = None,
        ignore_files: bool = False,
    ) -> None:
        base_lines: list[bytes] = []
        for p in patterns or ():
            base_lines.append(p.encode("utf-8"))
        if exclude_from is not None:
            for raw in Path(exclude_from).read_bytes().splitlines():
                line = raw.strip()
                if line and not line.startswith(b"#"):
                    base_lines.append(line)
        self._base: IgnoreFilter | None = (
            IgnoreFilter(base_lines) if base_lines else None
        )
        self._ignore_files = ignore_files
        # {rel_dir: IgnoreFilter | None}, reloaded each time a walk enters the directory
        self._dir_filters: dict[str, IgnoreFilter | None] = {}

    def __repr__(self) -> str:
        return f"ExcludeFilter(active={self.active}, ignore_files={self._ignore_files})"

    @property
    def active(self) -> bool:
        """True if any filtering is configured."""
        return self._base is not None or self._ignore_files

    def enter_directory(self, abs_dir: Path, rel_dir: str) -> None:
        """Load .scmignore from *abs_dir* if ignore-file mode is on."""
        if not self._ignore_files:
            return
        candidate = abs_dir / IGNORE_FILE
        if candidate.is_file():
            self._dir_filters[rel_dir] = IgnoreFilter.from_path(str(candidate))
        else:
            self._dir_filters[rel_dir] = None

    def is_excluded_in_walk(self, rel_path: str, *, is_dir: bool = False) -> bool:
        """Check base patterns, then the loaded .scmignore hierarchy.

        ``enter_directory`` must already have been called for every
        ancestor of *rel_path*.
        """
        check = rel_path + "/" if is_dir else rel_path
        if self._base is not None and self._base.is_ignored(check) is True:
            return True
        if not self._ignore_files:
            return False

        # Each filter sees the path relative to its own directory; the
        # deepest explicit answer wins.
        parts = rel_path.split("/")
        verdict = False
        for depth in range(len(parts)):
            filt = self._dir_filters.get("/".join(parts[:depth]))
            if filt is None:
                continue
            sub = "/".join(parts[depth:])
            result = filt.is_ignored(sub + "/" if is_dir else sub)
            if result is not None:
                verdict = result
        return verdict
