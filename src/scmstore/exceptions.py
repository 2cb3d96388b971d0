"""Exceptions for scmstore."""

from __future__ import annotations


class ScmError(Exception):
    """Base class for every error scmstore raises."""


class FilesystemError(ScmError):
    """An underlying filesystem call failed (permission, missing path, full disk).

    The originating :class:`OSError` is chained as ``__cause__``.
    """

    def __init__(self, exc: OSError):
        self.path = exc.filename
        super().__init__(str(exc))


class CorruptStateError(ScmError):
    """Repository state on disk cannot be parsed and needs manual repair."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class CommitNotFoundError(ScmError):
    """The requested commit directory or its manifest is missing."""

    def __init__(self, commit_id: int):
        self.commit_id = commit_id
        super().__init__(f"Commit not found: {commit_id}")


class NoPreviousCommitError(ScmError):
    """Revert was attempted at or before the first commit."""

    def __init__(self, head: int):
        self.head = head
        super().__init__(
            f"No previous commit to revert to (head is {head})"
        )
