from .repo import Repository, DEFAULT_MESSAGE
from .manifest import Manifest, FileRecord
from .exceptions import (
    ScmError,
    FilesystemError,
    CorruptStateError,
    CommitNotFoundError,
    NoPreviousCommitError,
)
from ._exclude import ExcludeFilter

__all__ = [
    "Repository", "DEFAULT_MESSAGE", "Manifest", "FileRecord", "ExcludeFilter",
    "ScmError", "FilesystemError", "CorruptStateError",
    "CommitNotFoundError", "NoPreviousCommitError",
]
