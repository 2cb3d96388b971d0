"""scm CLI: commit and revert snapshots of a working tree."""

from ._helpers import main  # noqa: F401 — entry point

# Import command modules to register Click commands with the main group.
from . import _basic  # noqa: F401
