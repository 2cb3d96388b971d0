"""Shared fixtures for scmstore tests."""

import os

import pytest
from click.testing import CliRunner

from scmstore import Repository


@pytest.fixture
def work_tree(tmp_path):
    """An empty working tree directory."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def repo(work_tree):
    return Repository(work_tree)


@pytest.fixture
def runner():
    return CliRunner()


def read_tree(root):
    """Return ``{relative_posix_path: bytes}`` for every file outside .scm."""
    result = {}
    for path in root.rglob("*"):
        rel = path.relative_to(root)
        if rel.parts[0] == ".scm" or not path.is_file():
            continue
        result[rel.as_posix()] = path.read_bytes()
    return result


@pytest.fixture
def undecodable_name(work_tree):
    """Create a file whose name is not valid UTF-8 and return its str name."""
    raw = b"bad\xff.txt"
    try:
        with open(os.path.join(os.fsencode(work_tree), raw), "wb") as f:
            f.write(b"bytes")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 file names")
    return os.fsdecode(raw)
