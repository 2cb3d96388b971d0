"""Advisory repository lock: serializes commit and revert across threads and processes."""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from pathlib import Path

LOCK_NAME = "scm.lock"

# Per-process threading locks, keyed by resolved control directory
_thread_locks: dict[str, threading.Lock] = {}
_thread_locks_guard = threading.Lock()


def _get_thread_lock(control_dir: Path) -> threading.Lock:
    key = os.path.normcase(os.path.realpath(control_dir))
    with _thread_locks_guard:
        if key not in _thread_locks:
            _thread_locks[key] = threading.Lock()
        return _thread_locks[key]


try:
    import fcntl

    @contextmanager
    def repo_lock(control_dir: Path):
        """Hold an exclusive lock on ``<control_dir>/scm.lock`` for the block."""
        tlock = _get_thread_lock(control_dir)
        tlock.acquire()
        try:
            fd = os.open(
                control_dir / LOCK_NAME,
                os.O_CREAT | os.O_RDWR | getattr(os, "O_CLOEXEC", 0),
            )
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)
        finally:
            tlock.release()

except ImportError:
    import msvcrt

    @contextmanager
    def repo_lock(control_dir: Path):
        """Hold an exclusive lock on ``<control_dir>/scm.lock`` for the block."""
        tlock = _get_thread_lock(control_dir)
        tlock.acquire()
        try:
            fd = os.open(control_dir / LOCK_NAME, os.O_CREAT | os.O_RDWR)
            os.set_inheritable(fd, False)
            try:
                msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
                yield
            finally:
                msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
                os.close(fd)
        finally:
            tlock.release()
