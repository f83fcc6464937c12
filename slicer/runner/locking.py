"""
Feature locking.

One flock per feature so two runs never write the same feature directory
at once. Runs on different features proceed in parallel.
"""

import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path

from slicer.lib.constants import LOCKS_DIR
from slicer.plan.errors import SlicerError


class LockTimeout(SlicerError):
    """Lock acquisition timed out."""
    pass


def get_lock_path(features_dir: Path, feature_name: str) -> Path:
    return Path(features_dir) / LOCKS_DIR / f"{feature_name}.lock"


def is_feature_locked(features_dir: Path, feature_name: str) -> bool:
    """True if another process currently holds the feature lock."""
    lock_file = get_lock_path(features_dir, feature_name)
    if not lock_file.exists():
        return False

    with open(lock_file, 'r') as fd:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            return True
        fcntl.flock(fd, fcntl.LOCK_UN)
    return False


@contextmanager
def _acquire_lock(lock_file: Path, timeout: float, lock_name: str, poll_interval: float = 0.5):
    """
    Internal helper to acquire a file lock.

    Lock files are never deleted: removing one lets two processes hold
    "exclusive" locks on different inodes at the same path.
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    fd = open(lock_file, 'w')
    start = time.time()

    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            break
        except BlockingIOError:
            if time.time() - start >= timeout:
                fd.close()
                raise LockTimeout(f"Could not acquire {lock_name} within {timeout}s")
            time.sleep(poll_interval)

    try:
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        yield
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        fd.close()


@contextmanager
def feature_lock(features_dir: Path, feature_name: str, timeout: float = 60):
    """
    Acquire the per-feature lock, yield, release on exit.

    Raises:
        LockTimeout: if another run holds the lock for longer than timeout
    """
    lock_file = get_lock_path(features_dir, feature_name)
    with _acquire_lock(lock_file, timeout, f"lock for feature '{feature_name}'"):
        yield
