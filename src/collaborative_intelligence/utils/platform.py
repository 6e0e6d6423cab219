"""Cross-platform abstractions for Windows and POSIX systems.

This module provides platform-agnostic functions for:
- File locking (fcntl on POSIX, msvcrt on Windows)
- A context manager guarding load-mutate-save sequences on key stores

All functions are designed to work correctly on both Windows and POSIX systems.
"""

import logging
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Final

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS: Final[bool] = sys.platform == "win32"
IS_POSIX: Final[bool] = os.name == "posix"

LOCK_POLL_INTERVAL_SECONDS: Final[float] = 0.05


# =============================================================================
# File Locking
# =============================================================================


def acquire_file_lock(file_handle: IO[Any], blocking: bool = False) -> bool:
    """Acquire an exclusive lock on a file.

    Uses fcntl.flock() on POSIX systems and msvcrt.locking() on Windows.

    Args:
        file_handle: Open file handle to lock.
        blocking: If True, block until lock is acquired. If False, fail immediately
                  if lock is not available.

    Returns:
        True if lock was acquired, False if non-blocking and lock unavailable.

    Raises:
        OSError: If blocking=True and lock cannot be acquired, or other I/O errors.
    """
    if IS_WINDOWS:
        import msvcrt

        try:
            lock_mode = msvcrt.LK_LOCK if blocking else msvcrt.LK_NBLCK  # type: ignore[attr-defined]
            file_handle.seek(0)
            msvcrt.locking(file_handle.fileno(), lock_mode, 1)  # type: ignore[attr-defined]
            return True
        except OSError:
            if not blocking:
                return False
            raise
    else:
        import fcntl

        try:
            flags = fcntl.LOCK_EX
            if not blocking:
                flags |= fcntl.LOCK_NB
            fcntl.flock(file_handle, flags)
            return True
        except OSError:
            if not blocking:
                return False
            raise


def release_file_lock(file_handle: IO[Any]) -> None:
    """Release a file lock.

    Args:
        file_handle: File handle that was previously locked.

    Note:
        This is a no-op if the file was not locked. Always safe to call.
    """
    if IS_WINDOWS:
        import msvcrt

        try:
            file_handle.seek(0)
            msvcrt.locking(file_handle.fileno(), msvcrt.LK_UNLCK, 1)  # type: ignore[attr-defined]
        except OSError as e:
            logger.debug(f"Failed to release Windows file lock: {e}")
    else:
        import fcntl

        try:
            fcntl.flock(file_handle, fcntl.LOCK_UN)
        except OSError as e:
            logger.debug(f"Failed to release POSIX file lock: {e}")


@contextmanager
def exclusive_lock(lock_path: Path, timeout_seconds: float) -> Iterator[None]:
    """Hold an exclusive advisory lock on ``lock_path`` for the duration of the block.

    The lock file is created if needed and left in place afterwards; only the
    lock itself is released.

    Args:
        lock_path: Lock file path (usually next to the file being guarded).
        timeout_seconds: How long to keep retrying before giving up.

    Raises:
        TimeoutError: If the lock could not be acquired in time.
        OSError: If the lock file cannot be opened.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout_seconds

    with open(lock_path, "a+") as handle:
        while not acquire_file_lock(handle, blocking=False):
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Timed out waiting for lock: {lock_path}")
            time.sleep(LOCK_POLL_INTERVAL_SECONDS)

        logger.debug(f"Acquired lock {lock_path}")
        try:
            yield
        finally:
            release_file_lock(handle)
            logger.debug(f"Released lock {lock_path}")
