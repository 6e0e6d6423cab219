"""File system utilities for ci."""

import logging
from pathlib import Path

from collaborative_intelligence.utils.platform import IS_POSIX

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> bool:
    """Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        True if the directory was created, False if it already existed
    """
    if path.is_dir():
        return False
    path.mkdir(parents=True, exist_ok=True)
    return True


def file_exists(path: Path) -> bool:
    """Check if file exists.

    Args:
        path: Path to check

    Returns:
        True if file exists, False otherwise
    """
    return path.exists() and path.is_file()


def secure_dir(path: Path, mode: int) -> None:
    """Restrict a directory to its owner (no-op off POSIX).

    Raises:
        OSError: If permissions cannot be changed
    """
    if IS_POSIX:
        path.chmod(mode)
        logger.debug(f"Set permissions {oct(mode)} on {path}")


def secure_file(path: Path, mode: int) -> None:
    """Restrict a file to its owner (no-op off POSIX).

    Raises:
        OSError: If permissions cannot be changed
    """
    if IS_POSIX:
        path.chmod(mode)
        logger.debug(f"Set permissions {oct(mode)} on {path}")
