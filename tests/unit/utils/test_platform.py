"""Tests for cross-platform file locking helpers."""

import os
from pathlib import Path

import pytest

from collaborative_intelligence.utils.platform import (
    acquire_file_lock,
    exclusive_lock,
    release_file_lock,
)


def test_exclusive_lock_creates_lock_file(tmp_path: Path) -> None:
    """The lock file (and its directory) is created on demand."""
    lock_path = tmp_path / "nested" / "keys.toml.lock"

    with exclusive_lock(lock_path, timeout_seconds=1.0):
        assert lock_path.exists()

    assert lock_path.exists()


def test_exclusive_lock_is_reusable(tmp_path: Path) -> None:
    """Releasing the lock lets the next caller take it."""
    lock_path = tmp_path / "keys.toml.lock"

    with exclusive_lock(lock_path, timeout_seconds=1.0):
        pass
    with exclusive_lock(lock_path, timeout_seconds=1.0):
        pass


@pytest.mark.skipif(os.name != "posix", reason="flock semantics are POSIX-specific")
def test_exclusive_lock_times_out_when_held(tmp_path: Path) -> None:
    """A lock held through another handle makes the waiter give up."""
    lock_path = tmp_path / "keys.toml.lock"
    lock_path.touch()

    with open(lock_path, "a+") as holder:
        assert acquire_file_lock(holder) is True
        try:
            with pytest.raises(TimeoutError):
                with exclusive_lock(lock_path, timeout_seconds=0.2):
                    pass
        finally:
            release_file_lock(holder)


def test_release_without_lock_is_safe(tmp_path: Path) -> None:
    """Releasing an unlocked handle is a no-op."""
    lock_path = tmp_path / "unlocked.lock"
    with open(lock_path, "a+") as handle:
        release_file_lock(handle)
