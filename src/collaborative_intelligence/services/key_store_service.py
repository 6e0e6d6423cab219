"""Key store persistence for ci.

This module reads and writes key stores as TOML files and wraps a store
file in a small service that runs load-mutate-save sequences under an
advisory lock.

Key Classes:
    KeyStoreFile: One key store file (global or project scope)

Key Functions:
    load_key_store: Parse keys.toml into a KeyStore (empty if missing)
    save_key_store: Serialize a KeyStore deterministically with owner-only permissions

File Format:
    [services.openai]
    api_key = "sk-..."

    [environments.staging.openai]
    api_key = "sk-..."

    [metadata]
    last_updated = "2026-01-01T00:00:00+00:00"

Typical Usage:
    >>> store_file = KeyStoreFile(get_global_keys_path())
    >>> with store_file.transaction() as store:
    ...     store.set_service_key("openai", "api_key", value)
"""

import logging
import tomllib
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import ValidationError

from collaborative_intelligence.config.paths import (
    KEYS_DIR_MODE,
    KEYS_FILE_MODE,
    get_lock_path,
)
from collaborative_intelligence.config.settings import (
    KeyStoreSettings,
    get_key_store_settings,
)
from collaborative_intelligence.errors import KeyStoreIOError, KeyStoreParseError
from collaborative_intelligence.models.keystore import KeyStore
from collaborative_intelligence.utils.file_utils import (
    ensure_dir,
    file_exists,
    secure_dir,
    secure_file,
)
from collaborative_intelligence.utils.platform import exclusive_lock

logger = logging.getLogger(__name__)


def _sorted_tree(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively sort mapping keys so output does not depend on insertion order."""
    return {
        key: _sorted_tree(value) if isinstance(value, dict) else value
        for key, value in sorted(data.items())
    }


def _describe_validation_error(error: ValidationError) -> str:
    """Summarize a schema error by location only, never by input value."""
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


def load_key_store(path: Path) -> KeyStore:
    """Load a key store from a TOML file.

    Args:
        path: Path to keys.toml

    Returns:
        Parsed KeyStore, or an empty KeyStore if the file does not exist

    Raises:
        KeyStoreIOError: If the file exists but cannot be read
        KeyStoreParseError: If the file is not valid TOML or not a valid key store
    """
    if not file_exists(path):
        logger.debug(f"No key store at {path}, using empty store")
        return KeyStore()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise KeyStoreParseError(path, str(e)) from e
    except OSError as e:
        raise KeyStoreIOError(f"Failed to read key store: {path}", path, e) from e

    try:
        store = KeyStore.model_validate(data)
    except ValidationError as e:
        raise KeyStoreParseError(path, _describe_validation_error(e)) from e

    logger.debug(f"Loaded key store {path} ({len(store.services)} services)")
    return store


def dump_key_store(store: KeyStore) -> str:
    """Serialize a key store to TOML text.

    Args:
        store: KeyStore to serialize

    Returns:
        TOML document with sorted tables
    """
    data = store.model_dump(mode="json", exclude_none=True)
    return tomli_w.dumps(_sorted_tree(data))


def save_key_store(store: KeyStore, path: Path) -> None:
    """Save a key store to a TOML file.

    Creates parent directories as needed. On POSIX systems the containing
    directory is restricted to 0700 when this call creates it, and the file
    is always restricted to 0600.

    Args:
        store: KeyStore to save
        path: Destination keys.toml

    Raises:
        KeyStoreIOError: If the directory or file cannot be written or secured
    """
    content = dump_key_store(store)

    try:
        if ensure_dir(path.parent):
            secure_dir(path.parent, KEYS_DIR_MODE)

        # Create with restrictive permissions before any secret is written
        path.touch(mode=KEYS_FILE_MODE, exist_ok=True)
        secure_file(path, KEYS_FILE_MODE)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise KeyStoreIOError(f"Failed to write key store: {path}", path, e) from e

    logger.debug(f"Saved key store {path}")


class KeyStoreFile:
    """A key store bound to one file on disk."""

    def __init__(self, path: Path, settings: KeyStoreSettings | None = None):
        """Initialize key store file.

        Args:
            path: Path to keys.toml
            settings: Key store settings (defaults to environment-derived settings)
        """
        self.path = path
        self.settings = settings or get_key_store_settings()

    def read(self) -> KeyStore:
        """Load the store for a read-only operation. Never writes to disk.

        Raises:
            KeyStoreIOError: If the file cannot be read
            KeyStoreParseError: If the file is malformed
        """
        return load_key_store(self.path)

    def _prepare_dir(self) -> None:
        """Create the store directory (owner-only) before the lock file lands in it."""
        try:
            if ensure_dir(self.path.parent):
                secure_dir(self.path.parent, KEYS_DIR_MODE)
        except OSError as e:
            raise KeyStoreIOError(
                f"Failed to create key store directory: {self.path.parent}", self.path, e
            ) from e

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self.settings.file_lock:
            yield
            return

        self._prepare_dir()
        lock_path = get_lock_path(self.path)
        with ExitStack() as stack:
            try:
                stack.enter_context(exclusive_lock(lock_path, self.settings.lock_timeout_seconds))
            except TimeoutError as e:
                raise KeyStoreIOError(
                    f"Timed out waiting for key store lock: {lock_path}", self.path, e
                ) from e
            except OSError as e:
                raise KeyStoreIOError(
                    f"Failed to lock key store: {lock_path}", self.path, e
                ) from e
            yield

    @contextmanager
    def transaction(self) -> Iterator[KeyStore]:
        """Load the store, let the caller mutate it, then save it.

        The store is saved only if the block exits normally and the metadata
        timestamp moved, i.e. a set or a successful remove happened. The
        whole sequence runs under the advisory lock when enabled.

        Yields:
            The loaded KeyStore

        Raises:
            KeyStoreIOError: If the file cannot be read, locked or written
            KeyStoreParseError: If the existing file is malformed
        """
        with self._locked():
            store = load_key_store(self.path)
            stamp_before = store.metadata.last_updated
            yield store
            if store.metadata.last_updated != stamp_before:
                save_key_store(store, self.path)
            else:
                logger.debug(f"Key store {self.path} unchanged, skipping save")
