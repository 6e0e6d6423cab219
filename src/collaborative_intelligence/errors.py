"""Custom exceptions for ci key management.

All exceptions inherit from KeyStoreError, allowing callers to catch every
key management failure with a single except clause. Secret values are
never part of an exception message, only service/key identifiers and paths.

Exception hierarchy:
    KeyStoreError (base)
    ├── KeyStoreIOError
    ├── KeyStoreParseError
    ├── KeyNotFoundError
    └── ConfigDirUnavailableError
"""

from pathlib import Path
from typing import Any


class KeyStoreError(Exception):
    """Base exception for all key management errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize key store error.

        Args:
            message: Error description.
            details: Optional dictionary with additional context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class KeyStoreIOError(KeyStoreError):
    """Raised when a key store file cannot be read, written or secured.

    Examples:
        - Permission denied on the config directory
        - Disk full while writing keys.toml
    """

    def __init__(self, message: str, path: Path, cause: Exception | None = None):
        """Initialize IO error.

        Args:
            message: Error description.
            path: Key store file involved.
            cause: Underlying OS error, if any.
        """
        details: dict[str, Any] = {"path": str(path)}
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.path = path
        self.cause = cause


class KeyStoreParseError(KeyStoreError):
    """Raised when a key store file exists but is not a valid key store.

    Examples:
        - Invalid TOML syntax
        - A service table whose values are not strings
    """

    def __init__(self, path: Path, reason: str):
        """Initialize parse error.

        Args:
            path: Key store file that failed to parse.
            reason: Parser diagnostic (never contains secret values).
        """
        super().__init__(f"Failed to parse key store: {path}", {"reason": reason})
        self.path = path
        self.reason = reason


class KeyNotFoundError(KeyStoreError):
    """Raised when a key is absent from every applicable layer.

    This is an expected outcome, not a crash: callers typically turn it into
    a hint telling the user how to set the key.
    """

    def __init__(self, service: str, key_name: str, environment: str | None = None):
        """Initialize not-found error.

        Args:
            service: Service the key belongs to.
            key_name: Name of the missing key.
            environment: Environment that was searched first, if any.
        """
        message = f"API key not found: {service}.{key_name}"
        details = {"environment": environment} if environment else None
        super().__init__(message, details)
        self.service = service
        self.key_name = key_name
        self.environment = environment


class ConfigDirUnavailableError(KeyStoreError):
    """Raised when the platform cannot supply a user configuration directory."""

    def __init__(self, reason: str):
        """Initialize config dir error.

        Args:
            reason: Why the directory could not be determined.
        """
        super().__init__(
            "Could not determine a user configuration directory; set CI_KEYS_PATH instead",
            {"reason": reason},
        )
        self.reason = reason
