"""Runtime configuration settings for ci.

This module uses Pydantic Settings for configuration that can be
overridden via environment variables. This provides:
- Type validation
- Environment variable support (CI_ prefix)
- Default values
- Easy testing via dependency injection
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KeyStoreSettings(BaseSettings):
    """Key store behaviour settings.

    Can be overridden via environment variables with CI_KEYS_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="CI_KEYS_")

    path: Path | None = Field(
        default=None,
        description="Global key store file, replacing the user config directory location",
    )
    file_lock: bool = Field(
        default=True,
        description="Hold an advisory lock file around load-mutate-save sequences",
    )
    lock_timeout_seconds: float = Field(
        default=10.0,
        description="Seconds to wait for the key store lock before giving up",
    )


class LoggingSettings(BaseSettings):
    """Logging settings.

    Can be overridden via environment variables with CI_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="CI_")

    log_level: str = Field(
        default="WARNING",
        description="Log level for ci diagnostics (DEBUG, INFO, WARNING, ERROR)",
    )


def get_key_store_settings() -> KeyStoreSettings:
    """Read key store settings from the current environment."""
    return KeyStoreSettings()


def get_logging_settings() -> LoggingSettings:
    """Read logging settings from the current environment."""
    return LoggingSettings()
