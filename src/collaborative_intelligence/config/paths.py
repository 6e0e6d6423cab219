"""Path constants and key store file discovery for ci.

This module defines where ci keeps its key store files:

- Global store: ``<user config dir>/ci/keys.toml`` (one per user account)
- Project store: ``<project_root>/.ci/keys.toml`` (closest ancestor wins)

The global location can be redirected entirely with ``CI_KEYS_PATH``.
"""

import logging
from pathlib import Path

from platformdirs import user_config_dir

from collaborative_intelligence.config.settings import get_key_store_settings
from collaborative_intelligence.errors import ConfigDirUnavailableError

logger = logging.getLogger(__name__)

# =============================================================================
# Core Directory Structure
# =============================================================================

APP_NAME = "ci"
PROJECT_DIR = ".ci"
KEYS_FILENAME = "keys.toml"
KEYS_LOCK_SUFFIX = ".lock"

# =============================================================================
# Environment Variables
# =============================================================================

KEYS_PATH_ENV_VAR = "CI_KEYS_PATH"

# =============================================================================
# Permissions (POSIX only)
# =============================================================================

KEYS_DIR_MODE = 0o700
KEYS_FILE_MODE = 0o600


def get_global_keys_path() -> Path:
    """Get the path to the user's global key store.

    Returns:
        Path to keys.toml (the file may not exist yet)

    Raises:
        ConfigDirUnavailableError: If no user configuration directory can be determined
    """
    override = get_key_store_settings().path
    if override:
        return override.expanduser()

    try:
        config_dir = user_config_dir(APP_NAME, appauthor=False)
    except (KeyError, OSError, RuntimeError) as e:
        # platformdirs falls back to $HOME, which can be missing in stripped environments
        raise ConfigDirUnavailableError(str(e)) from e

    if not config_dir:
        raise ConfigDirUnavailableError("platform returned an empty configuration directory")

    return Path(config_dir) / KEYS_FILENAME


def get_project_keys_path(project_dir: Path) -> Path:
    """Get the project key store path for a project root.

    Args:
        project_dir: Project root directory

    Returns:
        Path to <project_dir>/.ci/keys.toml
    """
    return project_dir / PROJECT_DIR / KEYS_FILENAME


def find_project_keys_path(start_path: Path | None = None) -> Path | None:
    """Find the closest project key store by walking up the directory tree.

    Args:
        start_path: Directory to start searching from (defaults to current directory)

    Returns:
        Path to the first .ci/keys.toml found (start directory included), None if
        absent or if the directory tree cannot be inspected
    """
    try:
        current = (start_path or Path.cwd()).resolve()
        for parent in [current] + list(current.parents):
            candidate = get_project_keys_path(parent)
            if candidate.is_file():
                return candidate
    except OSError as e:
        # Deleted working directory or unreadable ancestor
        logger.debug(f"Project key store discovery failed: {e}")

    return None


def get_lock_path(keys_path: Path) -> Path:
    """Get the advisory lock file path that guards a key store file."""
    return keys_path.with_name(keys_path.name + KEYS_LOCK_SUFFIX)
