"""Pytest configuration and fixtures for ci tests."""

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from collaborative_intelligence.config.paths import KEYS_PATH_ENV_VAR
from collaborative_intelligence.utils.logging_config import PACKAGE_LOGGER

# Real credentials in the developer's shell must not leak into lookups
_OVERRIDE_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GITHUB_TOKEN",
    "SVC_KEY",
    "STAGING_SVC_KEY",
    "DEV_SVC_KEY",
    "CI_KEYS_PATH",
    "CI_KEYS_FILE_LOCK",
    "CI_KEYS_LOCK_TIMEOUT_SECONDS",
    "CI_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove override variables that would shadow stored test keys."""
    for name in _OVERRIDE_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo CLI logging configuration between tests."""
    yield
    ci_logger = logging.getLogger(PACKAGE_LOGGER)
    ci_logger.handlers.clear()
    ci_logger.propagate = True
    ci_logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_project_dir() -> Iterator[Path]:
    """Create a temporary project directory and chdir into it.

    Yields:
        Path to temporary directory
    """
    temp_dir = Path(tempfile.mkdtemp(prefix="ci-test-")).resolve()
    original_cwd = Path.cwd()
    try:
        os.chdir(temp_dir)
        yield temp_dir
    finally:
        os.chdir(original_cwd)
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def global_keys_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global key store at a fresh location via CI_KEYS_PATH.

    The file is not created; its parent directory does not exist yet either.

    Returns:
        Path the global store will be written to
    """
    keys_path = tmp_path / "user-config" / "ci" / "keys.toml"
    monkeypatch.setenv(KEYS_PATH_ENV_VAR, str(keys_path))
    return keys_path


@pytest.fixture
def project_keys_path(temp_project_dir: Path) -> Path:
    """Path of the project key store inside the temporary project (not created)."""
    return temp_project_dir / ".ci" / "keys.toml"


