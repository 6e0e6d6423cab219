"""API key resolution across environment variables, global and project stores.

Lookup Precedence (``get``):
    1. Environment variable ``{SERVICE}_{KEY_NAME}`` (upper-cased)
    2. Global store ``services[service][key_name]``
    3. Closest project store (``.ci/keys.toml`` walking upward) ``services[service][key_name]``

Lookup Precedence (``get_for_environment``):
    1. Environment variable ``{ENVIRONMENT}_{SERVICE}_{KEY_NAME}`` (upper-cased)
    2. Global store ``environments[environment][service][key_name]``
    3. Everything ``get`` would check

The project store only supplies keys the global store does not define.
Failures reading the project store are treated as "layer absent"; failures
on the global store propagate.

Typical Usage:
    >>> resolver = KeyResolver()
    >>> resolver.set_key("openai", "api_key", "sk-...")
    >>> resolver.get("openai", "api_key")
    >>> resolver.mask(resolver.get("openai", "api_key"))
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from collaborative_intelligence.config.paths import (
    find_project_keys_path,
    get_global_keys_path,
    get_project_keys_path,
)
from collaborative_intelligence.config.settings import (
    KeyStoreSettings,
    get_key_store_settings,
)
from collaborative_intelligence.constants import (
    MASK_MIN_REVEAL_LENGTH,
    MASK_PLACEHOLDER,
    MASK_VISIBLE_CHARS,
)
from collaborative_intelligence.errors import (
    KeyNotFoundError,
    KeyStoreError,
    KeyStoreIOError,
    KeyStoreParseError,
)
from collaborative_intelligence.models.keystore import KeyScope, KeyStore
from collaborative_intelligence.services.key_store_service import KeyStoreFile

logger = logging.getLogger(__name__)


def env_var_name(service: str, key_name: str, environment: str | None = None) -> str:
    """Build the override variable name for a key.

    Separators inside the names are preserved; only case changes.

    Args:
        service: Service name (e.g., openai)
        key_name: Key name (e.g., api_key)
        environment: Optional environment name (e.g., staging)

    Returns:
        Variable name such as OPENAI_API_KEY or STAGING_OPENAI_API_KEY
    """
    parts = [service.upper(), key_name.upper()]
    if environment:
        parts.insert(0, environment.upper())
    return "_".join(parts)


def mask_key(secret: str) -> str:
    """Get a display-safe version of a secret.

    Secrets of 8 characters or fewer become ``****``. Longer secrets keep
    their first and last 4 characters around ``****``, so the output length
    is the same for every long secret.

    Args:
        secret: Secret value

    Returns:
        Masked representation
    """
    if len(secret) <= MASK_MIN_REVEAL_LENGTH:
        return MASK_PLACEHOLDER
    return f"{secret[:MASK_VISIBLE_CHARS]}{MASK_PLACEHOLDER}{secret[-MASK_VISIBLE_CHARS:]}"


@dataclass(frozen=True)
class MaskedKey:
    """One row of a masked key listing."""

    key_name: str
    environment: str | None
    masked_value: str | None  # None when the value could not be resolved


class KeyResolver:
    """Resolve, store and remove API keys across scopes."""

    def __init__(
        self,
        global_path: Path | None = None,
        project_root: Path | None = None,
        environ: Mapping[str, str] | None = None,
        settings: KeyStoreSettings | None = None,
    ):
        """Initialize key resolver.

        Args:
            global_path: Global keys.toml (defaults to CI_KEYS_PATH or the user config dir)
            project_root: Directory to start project store discovery from (defaults to cwd)
            environ: Environment variable mapping (defaults to os.environ)
            settings: Key store settings (defaults to environment-derived settings)
        """
        self._global_path = global_path
        self.project_root = project_root
        self.environ = environ if environ is not None else os.environ
        self.settings = settings or get_key_store_settings()

    # =========================================================================
    # Store access
    # =========================================================================

    @property
    def global_path(self) -> Path:
        """Path to the global key store.

        Raises:
            ConfigDirUnavailableError: If no user config directory is available
        """
        if self._global_path is None:
            self._global_path = get_global_keys_path()
        return self._global_path

    def global_store_file(self) -> KeyStoreFile:
        """Get the global (user) key store file."""
        return KeyStoreFile(self.global_path, self.settings)

    def project_store_file(self) -> KeyStoreFile | None:
        """Get the closest project key store file, if one exists."""
        project_path = find_project_keys_path(self.project_root)
        if project_path is None:
            return None
        return KeyStoreFile(project_path, self.settings)

    def _load_global(self) -> KeyStore:
        return self.global_store_file().read()

    def _load_project(self) -> KeyStore | None:
        store_file = self.project_store_file()
        if store_file is None:
            return None

        try:
            return store_file.read()
        except (KeyStoreIOError, KeyStoreParseError) as e:
            # Secondary layer: a broken project file must not hide global keys
            logger.debug(f"Ignoring unreadable project key store {store_file.path}: {e}")
            return None

    def _from_env(self, name: str) -> str | None:
        value = self.environ.get(name)
        if value is not None:
            logger.debug(f"Using environment variable {name}")
        return value

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, service: str, key_name: str) -> str:
        """Get an API key.

        Args:
            service: Service name
            key_name: Key name

        Returns:
            Secret value from the highest-precedence layer that defines it

        Raises:
            KeyNotFoundError: If no layer defines the key
            KeyStoreIOError: If the global store cannot be read
            KeyStoreParseError: If the global store is malformed
        """
        value = self._from_env(env_var_name(service, key_name))
        if value is not None:
            return value

        value = self._load_global().get_service_key(service, key_name)
        if value is not None:
            return value

        project_store = self._load_project()
        if project_store is not None:
            value = project_store.get_service_key(service, key_name)
            if value is not None:
                logger.debug(f"Resolved {service}.{key_name} from project store")
                return value

        raise KeyNotFoundError(service, key_name)

    def get_for_environment(self, service: str, key_name: str, environment: str) -> str:
        """Get an API key for a specific environment.

        Falls back to :meth:`get` when no environment-specific value exists.

        Raises:
            KeyNotFoundError: If no layer defines the key
            KeyStoreIOError: If the global store cannot be read
            KeyStoreParseError: If the global store is malformed
        """
        value = self._from_env(env_var_name(service, key_name, environment))
        if value is not None:
            return value

        value = self._load_global().get_environment_key(environment, service, key_name)
        if value is not None:
            return value

        try:
            return self.get(service, key_name)
        except KeyNotFoundError:
            raise KeyNotFoundError(service, key_name, environment) from None

    def resolve(self, service: str, key_name: str, environment: str | None = None) -> str:
        """Get a key, honouring the environment when one is given."""
        if environment:
            return self.get_for_environment(service, key_name, environment)
        return self.get(service, key_name)

    def has_key(self, service: str, key_name: str) -> bool:
        """Check whether :meth:`get` would succeed. Never raises.

        Args:
            service: Service name
            key_name: Key name

        Returns:
            True if any layer defines the key
        """
        if env_var_name(service, key_name) in self.environ:
            return True

        try:
            if self._load_global().get_service_key(service, key_name) is not None:
                return True
        except KeyStoreError as e:
            logger.debug(f"Global key store unavailable while checking {service}.{key_name}: {e}")

        project_store = self._load_project()
        return project_store is not None and project_store.get_service_key(service, key_name) is not None

    @staticmethod
    def mask(secret: str) -> str:
        """Get a display-safe version of a secret. See :func:`mask_key`."""
        return mask_key(secret)

    # =========================================================================
    # Mutation
    # =========================================================================

    def set_key(
        self,
        service: str,
        key_name: str,
        value: str,
        environment: str | None = None,
        project: bool = False,
    ) -> KeyScope:
        """Store an API key in the selected scope.

        Args:
            service: Service name
            key_name: Key name
            value: Secret value
            environment: Store as an environment-scoped key in the global store
            project: Store in <project_root>/.ci/keys.toml instead of the global store

        Returns:
            The scope the key was written to

        Raises:
            ValueError: If both environment and project are given
            KeyStoreIOError: If the store cannot be written
            KeyStoreParseError: If the existing store is malformed
        """
        if environment and project:
            raise ValueError("A key can be environment-scoped or project-scoped, not both")

        if project:
            project_dir = self.project_root or Path.cwd()
            store_file = KeyStoreFile(get_project_keys_path(project_dir), self.settings)
            with store_file.transaction() as store:
                store.set_service_key(service, key_name, value)
            logger.info(f"Stored project key {service}.{key_name} in {store_file.path}")
            return KeyScope.PROJECT

        store_file = self.global_store_file()
        with store_file.transaction() as store:
            if environment:
                store.set_environment_key(environment, service, key_name, value)
            else:
                store.set_service_key(service, key_name, value)

        scope = KeyScope.ENVIRONMENT if environment else KeyScope.GLOBAL
        logger.info(f"Stored {scope.value} key {service}.{key_name} in {store_file.path}")
        return scope

    def remove_key(self, service: str, key_name: str, environment: str | None = None) -> bool:
        """Remove an API key from the global store.

        Args:
            service: Service name
            key_name: Key name
            environment: Remove the environment-scoped key instead of the plain one

        Returns:
            True if a key was removed, False if it was not stored

        Raises:
            KeyStoreIOError: If the store cannot be written
            KeyStoreParseError: If the existing store is malformed
        """
        store_file = self.global_store_file()
        with store_file.transaction() as store:
            if environment:
                removed = store.remove_environment_key(environment, service, key_name)
            else:
                removed = store.remove_service_key(service, key_name)

        logger.info(f"Remove {service}.{key_name} from {store_file.path}: removed={removed}")
        return removed

    # =========================================================================
    # Listing / export
    # =========================================================================

    def list_keys(self) -> dict[str, list[str]]:
        """List key descriptors stored in the global store.

        Raises:
            KeyStoreIOError: If the global store cannot be read
            KeyStoreParseError: If the global store is malformed
        """
        return self._load_global().list()

    def masked_listing(self) -> dict[str, list[MaskedKey]]:
        """List stored keys with masked values, grouped by service.

        Values resolve through the normal precedence chain, so an environment
        variable override is what gets masked.
        """
        listing: dict[str, list[MaskedKey]] = {}
        for service, environment, key_name in self._load_global().entries():
            try:
                masked: str | None = self.mask(self.resolve(service, key_name, environment))
            except KeyNotFoundError:
                masked = None
            listing.setdefault(service, []).append(MaskedKey(key_name, environment, masked))
        return listing

    def export_lines(self) -> list[str]:
        """Build shell ``export`` lines for every plain stored key.

        Environment-scoped keys are skipped.

        Returns:
            Lines like ``export OPENAI_API_KEY="sk-..."``
        """
        lines = []
        for service, environment, key_name in self._load_global().entries():
            if environment is not None:
                continue
            try:
                value = self.get(service, key_name)
            except KeyNotFoundError:
                continue
            escaped = (
                value.replace("\\", "\\\\")
                .replace('"', '\\"')
                .replace("$", "\\$")
                .replace("`", "\\`")
            )
            lines.append(f'export {env_var_name(service, key_name)}="{escaped}"')
        return lines


def get_key_resolver(project_root: Path | None = None) -> KeyResolver:
    """Get a KeyResolver instance.

    Args:
        project_root: Directory to start project store discovery from (defaults to cwd)

    Returns:
        KeyResolver instance
    """
    return KeyResolver(project_root=project_root)
