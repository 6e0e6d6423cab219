"""Key store models for ci.

A key store holds secrets in two maps:

- ``services``: service -> key name -> value
- ``environments``: environment -> service -> key name -> value

The same schema is used for the global store and for project stores.
Mutations keep the nesting invariants: a (service, key name) pair holds at
most one value, and inner maps that become empty are pruned.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from collaborative_intelligence.constants import ENVIRONMENT_KEY_SEPARATOR


class KeyScope(str, Enum):
    """Scope a key is stored in."""

    GLOBAL = "global"
    PROJECT = "project"
    ENVIRONMENT = "environment"


class KeyMetadata(BaseModel):
    """Metadata about a key store."""

    last_updated: datetime | None = Field(
        default=None, description="When the store was last modified (UTC)"
    )
    description: str | None = Field(default=None, description="Free-form store description")

    def touch(self) -> None:
        """Stamp the store as modified now."""
        self.last_updated = datetime.now(UTC)


class KeyStore(BaseModel):
    """Layered secret map persisted to a single keys.toml file."""

    services: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Service-scoped keys (service -> key name -> value)",
    )
    environments: dict[str, dict[str, dict[str, str]]] = Field(
        default_factory=dict,
        description="Environment-scoped keys (environment -> service -> key name -> value)",
    )
    metadata: KeyMetadata = Field(default_factory=KeyMetadata, description="Store metadata")

    def is_empty(self) -> bool:
        """Check whether the store holds no keys at all."""
        return not self.services and not self.environments

    def get_service_key(self, service: str, key_name: str) -> str | None:
        """Look up a service-scoped key.

        Returns:
            Stored value, or None if absent
        """
        return self.services.get(service, {}).get(key_name)

    def get_environment_key(self, environment: str, service: str, key_name: str) -> str | None:
        """Look up an environment-scoped key.

        Returns:
            Stored value, or None if absent
        """
        return self.environments.get(environment, {}).get(service, {}).get(key_name)

    def set_service_key(self, service: str, key_name: str, value: str) -> None:
        """Insert or overwrite a service-scoped key.

        Args:
            service: Service name (e.g., openai)
            key_name: Key name (e.g., api_key)
            value: Secret value
        """
        self.services.setdefault(service, {})[key_name] = value
        self.metadata.touch()

    def set_environment_key(self, environment: str, service: str, key_name: str, value: str) -> None:
        """Insert or overwrite an environment-scoped key.

        Args:
            environment: Environment name (e.g., dev, staging)
            service: Service name
            key_name: Key name
            value: Secret value
        """
        self.environments.setdefault(environment, {}).setdefault(service, {})[key_name] = value
        self.metadata.touch()

    def remove_service_key(self, service: str, key_name: str) -> bool:
        """Remove a service-scoped key, pruning the service if it becomes empty.

        Returns:
            True if a key was present and removed, False otherwise
        """
        service_keys = self.services.get(service)
        if service_keys is None or key_name not in service_keys:
            return False

        del service_keys[key_name]
        if not service_keys:
            del self.services[service]

        self.metadata.touch()
        return True

    def remove_environment_key(self, environment: str, service: str, key_name: str) -> bool:
        """Remove an environment-scoped key.

        Prunes the service entry and then the environment entry when they
        become empty.

        Returns:
            True if a key was present and removed, False otherwise
        """
        env_services = self.environments.get(environment)
        if env_services is None:
            return False

        service_keys = env_services.get(service)
        if service_keys is None or key_name not in service_keys:
            return False

        del service_keys[key_name]
        if not service_keys:
            del env_services[service]
        if not env_services:
            del self.environments[environment]

        self.metadata.touch()
        return True

    def entries(self) -> list[tuple[str, str | None, str]]:
        """List every stored key as ``(service, environment, key_name)``.

        ``environment`` is None for service-scoped keys. Plain keys come first
        sorted by service and key name, then environment keys sorted by
        environment, service and key name.
        """
        result: list[tuple[str, str | None, str]] = [
            (service, None, key_name)
            for service in sorted(self.services)
            for key_name in sorted(self.services[service])
        ]
        for environment in sorted(self.environments):
            for service, keys in sorted(self.environments[environment].items()):
                result.extend((service, environment, key_name) for key_name in sorted(keys))
        return result

    def list(self) -> dict[str, list[str]]:
        """List key descriptors grouped by service.

        Service-scoped keys appear as their bare name; environment-scoped keys
        as ``"{environment}:{key_name}"``. Plain keys come first, each group
        sorted.

        Returns:
            Mapping of service name to key descriptors
        """
        result: dict[str, list[str]] = {}
        for service, environment, key_name in self.entries():
            descriptor = (
                key_name
                if environment is None
                else f"{environment}{ENVIRONMENT_KEY_SEPARATOR}{key_name}"
            )
            result.setdefault(service, []).append(descriptor)
        return result
