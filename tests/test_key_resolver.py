"""Tests for KeyResolver precedence, masking, listing and export."""

import os
from pathlib import Path

import pytest

from collaborative_intelligence.config.settings import KeyStoreSettings
from collaborative_intelligence.errors import (
    KeyNotFoundError,
    KeyStoreParseError,
)
from collaborative_intelligence.models import KeyScope
from collaborative_intelligence.services.key_resolver import (
    KeyResolver,
    MaskedKey,
    env_var_name,
    mask_key,
)
from collaborative_intelligence.services.key_store_service import load_key_store

PROJECT_STORE = """\
[services.svc]
key = "project-value-123456"
only_in_project = "project-only-abcdef"
"""


@pytest.fixture
def environ() -> dict[str, str]:
    """Fake process environment passed to the resolver."""
    return {}


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project root without a key store yet."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def global_path(tmp_path: Path) -> Path:
    """Global key store location outside the project tree."""
    return tmp_path / "config" / "ci" / "keys.toml"


@pytest.fixture
def resolver(global_path: Path, project_dir: Path, environ: dict[str, str]) -> KeyResolver:
    """Resolver wired to temporary stores and a fake environment."""
    return KeyResolver(
        global_path=global_path,
        project_root=project_dir,
        environ=environ,
        settings=KeyStoreSettings(file_lock=False),
    )


def write_project_store(project_dir: Path, content: str = PROJECT_STORE) -> Path:
    """Write a project key store and return its path."""
    path = project_dir / ".ci" / "keys.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# =============================================================================
# Helpers
# =============================================================================

_ENV_NAME_CASES = [
    ("openai", "api_key", None, "OPENAI_API_KEY", "plain"),
    ("svc", "key", "staging", "STAGING_SVC_KEY", "environment prefix"),
    ("my-svc", "api.key", None, "MY-SVC_API.KEY", "separators preserved"),
]


@pytest.mark.parametrize(
    "service,key_name,environment,expected",
    [c[:4] for c in _ENV_NAME_CASES],
    ids=[c[4] for c in _ENV_NAME_CASES],
)
def test_env_var_name(service: str, key_name: str, environment: str | None, expected: str) -> None:
    """Override names upper-case every part and join with underscores."""
    assert env_var_name(service, key_name, environment) == expected


_MASK_CASES = [
    ("short", "****", "five chars fully hidden"),
    ("12345678", "****", "eight chars fully hidden"),
    ("", "****", "empty string"),
    ("123456789", "1234****6789", "nine chars"),
    ("1234567890", "1234****7890", "ten chars"),
    ("sk-abcdefghijklmnopq", "sk-a****nopq", "twenty chars"),
]


@pytest.mark.parametrize(
    "secret,expected",
    [(c[0], c[1]) for c in _MASK_CASES],
    ids=[c[2] for c in _MASK_CASES],
)
def test_mask_key(secret: str, expected: str) -> None:
    """Masking reveals at most four characters at each end."""
    assert mask_key(secret) == expected
    assert KeyResolver.mask(secret) == expected


def test_mask_length_is_constant_for_long_secrets() -> None:
    """Masked output does not grow with the secret."""
    assert len(mask_key("x" * 9)) == len(mask_key("x" * 200)) == 12


# =============================================================================
# get
# =============================================================================


def test_openai_scenario(resolver: KeyResolver) -> None:
    """set -> has_key -> list -> get -> remove -> get fails."""
    assert resolver.set_key("openai", "api_key", "sk-test123456789") is KeyScope.GLOBAL

    assert resolver.has_key("openai", "api_key") is True
    assert resolver.list_keys() == {"openai": ["api_key"]}
    assert resolver.get("openai", "api_key") == "sk-test123456789"
    assert resolver.remove_key("openai", "api_key") is True

    with pytest.raises(KeyNotFoundError) as exc_info:
        resolver.get("openai", "api_key")
    assert exc_info.value.service == "openai"
    assert exc_info.value.key_name == "api_key"


def test_env_var_beats_stored_value(resolver: KeyResolver, environ: dict[str, str]) -> None:
    """SERVICE_KEY in the environment wins over the global store."""
    resolver.set_key("svc", "key", "stored-value")
    environ["SVC_KEY"] = "from-env"

    assert resolver.get("svc", "key") == "from-env"


def test_env_var_alone_satisfies_get(resolver: KeyResolver, environ: dict[str, str]) -> None:
    """No store file is needed when the environment supplies the key."""
    environ["SVC_KEY"] = "from-env"

    assert resolver.get("svc", "key") == "from-env"
    assert resolver.has_key("svc", "key") is True


def test_global_store_beats_project_store(resolver: KeyResolver, project_dir: Path) -> None:
    """The project store only fills keys the global store lacks."""
    write_project_store(project_dir)
    resolver.set_key("svc", "key", "global-value")

    assert resolver.get("svc", "key") == "global-value"
    assert resolver.get("svc", "only_in_project") == "project-only-abcdef"


def test_project_store_found_from_subdirectory(
    global_path: Path, project_dir: Path, environ: dict[str, str]
) -> None:
    """Discovery walks up from nested directories to the closest .ci/keys.toml."""
    write_project_store(project_dir)
    nested = project_dir / "src" / "pkg"
    nested.mkdir(parents=True)
    resolver = KeyResolver(
        global_path=global_path,
        project_root=nested,
        environ=environ,
        settings=KeyStoreSettings(file_lock=False),
    )

    assert resolver.get("svc", "key") == "project-value-123456"


def test_closest_project_store_wins(
    global_path: Path, project_dir: Path, environ: dict[str, str]
) -> None:
    """A nested project store shadows one further up the tree."""
    write_project_store(project_dir)
    inner = project_dir / "inner"
    write_project_store(inner, '[services.svc]\nkey = "inner-value"\n')
    resolver = KeyResolver(
        global_path=global_path,
        project_root=inner,
        environ=environ,
        settings=KeyStoreSettings(file_lock=False),
    )

    assert resolver.get("svc", "key") == "inner-value"
    with pytest.raises(KeyNotFoundError):
        resolver.get("svc", "only_in_project")


def test_corrupt_project_store_is_ignored(resolver: KeyResolver, project_dir: Path) -> None:
    """A broken project file does not break access to global keys."""
    write_project_store(project_dir, "this is = not [toml")
    resolver.set_key("svc", "key", "global-value")

    assert resolver.get("svc", "key") == "global-value"
    with pytest.raises(KeyNotFoundError):
        resolver.get("svc", "missing")
    assert resolver.has_key("svc", "missing") is False


def test_corrupt_global_store_propagates(resolver: KeyResolver, global_path: Path) -> None:
    """The authoritative layer reports its parse failure."""
    global_path.parent.mkdir(parents=True)
    global_path.write_text("this is = not [toml", encoding="utf-8")

    with pytest.raises(KeyStoreParseError) as exc_info:
        resolver.get("svc", "key")
    assert exc_info.value.path == global_path


def test_has_key_never_raises_on_corrupt_global(
    resolver: KeyResolver, global_path: Path, project_dir: Path
) -> None:
    """has_key still consults the other layers when the global store is broken."""
    global_path.parent.mkdir(parents=True)
    global_path.write_text("this is = not [toml", encoding="utf-8")
    write_project_store(project_dir)

    assert resolver.has_key("svc", "key") is True
    assert resolver.has_key("svc", "missing") is False


@pytest.mark.skipif(os.name != "posix", reason="the working directory can only be removed on POSIX")
def test_deleted_working_directory_skips_project_layer(
    tmp_path: Path,
    global_path: Path,
    environ: dict[str, str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Lookups still consult the global store when cwd no longer exists."""
    resolver = KeyResolver(
        global_path=global_path,
        environ=environ,
        settings=KeyStoreSettings(file_lock=False),
    )
    resolver.set_key("svc", "key", "global-value")
    doomed = tmp_path / "doomed"
    doomed.mkdir()
    monkeypatch.chdir(doomed)
    doomed.rmdir()

    assert resolver.has_key("svc", "key") is True
    assert resolver.has_key("svc", "missing") is False
    assert resolver.get("svc", "key") == "global-value"
    with pytest.raises(KeyNotFoundError):
        resolver.get("svc", "missing")


def test_read_paths_do_not_create_files(resolver: KeyResolver, global_path: Path) -> None:
    """Lookups and listings never write to disk."""
    with pytest.raises(KeyNotFoundError):
        resolver.get("svc", "key")
    resolver.has_key("svc", "key")
    resolver.list_keys()

    assert not global_path.parent.exists()


# =============================================================================
# get_for_environment
# =============================================================================


def test_environment_value_preferred(resolver: KeyResolver) -> None:
    """An environment-scoped key wins over the plain key."""
    resolver.set_key("svc", "key", "plain-value")
    resolver.set_key("svc", "key", "dev-value", environment="dev")

    assert resolver.get_for_environment("svc", "key", "dev") == "dev-value"


def test_environment_fallback_matches_get(
    resolver: KeyResolver, environ: dict[str, str], project_dir: Path
) -> None:
    """Without an environment value, the result is exactly what get returns."""
    write_project_store(project_dir)
    resolver.set_key("svc", "key", "plain-value")

    assert resolver.get_for_environment("svc", "key", "dev") == resolver.get("svc", "key")
    assert resolver.get_for_environment("svc", "only_in_project", "dev") == resolver.get(
        "svc", "only_in_project"
    )

    environ["SVC_KEY"] = "from-env"
    assert resolver.get_for_environment("svc", "key", "dev") == "from-env"


def test_environment_env_var_wins(resolver: KeyResolver, environ: dict[str, str]) -> None:
    """ENV_SERVICE_KEY beats both the stored environment key and SERVICE_KEY."""
    resolver.set_key("svc", "key", "dev-value", environment="dev")
    environ["SVC_KEY"] = "plain-env"
    environ["DEV_SVC_KEY"] = "dev-env"

    assert resolver.get_for_environment("svc", "key", "dev") == "dev-env"


def test_environment_not_found(resolver: KeyResolver) -> None:
    """A miss across every layer names the environment too."""
    with pytest.raises(KeyNotFoundError) as exc_info:
        resolver.get_for_environment("svc", "key", "prod")

    assert exc_info.value.environment == "prod"


def test_staging_scenario(resolver: KeyResolver) -> None:
    """Removing the plain key leaves the environment-scoped key retrievable."""
    resolver.set_key("svc", "key", "plain-value")
    resolver.set_key("svc", "key", "staging-value", environment="staging")

    assert resolver.remove_key("svc", "key") is True

    assert resolver.get_for_environment("svc", "key", "staging") == "staging-value"
    assert resolver.has_key("svc", "key") is False


# =============================================================================
# set / remove
# =============================================================================


def test_set_project_key_writes_project_store(
    resolver: KeyResolver, project_dir: Path, global_path: Path
) -> None:
    """--project keys go to <project>/.ci/keys.toml, never the global file."""
    scope = resolver.set_key("svc", "key", "project-value", project=True)

    assert scope is KeyScope.PROJECT
    project_store = load_key_store(project_dir / ".ci" / "keys.toml")
    assert project_store.services == {"svc": {"key": "project-value"}}
    assert not global_path.exists()
    assert resolver.get("svc", "key") == "project-value"


def test_set_environment_key_scope(resolver: KeyResolver, global_path: Path) -> None:
    """Environment keys live in the global store's environments map."""
    assert resolver.set_key("svc", "key", "v", environment="dev") is KeyScope.ENVIRONMENT

    assert load_key_store(global_path).environments == {"dev": {"svc": {"key": "v"}}}


def test_set_rejects_environment_and_project(resolver: KeyResolver) -> None:
    """A key cannot be both environment- and project-scoped."""
    with pytest.raises(ValueError):
        resolver.set_key("svc", "key", "v", environment="dev", project=True)


def test_remove_twice(resolver: KeyResolver) -> None:
    """Second removal reports that nothing was removed."""
    resolver.set_key("svc", "key", "value")

    assert resolver.remove_key("svc", "key") is True
    assert resolver.remove_key("svc", "key") is False


def test_remove_environment_key(resolver: KeyResolver) -> None:
    """Environment removal leaves the plain key alone."""
    resolver.set_key("svc", "key", "plain-value")
    resolver.set_key("svc", "key", "dev-value", environment="dev")

    assert resolver.remove_key("svc", "key", environment="dev") is True
    assert resolver.list_keys() == {"svc": ["key"]}


# =============================================================================
# listing / export
# =============================================================================


def test_masked_listing(resolver: KeyResolver) -> None:
    """Rows carry key names, environments and masked values only."""
    resolver.set_key("openai", "api_key", "sk-abcdefghijklmnopq")
    resolver.set_key("openai", "api_key", "short", environment="dev")

    listing = resolver.masked_listing()

    assert listing == {
        "openai": [
            MaskedKey("api_key", None, "sk-a****nopq"),
            MaskedKey("api_key", "dev", "****"),
        ]
    }


def test_export_lines_skip_environment_keys(resolver: KeyResolver) -> None:
    """Only plain keys are exported."""
    resolver.set_key("openai", "api_key", "sk-test123456789")
    resolver.set_key("svc", "key", "staging-value", environment="staging")

    assert resolver.export_lines() == ['export OPENAI_API_KEY="sk-test123456789"']


def test_export_escapes_shell_metacharacters(resolver: KeyResolver) -> None:
    """Values cannot break out of the double-quoted export."""
    resolver.set_key("svc", "key", 'a"b$c`d\\e')

    assert resolver.export_lines() == ['export SVC_KEY="a\\"b\\$c\\`d\\\\e"']


def test_export_uses_env_override(resolver: KeyResolver, environ: dict[str, str]) -> None:
    """Export resolves through the normal precedence chain."""
    resolver.set_key("svc", "key", "stored-value")
    environ["SVC_KEY"] = "override"

    assert resolver.export_lines() == ['export SVC_KEY="override"']


def test_export_keeps_key_names_with_separator(resolver: KeyResolver) -> None:
    """A colon in a plain key name does not turn it into an environment key."""
    resolver.set_key("svc", "db:password", "secret-value-123")

    assert resolver.export_lines() == ['export SVC_DB:PASSWORD="secret-value-123"']


def test_masked_listing_keeps_key_names_with_separator(resolver: KeyResolver) -> None:
    """Plain and environment rows keep their names when they contain a colon."""
    resolver.set_key("svc", "db:password", "secret-value-123")
    resolver.set_key("svc", "token", "eu-token-value-99", environment="eu:west")

    assert resolver.masked_listing() == {
        "svc": [
            MaskedKey("db:password", None, "secr****-123"),
            MaskedKey("token", "eu:west", "eu-t****e-99"),
        ]
    }
