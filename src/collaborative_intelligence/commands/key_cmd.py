"""API key management commands for ci.

Commands for storing, inspecting, removing and exporting API keys.
"""

import logging
from typing import NoReturn

import typer
from rich.markup import escape

from collaborative_intelligence.config.messages import (
    ERROR_MESSAGES,
    INFO_MESSAGES,
    KEY_HELP,
    SUCCESS_MESSAGES,
    WARNING_MESSAGES,
)
from collaborative_intelligence.constants import SERVICE_USAGE_HINTS
from collaborative_intelligence.errors import KeyNotFoundError, KeyStoreError
from collaborative_intelligence.models.keystore import KeyScope
from collaborative_intelligence.services.key_resolver import env_var_name, get_key_resolver
from collaborative_intelligence.utils import (
    get_console,
    print_error,
    print_info,
    print_status,
    print_success,
    print_warning,
)

logger = logging.getLogger(__name__)

console = get_console()

key_app = typer.Typer(
    name="key",
    help=KEY_HELP,
    no_args_is_help=True,
)


def _fail(error: KeyStoreError) -> NoReturn:
    """Report a key store failure and exit non-zero."""
    print_error(escape(str(error)))
    raise typer.Exit(code=1)


def _print_usage_hints(service: str, key_name: str) -> None:
    """Show how to use a freshly stored key."""
    hints = SERVICE_USAGE_HINTS.get(service.lower())
    if hints:
        print_info(INFO_MESSAGES["service_usage"].format(display=escape(service.capitalize())))
        for hint in hints:
            print_status(hint)
        return

    print_info(INFO_MESSAGES["generic_usage"])
    print_status(
        escape(
            INFO_MESSAGES["generic_usage_command"].format(
                env_var=env_var_name(service, key_name),
                service=service,
                key_name=key_name,
            )
        )
    )


@key_app.command("list")
def key_list() -> None:
    """List all stored API keys with masked values."""
    resolver = get_key_resolver()
    try:
        listing = resolver.masked_listing()
    except KeyStoreError as e:
        _fail(e)

    if not listing:
        print_warning(WARNING_MESSAGES["no_keys"])
        console.print(f"\n{INFO_MESSAGES['set_key_hint']}", highlight=False)
        return

    print_info(INFO_MESSAGES["configured_keys"])

    for service, rows in listing.items():
        console.print(f"\n[bold]{escape(service.upper())}[/bold]")
        for row in rows:
            label = f"[bold]{escape(row.key_name)}[/bold]"
            if row.environment is not None:
                label += f" [cyan]\\[{escape(row.environment)} environment][/cyan]"
            value = (
                f"[dim]{escape(row.masked_value)}[/dim]"
                if row.masked_value is not None
                else "[red](error)[/red]"
            )
            console.print(f"  {label}: {value}", highlight=False)

    console.print()
    print_info(INFO_MESSAGES["keys_masked"])


@key_app.command("set")
def key_set(
    service: str = typer.Argument(..., help="Service name (e.g., openai, anthropic)"),
    key_name: str = typer.Argument(..., help="Key name (e.g., api_key, access_token)"),
    key_value: str = typer.Argument(..., help="Key value"),
    env: str | None = typer.Option(
        None, "--env", "-e", help="Environment (optional, e.g., dev, prod)"
    ),
    project: bool = typer.Option(
        False, "--project", "-p", help="Store key in project-specific config (.ci/keys.toml)"
    ),
) -> None:
    """Store an API key.

    Examples:
        ci key set openai api_key sk-abcdef123456
        ci key set openai api_key sk-staging --env staging
        ci key set github token ghp_xxx --project
    """
    if env and project:
        print_error(ERROR_MESSAGES["env_and_project"])
        raise typer.Exit(code=2)

    resolver = get_key_resolver()
    try:
        scope = resolver.set_key(service, key_name, key_value, environment=env, project=project)
    except KeyStoreError as e:
        _fail(e)

    names = {"service": escape(service), "key_name": escape(key_name)}
    if scope is KeyScope.ENVIRONMENT:
        print_success(
            SUCCESS_MESSAGES["key_set_environment"].format(environment=escape(env or ""), **names)
        )
    elif scope is KeyScope.PROJECT:
        print_success(SUCCESS_MESSAGES["key_set_project"].format(**names))
    else:
        print_success(SUCCESS_MESSAGES["key_set"].format(**names))

    _print_usage_hints(service, key_name)


# `add` is the name older releases used for `set`
key_app.command("add", hidden=True)(key_set)


@key_app.command("get")
def key_get(
    service: str = typer.Argument(..., help="Service name"),
    key_name: str = typer.Argument("api_key", help="Key name"),
    env: str | None = typer.Option(None, "--env", "-e", help="Environment (optional)"),
) -> None:
    """Print a key's raw value, for use in scripts.

    Examples:
        export OPENAI_API_KEY=$(ci key get openai api_key)
        ci key get openai api_key --env staging
    """
    resolver = get_key_resolver()
    try:
        value = resolver.resolve(service, key_name, env)
    except KeyNotFoundError:
        print_error(
            escape(ERROR_MESSAGES["key_not_found"].format(service=service, key_name=key_name))
        )
        print_info(INFO_MESSAGES["set_key_hint"])
        raise typer.Exit(code=1) from None
    except KeyStoreError as e:
        _fail(e)

    # Unformatted so the value can be captured by the shell
    typer.echo(value)


@key_app.command("remove")
def key_remove(
    service: str = typer.Argument(..., help="Service name"),
    key_name: str = typer.Argument(..., help="Key name"),
    env: str | None = typer.Option(None, "--env", "-e", help="Environment (optional)"),
) -> None:
    """Remove an API key from the user key store.

    Reports whether the key existed; a missing key is not an error.
    """
    resolver = get_key_resolver()
    try:
        removed = resolver.remove_key(service, key_name, environment=env)
    except KeyStoreError as e:
        _fail(e)

    names = {"service": escape(service), "key_name": escape(key_name)}
    if removed and env:
        print_success(SUCCESS_MESSAGES["key_removed_environment"].format(environment=escape(env), **names))
    elif removed:
        print_success(SUCCESS_MESSAGES["key_removed"].format(**names))
    elif env:
        print_warning(WARNING_MESSAGES["key_not_found_environment"].format(environment=escape(env), **names))
    else:
        print_warning(WARNING_MESSAGES["key_not_found"].format(**names))


@key_app.command("export")
def key_export() -> None:
    """Print export statements for stored keys.

    Environment-scoped keys are skipped. Load them into a shell with:
        eval "$(ci key export)"
    """
    resolver = get_key_resolver()
    try:
        lines = resolver.export_lines()
    except KeyStoreError as e:
        _fail(e)

    for line in lines:
        typer.echo(line)
