"""Main CLI entry point for ci."""

import sys
from pathlib import Path

import typer
from dotenv import load_dotenv

from collaborative_intelligence.commands.key_cmd import key_app
from collaborative_intelligence.config.messages import HELP_TEXT, PROJECT_NAME, PROJECT_TAGLINE
from collaborative_intelligence.config.settings import get_logging_settings
from collaborative_intelligence.constants import VERSION
from collaborative_intelligence.utils import get_console, print_error, print_panel
from collaborative_intelligence.utils.logging_config import configure_logging

# Load .env file from current directory if it exists
load_dotenv(Path.cwd() / ".env", verbose=False)

# Create main Typer app
app = typer.Typer(
    name="ci",
    help=PROJECT_TAGLINE,
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# Add command groups
app.add_typer(key_app, name="key")

# Create console for output
console = get_console()


@app.command("version")
def version() -> None:
    """Show version information."""
    print_panel(
        f"[bold cyan]ci[/bold cyan] ({PROJECT_NAME}) version [green]{VERSION}[/green]\n\n"
        f"{PROJECT_TAGLINE}",
        title="Version",
        style="cyan",
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version information",
        is_eager=True,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show debug logging and tracebacks",
    ),
) -> None:
    """Collaborative Intelligence - AI agent configuration and API keys.

    Get started:
        ci key set openai api_key sk-...   # Store a key
        ci key list                        # Show stored keys (masked)
        eval "$(ci key export)"            # Load keys into the shell
    """
    configure_logging("DEBUG" if debug else get_logging_settings().log_level)

    if version_flag:
        version()
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(HELP_TEXT)
        raise typer.Exit()


def cli_main() -> None:
    """Main entry point for the CLI.

    This is the function that gets called when running 'ci' command.
    It handles exceptions and provides user-friendly error messages.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        if isinstance(e, typer.Exit):
            sys.exit(e.exit_code)

        from rich.markup import escape

        from collaborative_intelligence.config.messages import ERROR_MESSAGES

        print_error(escape(ERROR_MESSAGES["generic_error"].format(error=str(e))))

        # Show traceback in debug mode
        if "--debug" in sys.argv:
            import traceback

            console.print("\n[dim]Traceback:[/dim]")
            traceback.print_exc()

        sys.exit(1)


if __name__ == "__main__":
    cli_main()
