"""Rich console helpers for consistent terminal output."""

from rich.console import Console
from rich.panel import Panel

_console = Console()


def get_console() -> Console:
    """Get the shared console instance."""
    return _console


def print_success(message: str) -> None:
    """Print a success message with a green check mark."""
    _console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message in red."""
    _console.print(f"[red bold]Error:[/red bold] {message}")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    _console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an informational message."""
    _console.print(f"[blue]ℹ[/blue] {message}")


def print_status(message: str) -> None:
    """Print an indented status line (commands, usage hints)."""
    _console.print(f"  [cyan]{message}[/cyan]")


def print_panel(content: str, title: str | None = None, style: str = "cyan") -> None:
    """Print content inside a bordered panel.

    Args:
        content: Rich markup to display
        title: Optional panel title
        style: Border style
    """
    _console.print(Panel(content, title=title, border_style=style))
