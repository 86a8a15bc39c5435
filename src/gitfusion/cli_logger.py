"""Console output for the gitfusion CLI.

Status messages often carry user-supplied text (URLs, entry ids, repo
names), so their message part is escaped and never read as rich markup.
Only ``info`` accepts markup.
"""

from rich.console import Console
from rich.markup import escape

_console = Console()


def _status(prefix: str, message: str) -> None:
    _console.print(f"{prefix} {escape(message)}")


def success(message: str) -> None:
    """Print a success message with green checkmark."""
    _status("[green]✓[/green]", message)


def error(message: str) -> None:
    """Print an error message with red X."""
    _status("[red]✗[/red]", message)


def warning(message: str) -> None:
    """Print a warning message with yellow exclamation."""
    _status("[yellow]![/yellow]", message)


def info(message: str) -> None:
    """Print an info message (no prefix, markup allowed)."""
    _console.print(message)


def dim(message: str) -> None:
    """Print a dimmed message (for secondary info)."""
    _console.print(f"[dim]{escape(message)}[/dim]")


def stream(line: str) -> None:
    """Print a line of git output exactly as received."""
    _console.print(line, end="", markup=False, highlight=False, soft_wrap=True)
