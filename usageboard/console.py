"""
Shared rich consoles for report output and diagnostics.
"""

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def warn(message: str) -> None:
    """Print a warning to stderr. Provider bodies may contain brackets, so escape."""
    err_console.print(f"[yellow]\\[warn][/] {escape(message)}")


def error(message: str) -> None:
    err_console.print(f"[red]{escape(message)}[/]")


def info(message: str) -> None:
    console.print(escape(message))
