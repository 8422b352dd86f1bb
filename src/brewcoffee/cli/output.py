"""Rich console output for the brewcoffee command.

Progress and results go to stdout; errors and warnings go to stderr.
NO_COLOR and --no-color disable colors.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.markup import escape

# Rich respects NO_COLOR on its own; --no-color is handled by set_no_color().
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False, stderr: bool = False) -> Console:
    """Create a Rich Console with the current color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.
        stderr: Write to stderr instead of stdout.

    Returns:
        Configured Console instance.
    """
    disabled = no_color or _force_no_color
    return Console(
        force_terminal=False if disabled else None,
        no_color=disabled,
        stderr=stderr,
        highlight=False,
    )


console = create_console()
error_console = create_console(stderr=True)


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with a green checkmark.

    Example:
        >>> success("Compiled src/app.coffee")
        ✓ Compiled src/app.coffee
    """
    console.print(f"[green]✓[/green] {escape(message)}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message to stderr with a red X."""
    error_console.print(f"[red]✗[/red] {escape(message)}", **kwargs)


def compiler_error(message: str) -> None:
    """Print a compiler error message to stderr exactly as the compiler wrote it."""
    error_console.print(message, markup=False, soft_wrap=True)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message to stderr with a yellow triangle."""
    error_console.print(f"[yellow]⚠[/yellow] {escape(message)}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print an informational message.

    Example:
        >>> info("Watching 3 files for changes")
        Watching 3 files for changes
    """
    console.print(message, markup=False, **kwargs)


def set_no_color(no_color: bool) -> None:
    """Recreate the module consoles with colors enabled or disabled."""
    global console, error_console
    console = create_console(no_color=no_color)
    error_console = create_console(no_color=no_color, stderr=True)
