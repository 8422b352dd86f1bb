"""CLI error handling for brewcoffee.

Wraps brewcoffee exceptions into click exceptions with user-friendly
messages and exit codes.
"""

from __future__ import annotations

import sys
from typing import NoReturn

import click

from brewcoffee.cli.output import error
from brewcoffee.errors import (
    BrewError,
    ConfigurationError,
    EngineLoadError,
    InternalContractViolation,
)

# Exit codes following sysexits.h convention
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Compile failures, bad options
EXIT_SYSTEM_ERROR = 2  # Compiler contract violations, engine load failures


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(self.format_message())


def exit_code_for(err: BrewError) -> int:
    """Map a brewcoffee exception to a CLI exit code."""
    if isinstance(err, (InternalContractViolation, EngineLoadError)):
        return EXIT_SYSTEM_ERROR
    return EXIT_USER_ERROR


def to_cli_error(err: BrewError) -> CLIError:
    """Convert a brewcoffee exception into a CLIError.

    Example:
        >>> to_cli_error(ConfigurationError("Bad Closure Compiler options")).exit_code
        1
    """
    prefix = "Configuration error" if isinstance(err, ConfigurationError) else "Error"
    return CLIError(f"{prefix}: {err.user_message}", exit_code=exit_code_for(err))


def exit_with_error(message: str, exit_code: int = EXIT_USER_ERROR) -> NoReturn:
    """Exit the CLI with an error message.

    Note:
        This function never returns - it always calls sys.exit().
    """
    error(message)
    sys.exit(exit_code)
