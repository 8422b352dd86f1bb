"""Exception hierarchy for brewcoffee.

This module defines the exception classes used throughout brewcoffee:
- BrewError: Base exception for all brewcoffee errors
- ConfigurationError: Invalid options detected before any compile work
- CompileError: The embedded compiler rejected a source file
- InternalContractViolation: The embedded compiler broke its result contract
- EngineLoadError: The compiler script could not be loaded
- MinifierError: The external minifier could not be configured

User-facing messages are safe to display. Technical details are logged
through structlog and never shown on the console.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class BrewError(Exception):
    """Base exception for brewcoffee.

    Args:
        user_message: Message to display to the user.
        internal_details: Optional technical details, logged but not shown.

    Example:
        >>> raise BrewError(
        ...     "Cannot load compiler",
        ...     internal_details="SyntaxError at coffeescript.js:1"
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize BrewError with user message and optional internal details.

        Args:
            user_message: Message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "brew_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class ConfigurationError(BrewError):
    """Raised when command-line or minifier configuration is invalid.

    Always raised at startup, before any source file is processed.

    Attributes:
        option: Name of the offending option (if known).

    Example:
        >>> raise ConfigurationError("Bad Closure Compiler options", option="--closure")
        # User sees: "Bad Closure Compiler options (option '--closure')"
    """

    def __init__(
        self,
        user_message: str,
        *,
        option: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize ConfigurationError with the option name.

        Args:
            user_message: Message to display to the user.
            option: Option that carried the invalid value.
            internal_details: Technical details for internal logging only.
        """
        full_message = f"{user_message} (option '{option}')" if option else user_message
        super().__init__(full_message, internal_details=internal_details)
        self.option = option


class CompileError(BrewError):
    """Raised when the embedded compiler reports a translation error.

    The message is the compiler's own error text, unmodified.

    Attributes:
        source: Path of the source file that failed to compile.
    """

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class InternalContractViolation(BrewError):
    """Raised when the embedded compiler reports success but omits results.

    This is fatal: the compiler is expected to return code (and a source
    map when one was requested) whenever it reports no error.
    """

    pass


class EngineLoadError(BrewError):
    """Raised when the compiler script cannot be read or evaluated."""

    pass


class MinifierError(ConfigurationError):
    """Raised when the minifier option string cannot be parsed.

    Runtime minifier failures are never raised; they are logged as warnings.
    """

    pass
