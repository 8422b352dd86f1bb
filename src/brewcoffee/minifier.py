"""Closure Compiler hand-off.

The minifier is an external program that turns one JavaScript file into
another. brewcoffee owns the input and output file arguments; the user's
option string only contributes the remaining flags.

Usage:
    >>> minifier = ClosureMinifier.from_options('-O ADVANCED --js ignored.js')
    >>> minifier.options
    '-O ADVANCED'
    >>> minifier.run(Path("build/app.js.tmp"), Path("build/app.js"))
    True
"""

from __future__ import annotations

import re
import shlex
import subprocess
from pathlib import Path
from typing import Protocol

import structlog

from brewcoffee.config import DEFAULT_CLOSURE_COMMAND
from brewcoffee.errors import MinifierError

logger = structlog.get_logger(__name__)

OPT_SOURCE_JS = "--js"
OPT_OUTPUT_JS = "--js_output_file"
_RESERVED_FLAGS = (OPT_SOURCE_JS, OPT_OUTPUT_JS)

# A token is a double-quoted string (no escapes) or a run of non-whitespace
# that does not start with a quote. Tokens are separated by whitespace.
_TOKEN = r'"[^"]*"|[^\s"]\S*'
_OPTIONS_PATTERN = re.compile(rf"(?:{_TOKEN})(?:\s+(?:{_TOKEN}))*", re.DOTALL)
_TOKEN_PATTERN = re.compile(_TOKEN)


class Minifier(Protocol):
    """Transforms code file A into code file B."""

    def run(self, source: Path, output: Path) -> bool: ...


def parse_options(options: str | None) -> list[str]:
    """Split a Closure Compiler option string into tokens.

    Quoted tokens lose their surrounding quotes. The input and output file
    flags (and the value following each) are dropped.

    Args:
        options: Raw option string, may be None or empty.

    Returns:
        Filtered token list.

    Raises:
        MinifierError: If the string does not fully match the token grammar
            (for example an unterminated quote).

    Example:
        >>> parse_options('--js foo.js --js_output_file bar.js -O ADVANCED')
        ['-O', 'ADVANCED']
    """
    if options is None:
        return []
    text = options.strip()
    if not text:
        return []
    if _OPTIONS_PATTERN.fullmatch(text) is None:
        raise MinifierError(
            f"Bad Closure Compiler options: {options}",
            option="--closure",
        )

    tokens: list[str] = []
    skip_next = False
    for raw in _TOKEN_PATTERN.findall(text):
        if skip_next:
            skip_next = False
            continue
        if raw in _RESERVED_FLAGS:
            skip_next = True
            continue
        if raw.startswith(tuple(f"{flag}=" for flag in _RESERVED_FLAGS)):
            continue
        if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
            raw = raw[1:-1]
        tokens.append(raw)
    return tokens


class ClosureMinifier:
    """Runs the Closure Compiler as an external process.

    Attributes:
        args: User tokens passed after the input/output file arguments.
        command: Command line that starts the Closure Compiler.
    """

    def __init__(self, args: list[str], command: list[str] | None = None) -> None:
        self.args = list(args)
        self.command = list(command) if command else [DEFAULT_CLOSURE_COMMAND]
        self._log = logger.bind(minifier=self.command[0])

    @classmethod
    def from_options(
        cls,
        options: str | None,
        command: str = DEFAULT_CLOSURE_COMMAND,
    ) -> ClosureMinifier:
        """Create a minifier from the raw --closure option string.

        Args:
            options: Raw option string.
            command: Command line starting the Closure Compiler.

        Raises:
            MinifierError: If options or command cannot be parsed.
        """
        try:
            command_line = shlex.split(command)
        except ValueError as e:
            raise MinifierError(
                f"Bad Closure Compiler command: {command}", internal_details=str(e)
            ) from e
        if not command_line:
            raise MinifierError("Closure Compiler command is empty")
        return cls(parse_options(options), command_line)

    @property
    def options(self) -> str:
        """User tokens joined by spaces."""
        return " ".join(self.args)

    def build_args(self, source: Path, output: Path) -> list[str]:
        """Return the minifier arguments for one file (without the command)."""
        return [OPT_SOURCE_JS, str(source), OPT_OUTPUT_JS, str(output), *self.args]

    def run(self, source: Path, output: Path) -> bool:
        """Minify source into output.

        Args:
            source: Unminified JavaScript file.
            output: Final JavaScript file.

        Returns:
            True if the minifier exited with status 0.
        """
        argv = [*self.command, *self.build_args(source, output)]
        log = self._log.bind(source=str(source), output=str(output))
        log.debug("minifier_started", argv=argv)
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            log.error("minifier_not_started", error=str(e))
            return False

        if completed.returncode != 0:
            log.warning(
                "minifier_failed",
                returncode=completed.returncode,
                stderr=completed.stderr.strip(),
            )
            return False
        return True
