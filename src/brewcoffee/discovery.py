"""Source file discovery for command-line arguments."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from brewcoffee.paths import is_source_file

logger = structlog.get_logger(__name__)


def _sorted_entries(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir())
    except OSError as e:
        logger.warning("directory_unreadable", directory=str(directory), error=str(e))
        return []


def collect_source_files(arguments: Iterable[Path | str]) -> list[Path]:
    """Expand arguments into the list of files to compile.

    Directories are walked depth-first in name order with an explicit
    stack, collecting files ending in .coffee, .litcoffee or .coffee.md.
    Any other argument is kept as given, whether or not it exists.

    Args:
        arguments: Files and directories from the command line.

    Returns:
        Source file paths in argument order.

    Example:
        >>> collect_source_files(["src", "extra/tool.coffee"])
        [PosixPath('src/a.coffee'), PosixPath('src/lib/b.litcoffee'), PosixPath('extra/tool.coffee')]
    """
    found: list[Path] = []
    for argument in arguments:
        path = Path(argument)
        if not path.is_dir():
            found.append(path)
            continue

        stack = list(reversed(_sorted_entries(path)))
        while stack:
            entry = stack.pop()
            if entry.is_dir():
                stack.extend(reversed(_sorted_entries(entry)))
            elif is_source_file(entry.name):
                found.append(entry)
    return found
