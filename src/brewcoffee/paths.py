"""Path helpers for compiled output and source map references.

Provides:
- relative_path: portable relative path between a directory and a file
- output_path_for: output file location derived from a source file
- is_literate: literate CoffeeScript detection by file name
"""

from __future__ import annotations

import os
from pathlib import Path

SOURCE_EXTENSIONS = (".coffee", ".litcoffee", ".coffee.md")
LITERATE_EXTENSIONS = (".litcoffee", ".coffee.md")

EXTENSION_JS = ".js"
EXTENSION_MAP = ".js.map"
EXTENSION_JS_TMP = ".js.tmp"


def relative_path(base_dir: str | os.PathLike[str], target_path: str | os.PathLike[str]) -> str:
    """Express target_path relative to base_dir, using '/' separators.

    The base directory is shortened one segment at a time, adding a '../'
    for each step, until it is a textual prefix of the target. When the only
    remaining candidate would be the filesystem root, the target itself is
    returned with normalized separators.

    Note:
        This is a textual prefix match on segment-delimited strings, not a
        filesystem-aware ancestor check. Paths that only share the root (or
        live on different drives) fall back to the normalized target.

    Args:
        base_dir: Directory the result is relative to.
        target_path: Path to express.

    Returns:
        Forward-slash separated relative path, or the normalized target.

    Example:
        >>> relative_path("/a/b/x", "/a/b/y/z.js")
        '../y/z.js'
    """
    base = os.fspath(base_dir)
    target = os.fspath(target_path)
    if not base.endswith(os.sep):
        base += os.sep

    prefix = ""
    while True:
        if target.startswith(base):
            return prefix + target[len(base) :].replace(os.sep, "/")

        sep = base[:-1].rfind(os.sep)
        if sep <= 0:
            return target.replace(os.sep, "/")
        base = base[: sep + 1]
        prefix += "../"


def output_path_for(source: Path, extension: str, output_dir: Path | None = None) -> Path:
    """Derive an absolute output path for a source file.

    The last extension of the file name is replaced (``a.coffee`` ->
    ``a.js``; ``a.coffee.md`` -> ``a.coffee.js``). The file goes to
    output_dir when set, else next to the source.

    Args:
        source: Source file path.
        extension: Output extension including the leading dot.
        output_dir: Optional directory overriding the source's parent.

    Returns:
        Absolute output path.
    """
    name = source.name
    dot = name.rfind(".")
    stem = name[:dot] if dot >= 0 else name
    directory = output_dir if output_dir is not None else source.absolute().parent
    return (directory / (stem + extension)).absolute()


def is_literate(path: str | os.PathLike[str]) -> bool:
    """Return True if the path names a literate CoffeeScript file."""
    return os.fspath(path).endswith(LITERATE_EXTENSIONS)


def is_source_file(path: str | os.PathLike[str]) -> bool:
    """Return True if the path has a CoffeeScript source extension."""
    return os.fspath(path).endswith(SOURCE_EXTENSIONS)
