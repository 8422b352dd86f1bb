"""Pydantic data models for brewcoffee.

This module provides:
- SourceFile: A source file and the output locations derived from it
- CompileOptions: Options handed to the embedded compiler for one call
- CompileSuccess / CompileFailure: Outcome of compiling one source file
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from brewcoffee.paths import (
    EXTENSION_JS,
    EXTENSION_JS_TMP,
    EXTENSION_MAP,
    is_literate,
    output_path_for,
    relative_path,
)


class SourceFile(BaseModel):
    """A CoffeeScript source file with its derived output paths.

    Attributes:
        path: Absolute source path.
        js_path: Final JavaScript output path.
        map_path: Source map output path.
        tmp_path: Unminified code path used when a minifier is configured.
        literate: True for .litcoffee and .coffee.md sources.

    Example:
        >>> src = SourceFile.from_path(Path("/app/src/main.coffee"), Path("/app/build"))
        >>> src.js_path
        PosixPath('/app/build/main.js')
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path
    js_path: Path
    map_path: Path
    tmp_path: Path
    literate: bool = False

    @classmethod
    def from_path(cls, path: Path | str, output_dir: Path | str | None = None) -> SourceFile:
        """Derive a SourceFile from a source path and an optional output directory.

        Args:
            path: Source file path (relative paths resolve against the cwd).
            output_dir: Directory for generated files, defaults to the source's parent.

        Returns:
            SourceFile with absolute paths.
        """
        source = Path(path).absolute()
        out_dir = Path(output_dir).absolute() if output_dir is not None else None
        return cls(
            path=source,
            js_path=output_path_for(source, EXTENSION_JS, out_dir),
            map_path=output_path_for(source, EXTENSION_MAP, out_dir),
            tmp_path=output_path_for(source, EXTENSION_JS_TMP, out_dir),
            literate=is_literate(source),
        )


class CompileOptions(BaseModel):
    """Options for one call into the embedded compiler.

    Path fields are relative to the directory holding the source map, so
    the generated map stays valid when the output directory is moved.

    Attributes:
        source_map: Ask the compiler for a v3 source map.
        bare: Compile without the top-level function wrapper.
        header: Emit the "Generated by" header comment.
        literate: Treat the source as literate CoffeeScript.
        filename: Absolute source filename, used in error messages.
        generated_file: JS file path relative to the map directory.
        source_root: Source root recorded in the map.
        source_files: Source paths relative to the map directory.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_map: bool = False
    bare: bool = False
    header: bool = True
    literate: bool = False
    filename: str
    generated_file: str
    source_root: str = ""
    source_files: tuple[str, ...] = Field(default_factory=tuple)

    @classmethod
    def for_source(
        cls,
        source: SourceFile,
        *,
        source_map: bool = False,
        bare: bool = False,
        header: bool = True,
        literate: bool = False,
    ) -> CompileOptions:
        """Build options for a source file.

        The literate flag is forced on for literate file extensions.
        """
        map_dir = source.map_path.parent
        return cls(
            source_map=source_map,
            bare=bare,
            header=header,
            literate=True if source.literate else literate,
            filename=str(source.path),
            generated_file=relative_path(map_dir, source.js_path),
            source_files=(relative_path(map_dir, source.path),),
        )

    def to_compiler_options(self) -> dict[str, Any]:
        """Return the options keyed by the compiler's option names."""
        return {
            "sourceMap": self.source_map,
            "bare": self.bare,
            "header": self.header,
            "literate": self.literate,
            "filename": self.filename,
            "generatedFile": self.generated_file,
            "sourceRoot": self.source_root,
            "sourceFiles": list(self.source_files),
        }


class CompileSuccess(BaseModel):
    """A source file compiled (or was skipped as up to date).

    Attributes:
        source: Source file path.
        code: Compiled JavaScript, empty when skipped.
        source_map: v3 source map when requested.
        skipped: True when update mode found the output up to date.
    """

    model_config = ConfigDict(frozen=True)

    source: Path
    code: str = ""
    source_map: str | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return True


class CompileFailure(BaseModel):
    """A source file failed to compile or could not be read/written.

    Attributes:
        source: Source file path.
        message: Error text, the compiler's own message for compile errors.
    """

    model_config = ConfigDict(frozen=True)

    source: Path
    message: str

    @property
    def ok(self) -> bool:
        return False


CompileOutcome = Union[CompileSuccess, CompileFailure]
