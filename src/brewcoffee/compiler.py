"""Compilation orchestrator.

Drives one source file through the build:

    freshness check -> read -> encode options -> embedded compiler
    -> source map comment -> write -> Closure Compiler hand-off

The orchestrator holds no state between files besides the engine (loaded
once) and the optional minifier.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from urllib.parse import quote

import structlog

from brewcoffee.config import BuildConfig
from brewcoffee.engine import CoffeeScriptEngine
from brewcoffee.errors import InternalContractViolation
from brewcoffee.minifier import Minifier
from brewcoffee.models import (
    CompileFailure,
    CompileOptions,
    CompileOutcome,
    CompileSuccess,
    SourceFile,
)
from brewcoffee.options import encode_options

logger = structlog.get_logger(__name__)


def source_mapping_comment(map_path: Path) -> str:
    """Return the trailing comment referencing a source map file by name.

    The map is written next to the JS file, so only its name is used,
    percent-encoded with spaces as %20.

    Example:
        >>> source_mapping_comment(Path("/out/my app.js.map"))
        '\\n//# sourceMappingURL=my%20app.js.map\\n'
    """
    return f"\n//# sourceMappingURL={quote(map_path.name, safe='')}\n"


def is_up_to_date(source: Path, js_path: Path) -> bool:
    """Return True when the JS output is strictly newer than the source."""
    try:
        js_mtime = js_path.stat().st_mtime_ns
    except FileNotFoundError:
        return False
    return js_mtime > source.stat().st_mtime_ns


class Orchestrator:
    """Compiles CoffeeScript files according to a BuildConfig.

    Args:
        config: Build flags.
        engine: Embedded compiler.
        minifier: Optional minifier run after each successful compile.

    Example:
        >>> orchestrator = Orchestrator(BuildConfig(source_map=True), create_engine())
        >>> outcome = orchestrator.compile(Path("src/app.coffee"))
        >>> outcome.ok
        True
    """

    def __init__(
        self,
        config: BuildConfig,
        engine: CoffeeScriptEngine,
        minifier: Minifier | None = None,
    ) -> None:
        self.config = config
        self.engine = engine
        self.minifier = minifier

    def source_file(self, path: Path | str) -> SourceFile:
        """Derive output locations for a source path."""
        return SourceFile.from_path(path, self.config.output_dir)

    def compile(self, path: Path | str) -> CompileOutcome:
        """Compile one source file.

        Args:
            path: Source file path.

        Returns:
            CompileSuccess (possibly skipped) or CompileFailure.

        Raises:
            InternalContractViolation: If the compiler reported no error but
                its output lacks the code or the requested source map.
        """
        source = self.source_file(path)
        log = logger.bind(source=str(source.path))
        code_target = source.tmp_path if self.minifier is not None else source.js_path

        try:
            if self.config.update and is_up_to_date(source.path, source.js_path):
                log.info("skipped_up_to_date", js=str(source.js_path))
                return CompileSuccess(source=source.path, skipped=True)

            log.info("compiling")
            # Invalid UTF-8 sequences decode as U+FFFD.
            text = source.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.error("source_read_failed", error=str(e))
            return CompileFailure(
                source=source.path, message=f"Cannot read {source.path}: {e.strerror or e}"
            )

        options = CompileOptions.for_source(
            source,
            source_map=self.config.source_map,
            bare=self.config.bare,
            header=self.config.header,
            literate=self.config.literate,
        )
        result = self.engine.compile(text, encode_options(options))

        if result.error is not None:
            log.info("compile_failed", error=result.error)
            return CompileFailure(source=source.path, message=result.error)

        code, source_map = self._unpack(result.output)
        if source_map is not None:
            code += source_mapping_comment(source.map_path)

        try:
            code_target.parent.mkdir(parents=True, exist_ok=True)
            log.info("saving_js", path=str(code_target))
            code_target.write_text(code, encoding="utf-8")
            if source_map is not None:
                log.info("saving_map", path=str(source.map_path))
                source.map_path.write_text(source_map, encoding="utf-8")
        except OSError as e:
            log.error("output_write_failed", error=str(e))
            return CompileFailure(
                source=source.path,
                message=f"Cannot write {e.filename or code_target}: {e.strerror or e}",
            )

        if self.minifier is not None:
            self._minify(self.minifier, source, log)

        return CompileSuccess(source=source.path, code=code, source_map=source_map)

    def _unpack(self, output: object) -> tuple[str, str | None]:
        """Split compiler output into code and (when requested) source map."""
        if not self.config.source_map:
            if not isinstance(output, str):
                raise InternalContractViolation(
                    "Compiler returned no code",
                    internal_details=f"Unexpected result: {type(output).__name__}",
                )
            return output, None

        if not isinstance(output, Mapping):
            raise InternalContractViolation(
                "Compiler returned no source map result",
                internal_details=f"Unexpected result: {type(output).__name__}",
            )
        code = output.get("js")
        source_map = output.get("v3SourceMap")
        if code is None:
            raise InternalContractViolation("Compiler returned no code")
        if source_map is None:
            raise InternalContractViolation("Compiler returned no source map")
        return str(code), str(source_map)

    def _minify(
        self, minifier: Minifier, source: SourceFile, log: structlog.stdlib.BoundLogger
    ) -> None:
        """Run the minifier from the temp file into the JS path, then delete the temp file.

        When the minifier fails no JS file is written.
        """
        log.info("minifying", js=str(source.js_path))
        try:
            succeeded = minifier.run(source.tmp_path, source.js_path)
        finally:
            source.tmp_path.unlink(missing_ok=True)
        if not succeeded:
            log.warning("minifier_error", js=str(source.js_path))
