"""Embedded CoffeeScript compiler.

The CoffeeScript compiler is a JavaScript program. It is loaded once into a
dukpy (Duktape) interpreter and called for every source file; brewcoffee
treats it as an opaque function with a single contract:

    compile(source, options) -> code | {js, v3SourceMap} | error

Compile errors thrown inside the interpreter are caught there and come back
as an error string, so only loading problems surface as Python exceptions.
"""

from __future__ import annotations

import threading
from importlib import metadata
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from pydantic import BaseModel, ConfigDict

from brewcoffee.errors import EngineLoadError

if TYPE_CHECKING:
    import dukpy

logger = structlog.get_logger(__name__)

# Evaluated per call; %s is replaced by the encoded options literal.
_COMPILE_TEMPLATE = """
(function () {
    try {
        var result = CoffeeScript.compile(dukpy.source, %s);
        if (typeof result === "string") {
            return { output: result };
        }
        return { output: { js: result.js, v3SourceMap: result.v3SourceMap } };
    } catch (e) {
        return { error: String(e) };
    }
})()
"""


class EngineResult(BaseModel):
    """Raw result of one compiler call.

    Attributes:
        output: Compiled code (str) or a mapping with "js" and "v3SourceMap".
        error: Compiler error text; when set, output is meaningless.
    """

    model_config = ConfigDict(frozen=True)

    output: Any = None
    error: str | None = None


class CoffeeScriptEngine(Protocol):
    """Opaque compiler contract used by the orchestrator."""

    def compile(self, source: str, options_literal: str) -> EngineResult: ...

    def version(self) -> str: ...

    def description(self) -> str: ...


def bundled_compiler_script() -> Path:
    """Return the CoffeeScript compiler shipped with dukpy."""
    from dukpy import coffee

    return Path(coffee.COFFEE_COMPILER)


class DukpyEngine:
    """CoffeeScript compiler running in a dukpy interpreter.

    The compiler script is read and evaluated on first use, then reused for
    every compile. Calls are serialized; Duktape heaps are single threaded.

    Args:
        compiler_script: Compiler script to load (default: dukpy's bundled copy).

    Example:
        >>> engine = DukpyEngine()
        >>> result = engine.compile("square = (x) -> x * x", '{ "bare" : true }')
        >>> result.error is None
        True
    """

    def __init__(self, compiler_script: Path | None = None) -> None:
        self._compiler_script = compiler_script
        self._interpreter: dukpy.JSInterpreter | None = None
        self._lock = threading.Lock()
        self._log = logger.bind(engine="dukpy")

    def _ensure_loaded(self) -> dukpy.JSInterpreter:
        if self._interpreter is not None:
            return self._interpreter

        import dukpy

        script_path = self._compiler_script or bundled_compiler_script()
        self._log.info("loading_compiler", script=str(script_path))
        try:
            script = script_path.read_text(encoding="utf-8")
        except OSError as e:
            raise EngineLoadError(
                f"Cannot read CoffeeScript compiler: {script_path}",
                internal_details=str(e),
            ) from e

        interpreter = dukpy.JSInterpreter()
        try:
            interpreter.evaljs(script)
        except dukpy.JSRuntimeError as e:
            raise EngineLoadError(
                f"Cannot evaluate CoffeeScript compiler: {script_path}",
                internal_details=str(e),
            ) from e

        self._interpreter = interpreter
        return interpreter

    def compile(self, source: str, options_literal: str) -> EngineResult:
        """Compile CoffeeScript source with an encoded options literal.

        Args:
            source: CoffeeScript source text.
            options_literal: Options object literal from the options encoder.

        Returns:
            EngineResult holding either the compiler output or its error text.
        """
        with self._lock:
            interpreter = self._ensure_loaded()
            raw = interpreter.evaljs(_COMPILE_TEMPLATE % options_literal, source=source)

        if isinstance(raw, dict) and raw.get("error") is not None:
            return EngineResult(error=str(raw["error"]))
        if isinstance(raw, dict):
            return EngineResult(output=raw.get("output"))
        return EngineResult(output=raw)

    def version(self) -> str:
        """Return the CoffeeScript compiler version."""
        with self._lock:
            interpreter = self._ensure_loaded()
            return str(interpreter.evaljs("CoffeeScript.VERSION"))

    def description(self) -> str:
        """Return the script runtime name and version."""
        try:
            runtime_version = metadata.version("dukpy")
        except metadata.PackageNotFoundError:
            runtime_version = "unknown"
        return f"dukpy (Duktape) {runtime_version}"


def create_engine(compiler_script: Path | None = None) -> CoffeeScriptEngine:
    """Create the default compiler engine."""
    return DukpyEngine(compiler_script)
