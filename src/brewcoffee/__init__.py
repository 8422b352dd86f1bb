"""brewcoffee - CoffeeScript build tool.

Compiles CoffeeScript sources to JavaScript through an embedded compiler,
with optional source maps, a Closure Compiler hand-off and a debounced
watch mode.
"""

from __future__ import annotations

__version__ = "0.1.0"

from brewcoffee.compiler import Orchestrator
from brewcoffee.config import BrewSettings, BuildConfig
from brewcoffee.errors import (
    BrewError,
    CompileError,
    ConfigurationError,
    EngineLoadError,
    InternalContractViolation,
    MinifierError,
)
from brewcoffee.models import CompileFailure, CompileOptions, CompileSuccess, SourceFile
from brewcoffee.paths import relative_path

__all__ = [
    "__version__",
    "BrewError",
    "BrewSettings",
    "BuildConfig",
    "CompileError",
    "CompileFailure",
    "CompileOptions",
    "CompileSuccess",
    "ConfigurationError",
    "EngineLoadError",
    "InternalContractViolation",
    "MinifierError",
    "Orchestrator",
    "SourceFile",
    "relative_path",
]
