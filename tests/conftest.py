"""Shared test fixtures for brewcoffee tests.

Provides a fake embedded compiler, CliRunner fixtures and helpers for
creating CoffeeScript sources in temporary directories.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from brewcoffee.engine import EngineResult


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture.

    Ensures structlog output is captured by capsys regardless of whether an
    earlier test ran the CLI (which routes logs through stdlib logging).
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),  # Resolves sys.stdout per logger
        cache_logger_on_first_use=False,  # Important for test isolation
    )


class FakeEngine:
    """Stand-in for the embedded CoffeeScript compiler.

    Compiles by prefixing the source with a marker comment. Sources
    containing ``SYNTAX ERROR`` fail with a compiler-style message.

    Attributes:
        calls: (source, options_literal) for every compile call.
        output_override: When set, returned as the raw compiler output.
    """

    ERROR_MARKER = "SYNTAX ERROR"

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.output_override: Any = None

    def compile(self, source: str, options_literal: str) -> EngineResult:
        self.calls.append((source, options_literal))
        if self.ERROR_MARKER in source:
            return EngineResult(error="[stdin]:1:1: error: unexpected SYNTAX")
        if self.output_override is not None:
            return EngineResult(output=self.output_override)
        code = f"// compiled\n{source}"
        if '"sourceMap" : true' in options_literal:
            return EngineResult(output={"js": code, "v3SourceMap": '{"version":3}'})
        return EngineResult(output=code)

    def version(self) -> str:
        return "1.12.7"

    def description(self) -> str:
        return "fake engine 0.0"


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Create a fake compiler engine."""
    return FakeEngine()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture writing a CoffeeScript source under tmp_path.

    Returns:
        Function taking a relative name and optional content.
    """

    def _write(name: str = "app.coffee", content: str = "square = (x) -> x * x\n") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
