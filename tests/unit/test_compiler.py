"""Unit tests for the compilation orchestrator."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from brewcoffee.compiler import Orchestrator, is_up_to_date, source_mapping_comment
from brewcoffee.config import BuildConfig
from brewcoffee.errors import InternalContractViolation
from brewcoffee.models import CompileFailure, CompileSuccess

from tests.conftest import FakeEngine


class RecordingMinifier:
    """Minifier double that copies the input and records calls."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.calls: list[tuple[Path, Path]] = []
        self.seen_content: str | None = None

    def run(self, source: Path, output: Path) -> bool:
        self.calls.append((source, output))
        self.seen_content = source.read_text(encoding="utf-8")
        if self.succeed:
            output.write_text("/* min */" + self.seen_content, encoding="utf-8")
        return self.succeed


class TestSourceMappingComment:
    """Tests for source_mapping_comment()."""

    def test_plain_name(self) -> None:
        assert source_mapping_comment(Path("/out/x.js.map")) == "\n//# sourceMappingURL=x.js.map\n"

    def test_space_is_percent_encoded(self) -> None:
        comment = source_mapping_comment(Path("/out/my app.js.map"))
        assert comment == "\n//# sourceMappingURL=my%20app.js.map\n"


class TestIsUpToDate:
    """Tests for the update-mode freshness rule."""

    def test_missing_output_is_stale(self, tmp_path: Path) -> None:
        source = tmp_path / "a.coffee"
        source.write_text("x = 1")
        assert is_up_to_date(source, tmp_path / "a.js") is False

    def test_equal_mtime_is_stale(self, tmp_path: Path) -> None:
        source = tmp_path / "a.coffee"
        js = tmp_path / "a.js"
        source.write_text("x = 1")
        js.write_text("var x = 1;")
        os.utime(source, ns=(1_000_000_000_000, 1_000_000_000_000))
        os.utime(js, ns=(1_000_000_000_000, 1_000_000_000_000))
        assert is_up_to_date(source, js) is False

    def test_newer_output_is_fresh(self, tmp_path: Path) -> None:
        source = tmp_path / "a.coffee"
        js = tmp_path / "a.js"
        source.write_text("x = 1")
        js.write_text("var x = 1;")
        os.utime(source, ns=(1_000_000_000_000, 1_000_000_000_000))
        os.utime(js, ns=(2_000_000_000_000, 2_000_000_000_000))
        assert is_up_to_date(source, js) is True


class TestOrchestratorCompile:
    """Tests for Orchestrator.compile()."""

    def test_writes_js_next_to_source(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee", "x = 1\n")
        orchestrator = Orchestrator(BuildConfig(), fake_engine)

        outcome = orchestrator.compile(source)

        assert isinstance(outcome, CompileSuccess)
        js = source.with_suffix(".js")
        assert js.read_text(encoding="utf-8") == "// compiled\nx = 1\n"
        assert not source.with_name("app.js.map").exists()
        assert "sourceMappingURL" not in outcome.code

    def test_passes_encoded_options(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee")
        orchestrator = Orchestrator(BuildConfig(bare=True, header=False), fake_engine)

        orchestrator.compile(source)

        _, literal = fake_engine.calls[0]
        assert '"bare" : true' in literal
        assert '"header" : false' in literal
        assert f'"filename" : "{source}"' in literal

    def test_literate_extension_forces_literate(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("doc.litcoffee", "    x = 1\n")
        Orchestrator(BuildConfig(), fake_engine).compile(source)

        _, literal = fake_engine.calls[0]
        assert '"literate" : true' in literal

    def test_source_map_written_and_referenced(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("x.coffee")
        orchestrator = Orchestrator(BuildConfig(source_map=True), fake_engine)

        outcome = orchestrator.compile(source)

        assert isinstance(outcome, CompileSuccess)
        js = source.with_name("x.js").read_text(encoding="utf-8")
        assert js.endswith("\n//# sourceMappingURL=x.js.map\n")
        assert source.with_name("x.js.map").read_text(encoding="utf-8") == '{"version":3}'
        assert outcome.source_map == '{"version":3}'

    def test_output_dir_is_created(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = write_source("src/app.coffee")
        output_dir = tmp_path / "build" / "js"
        orchestrator = Orchestrator(BuildConfig(output_dir=output_dir), fake_engine)

        orchestrator.compile(source)

        assert (output_dir / "app.js").exists()

    def test_compile_error_is_failure_without_writes(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("bad.coffee", "SYNTAX ERROR here")
        orchestrator = Orchestrator(BuildConfig(source_map=True), fake_engine)

        outcome = orchestrator.compile(source)

        assert isinstance(outcome, CompileFailure)
        assert outcome.message == "[stdin]:1:1: error: unexpected SYNTAX"
        assert not source.with_name("bad.js").exists()
        assert not source.with_name("bad.js.map").exists()

    def test_invalid_utf8_is_replaced_not_raised(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path], tmp_path: Path
    ) -> None:
        latin1 = tmp_path / "a_latin1.coffee"
        latin1.write_bytes(b"x = '\xe9t\xe9'\n")
        good = write_source("b_good.coffee", "y = 2\n")
        orchestrator = Orchestrator(BuildConfig(), fake_engine)

        outcomes = [orchestrator.compile(latin1), orchestrator.compile(good)]

        assert all(outcome.ok for outcome in outcomes)
        assert fake_engine.calls[0][0] == "x = '\ufffdt\ufffd'\n"
        assert latin1.with_suffix(".js").exists()
        assert good.with_suffix(".js").exists()

    def test_missing_source_is_failure(self, fake_engine: FakeEngine, tmp_path: Path) -> None:
        orchestrator = Orchestrator(BuildConfig(), fake_engine)

        outcome = orchestrator.compile(tmp_path / "missing.coffee")

        assert isinstance(outcome, CompileFailure)
        assert "Cannot read" in outcome.message
        assert fake_engine.calls == []

    def test_missing_source_map_is_contract_violation(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        fake_engine.output_override = {"js": "var x;"}
        orchestrator = Orchestrator(BuildConfig(source_map=True), fake_engine)

        with pytest.raises(InternalContractViolation):
            orchestrator.compile(write_source())

    def test_missing_code_is_contract_violation(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        fake_engine.output_override = {"v3SourceMap": "{}"}
        orchestrator = Orchestrator(BuildConfig(source_map=True), fake_engine)

        with pytest.raises(InternalContractViolation):
            orchestrator.compile(write_source())

    def test_non_string_code_is_contract_violation(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        fake_engine.output_override = {"js": "var x;"}
        orchestrator = Orchestrator(BuildConfig(), fake_engine)

        with pytest.raises(InternalContractViolation):
            orchestrator.compile(write_source())


class TestOrchestratorUpdateMode:
    """Tests for --update freshness handling."""

    def test_equal_mtime_recompiles(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee")
        js = source.with_suffix(".js")
        js.write_text("old", encoding="utf-8")
        stamp = 1_500_000_000_000_000_000
        os.utime(source, ns=(stamp, stamp))
        os.utime(js, ns=(stamp, stamp))

        outcome = Orchestrator(BuildConfig(update=True), fake_engine).compile(source)

        assert isinstance(outcome, CompileSuccess)
        assert outcome.skipped is False
        assert js.read_text(encoding="utf-8") != "old"

    def test_newer_output_is_skipped(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee")
        js = source.with_suffix(".js")
        js.write_text("old", encoding="utf-8")
        os.utime(source, ns=(1_000_000_000, 1_000_000_000))
        os.utime(js, ns=(2_000_000_000, 2_000_000_000))

        outcome = Orchestrator(BuildConfig(update=True), fake_engine).compile(source)

        assert isinstance(outcome, CompileSuccess)
        assert outcome.skipped is True
        assert fake_engine.calls == []
        assert js.read_text(encoding="utf-8") == "old"

    def test_without_update_newer_output_is_rebuilt(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee")
        js = source.with_suffix(".js")
        js.write_text("old", encoding="utf-8")
        os.utime(source, ns=(1_000_000_000, 1_000_000_000))
        os.utime(js, ns=(2_000_000_000, 2_000_000_000))

        Orchestrator(BuildConfig(), fake_engine).compile(source)

        assert len(fake_engine.calls) == 1


class TestOrchestratorMinifier:
    """Tests for the minifier hand-off."""

    def test_code_goes_through_temp_file(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee", "x = 1\n")
        minifier = RecordingMinifier()
        orchestrator = Orchestrator(BuildConfig(), fake_engine, minifier)

        outcome = orchestrator.compile(source)

        assert outcome.ok
        tmp_file, final_file = minifier.calls[0]
        assert tmp_file == source.with_name("app.js.tmp")
        assert final_file == source.with_name("app.js")
        assert minifier.seen_content == "// compiled\nx = 1\n"
        assert final_file.read_text(encoding="utf-8") == "/* min */// compiled\nx = 1\n"
        assert not tmp_file.exists()

    def test_temp_file_deleted_when_minifier_fails(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee")
        minifier = RecordingMinifier(succeed=False)
        orchestrator = Orchestrator(BuildConfig(), fake_engine, minifier)

        outcome = orchestrator.compile(source)

        assert outcome.ok
        assert not source.with_name("app.js.tmp").exists()
        assert not source.with_name("app.js").exists()

    def test_source_map_written_directly_with_minifier(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("app.coffee")
        minifier = RecordingMinifier()
        orchestrator = Orchestrator(BuildConfig(source_map=True), fake_engine, minifier)

        orchestrator.compile(source)

        assert source.with_name("app.js.map").exists()
        assert minifier.seen_content is not None
        assert minifier.seen_content.endswith("//# sourceMappingURL=app.js.map\n")

    def test_compile_error_skips_minifier(
        self, fake_engine: FakeEngine, write_source: Callable[..., Path]
    ) -> None:
        source = write_source("bad.coffee", "SYNTAX ERROR")
        minifier = RecordingMinifier()

        outcome = Orchestrator(BuildConfig(), fake_engine, minifier).compile(source)

        assert not outcome.ok
        assert minifier.calls == []
