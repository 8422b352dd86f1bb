"""Configuration models for brewcoffee.

This module provides:
- BuildConfig: Per-run build flags, built from the command line
- BrewSettings: Environment-driven settings (BREWCOFFEE_ prefix)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_CLOSURE_COMMAND = "google-closure-compiler"


class BuildConfig(BaseModel):
    """Build flags for one brewcoffee run.

    Attributes:
        source_map: Generate .js.map files.
        bare: Compile without a top-level function wrapper.
        header: Emit the "Generated by" header.
        literate: Treat every input as literate CoffeeScript.
        output_dir: Directory for all generated files (default: next to source).
        update: Skip sources whose JS output is newer.
        watch: Keep watching sources after the initial build.
        verbose: Show progress output.
        closure: Raw Closure Compiler option string; None disables minification.

    Example:
        >>> config = BuildConfig(source_map=True, output_dir=Path("build"))
        >>> config.header
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_map: bool = Field(default=False, description="Generate source maps")
    bare: bool = Field(default=False, description="Omit the top-level function wrapper")
    header: bool = Field(default=True, description="Emit the generated-by header")
    literate: bool = Field(default=False, description="Treat inputs as literate CoffeeScript")
    output_dir: Path | None = Field(default=None, description="Output directory")
    update: bool = Field(default=False, description="Only compile out-of-date sources")
    watch: bool = Field(default=False, description="Watch sources for changes")
    verbose: bool = Field(default=False, description="Show progress output")
    closure: str | None = Field(default=None, description="Closure Compiler options")


class BrewSettings(BaseSettings):
    """Environment settings for brewcoffee.

    Can be loaded from environment variables with BREWCOFFEE_ prefix.

    Example:
        >>> # BREWCOFFEE_CLOSURE_COMMAND="java -jar compiler.jar"
        >>> settings = BrewSettings()
        >>> settings.closure_command
        'java -jar compiler.jar'
    """

    model_config = SettingsConfigDict(
        env_prefix="BREWCOFFEE_",
        env_file=".env",
        extra="ignore",
    )

    compiler_script: Path | None = Field(
        default=None,
        description="CoffeeScript compiler script (default: the one bundled with dukpy)",
    )
    closure_command: str = Field(
        default=DEFAULT_CLOSURE_COMMAND,
        description="Command line used to start the Closure Compiler",
    )
    debounce_seconds: float = Field(
        default=DEFAULT_DEBOUNCE_SECONDS,
        gt=0.0,
        le=60.0,
        description="Quiet period before a changed file is recompiled",
    )
    log_level: str | None = Field(
        default=None,
        description="Log level override (default: WARNING, INFO with --verbose)",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer",
    )
