"""CLI entry point for brewcoffee.

Single command compatible with the classic ``coffee`` compiler flags:
compile, source maps, bare output, literate input, incremental builds,
Closure Compiler hand-off and watch mode.
"""

from __future__ import annotations

from pathlib import Path

import click
import rich_click as rclick

from brewcoffee import __version__
from brewcoffee.cli.errors import CLIError, EXIT_USER_ERROR, exit_with_error, to_cli_error
from brewcoffee.cli.output import compiler_error, info, set_no_color, success, warning
from brewcoffee.compiler import Orchestrator
from brewcoffee.config import BrewSettings, BuildConfig
from brewcoffee.discovery import collect_source_files
from brewcoffee.engine import create_engine
from brewcoffee.errors import BrewError, ConfigurationError
from brewcoffee.minifier import ClosureMinifier
from brewcoffee.models import CompileFailure, CompileOutcome, CompileSuccess
from brewcoffee.observability import configure_logging, resolve_log_level
from brewcoffee.watcher import SourceWatcher, WatcherError

# Configure rich-click for better help formatting
rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _show_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Print tool, compiler and script engine versions, then exit."""
    if not value or ctx.resilient_parsing:
        return

    settings = BrewSettings()
    engine = create_engine(settings.compiler_script)
    try:
        coffee_version = engine.version()
    except BrewError as e:
        raise to_cli_error(e) from None

    info(f"brewcoffee {__version__}")
    info(f"CoffeeScript version {coffee_version}")
    info(f"ScriptEngine: {engine.description()}")
    ctx.exit()


def report_failure(outcome: CompileOutcome) -> None:
    """Show a failed compile on stderr; compiler messages are printed verbatim."""
    if isinstance(outcome, CompileFailure):
        compiler_error(outcome.message)


def run_batch(orchestrator: Orchestrator, paths: list[Path]) -> int:
    """Compile every path once, in order.

    With --verbose, each compiled file is reported on stdout.

    Returns:
        Number of files that failed.
    """
    failed = 0
    for path in paths:
        outcome = orchestrator.compile(path)
        if not outcome.ok:
            report_failure(outcome)
            failed += 1
        elif orchestrator.config.verbose and isinstance(outcome, CompileSuccess):
            success(f"{'Up to date' if outcome.skipped else 'Compiled'} {path}")
    return failed


def run_watch(orchestrator: Orchestrator, paths: list[Path], quiet_period: float) -> None:
    """Watch paths and recompile on change until interrupted."""
    if not paths:
        return

    try:
        watcher = SourceWatcher(
            paths,
            orchestrator.compile,
            quiet_period=quiet_period,
            on_failure=report_failure,
        )
    except WatcherError as e:
        raise CLIError(str(e)) from None

    info(f"Watching {len(watcher.paths)} file(s) for changes (Ctrl+C to stop)")
    watcher.start()
    try:
        watcher.wait()
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()


@click.command(cls=rclick.RichCommand, context_settings=CONTEXT_SETTINGS)
@click.option("-c", "--compile", "compile_", is_flag=True, help="Compile to JavaScript and save as .js files.")
@click.option("-m", "--map", "source_map", is_flag=True, help="Generate source maps and save as .js.map files.")
@click.option("-b", "--bare", is_flag=True, help="Compile without a top-level function wrapper.")
@click.option("--no-header", is_flag=True, help='Suppress the "Generated by" header.')
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="DIR",
    help="Set the output directory for compiled JavaScript.",
)
@click.option("-l", "--literate", is_flag=True, help="Treat input as literate CoffeeScript.")
@click.option("--update", is_flag=True, help="Compile only if the source is newer than the .js file.")
@click.option("-w", "--watch", is_flag=True, help="Watch scripts for changes and recompile.")
@click.option("--verbose", is_flag=True, help="Show progress output.")
@click.option(
    "--closure",
    "closure_options",
    default=None,
    metavar="OPTIONS",
    help="Run Google's Closure Compiler on the output with OPTIONS.",
)
@click.option(
    "-v",
    "--version",
    is_flag=True,
    is_eager=True,
    expose_value=False,
    callback=_show_version,
    help="Show version numbers and exit.",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.argument("sources", nargs=-1, type=click.Path(path_type=Path))
def cli(
    compile_: bool,
    source_map: bool,
    bare: bool,
    no_header: bool,
    output_dir: Path | None,
    literate: bool,
    update: bool,
    watch: bool,
    verbose: bool,
    closure_options: str | None,
    sources: tuple[Path, ...],
) -> None:
    """Compile CoffeeScript files to JavaScript.

    SOURCES are `.coffee`, `.litcoffee` or `.coffee.md` files, or
    directories searched recursively for them.

    **Examples:**

    - `brewcoffee -c src/` - compile every script under src/
    - `brewcoffee -cm -o build/ src/` - with source maps, into build/
    - `brewcoffee -cw src/` - compile, then recompile on change
    - `brewcoffee -c --closure "-O ADVANCED" app.coffee` - minify the output
    """
    settings = BrewSettings()
    configure_logging(
        log_level=resolve_log_level(verbose, settings.log_level),
        json_format=settings.log_format == "json",
    )

    if not compile_:
        return

    config = BuildConfig(
        source_map=source_map,
        bare=bare,
        header=not no_header,
        literate=literate,
        output_dir=output_dir,
        update=update,
        watch=watch,
        verbose=verbose,
        closure=closure_options,
    )

    minifier = None
    if config.closure is not None:
        try:
            minifier = ClosureMinifier.from_options(config.closure, settings.closure_command)
        except ConfigurationError as e:
            raise to_cli_error(e) from None
        if config.verbose:
            info(f"Closure Compiler options: {minifier.options}")

    paths = collect_source_files(sources)
    orchestrator = Orchestrator(config, create_engine(settings.compiler_script), minifier)

    try:
        failed = run_batch(orchestrator, paths)
        if failed and not config.watch:
            exit_with_error(f"{failed} of {len(paths)} file(s) failed to compile", EXIT_USER_ERROR)
        if failed:
            warning(f"{failed} of {len(paths)} file(s) failed to compile; watching anyway")
        if config.watch:
            run_watch(orchestrator, paths, settings.debounce_seconds)
    except BrewError as e:
        raise to_cli_error(e) from None


if __name__ == "__main__":
    cli()
