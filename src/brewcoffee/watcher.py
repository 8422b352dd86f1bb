"""Watch mode: recompile sources when they change on disk.

This module provides a watchdog-based file watcher that monitors source
files and recompiles them after a quiet period.

Architecture:
- SourceWatcher: Main watcher class with start/stop lifecycle. Registers
  one watchdog watch per distinct parent directory.
- DebouncedScheduler: A single worker thread running delayed tasks one at
  a time. Every event mints a new ticket for its path; a task only runs if
  its ticket is still the latest one for that path when its delay elapses.

Editors and filesystem backends often report one save as several
modification events. With a 500 ms quiet period they collapse into one
compile that sees the final file content.

Usage:
    >>> with SourceWatcher([Path("src/app.coffee")], orchestrator.compile):
    ...     time.sleep(3600)
"""

from __future__ import annotations

import enum
import heapq
import itertools
import os
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from brewcoffee.config import DEFAULT_DEBOUNCE_SECONDS

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

    from brewcoffee.models import CompileOutcome

logger = structlog.get_logger(__name__)

# Tickets are unique across all paths for the lifetime of the process.
_ticket_counter = itertools.count(1)


class WatcherState(enum.Enum):
    """State of a SourceWatcher or DebouncedScheduler.

    Attributes:
        STOPPED: Not running
        RUNNING: Actively watching / executing tasks
    """

    STOPPED = "stopped"
    RUNNING = "running"


class WatcherError(Exception):
    """Error in watcher operation.

    Raised when:
    - A watcher or scheduler is started while already running
    - A watched directory does not exist
    """

    pass


# Type alias for the per-file action
CompileAction = Callable[[Path], "CompileOutcome | None"]


class DebouncedScheduler:
    """Runs one delayed action per path, superseding earlier requests.

    ``pending`` maps each path to its most recently minted ticket. It is
    written by the submitting thread and read by the worker; both sides
    only touch one key at a time under a lock.

    Args:
        action: Callable run with the path once its quiet period elapses.
        quiet_period: Delay in seconds between the last event and the action.
        clock: Monotonic clock, replaceable in tests.
    """

    def __init__(
        self,
        action: Callable[[Path], Any],
        *,
        quiet_period: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._action = action
        self._quiet_period = quiet_period
        self._clock = clock
        self._pending: dict[Path, int] = {}
        self._pending_lock = threading.Lock()
        self._queue: list[tuple[float, int, Path]] = []
        self._condition = threading.Condition()
        self._state = WatcherState.STOPPED
        self._worker: threading.Thread | None = None

    @property
    def state(self) -> WatcherState:
        with self._condition:
            return self._state

    @property
    def quiet_period(self) -> float:
        return self._quiet_period

    def current_ticket(self, path: Path) -> int | None:
        """Return the latest ticket for a path, or None if never submitted."""
        with self._pending_lock:
            return self._pending.get(path)

    def start(self) -> None:
        """Start the worker thread.

        Raises:
            WatcherError: If the scheduler is already running.
        """
        with self._condition:
            if self._state == WatcherState.RUNNING:
                raise WatcherError("Scheduler is already running")
            self._queue.clear()
            self._state = WatcherState.RUNNING
            self._worker = threading.Thread(
                target=self._run, name="brewcoffee-compile-worker", daemon=True
            )
            self._worker.start()

    def submit(self, path: Path) -> int:
        """Request the action for a path after the quiet period.

        Any earlier request for the same path that has not run yet is
        superseded.

        Args:
            path: Path the action will receive.

        Returns:
            The ticket minted for this request.

        Raises:
            WatcherError: If the scheduler is not running.
        """
        with self._condition:
            if self._state != WatcherState.RUNNING:
                raise WatcherError("Scheduler is not running")
            ticket = next(_ticket_counter)
            with self._pending_lock:
                self._pending[path] = ticket
            heapq.heappush(self._queue, (self._clock() + self._quiet_period, ticket, path))
            self._condition.notify()
        logger.debug("compile_scheduled", path=str(path), ticket=ticket)
        return ticket

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop the worker, discarding tasks whose delay has not elapsed.

        A task already running is allowed to finish. Safe to call when the
        scheduler is not running.

        Args:
            timeout: Maximum seconds to wait for a running task.
        """
        with self._condition:
            if self._state == WatcherState.STOPPED:
                return
            self._state = WatcherState.STOPPED
            discarded = len(self._queue)
            self._queue.clear()
            self._condition.notify_all()
            worker = self._worker
            self._worker = None

        if discarded:
            logger.debug("pending_compiles_discarded", count=discarded)
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    def _next_due(self) -> tuple[int, Path] | None:
        """Block until a task is due; return None once shut down."""
        with self._condition:
            while True:
                if self._state != WatcherState.RUNNING:
                    return None
                if self._queue:
                    due, ticket, path = self._queue[0]
                    remaining = due - self._clock()
                    if remaining <= 0:
                        heapq.heappop(self._queue)
                        return ticket, path
                    self._condition.wait(remaining)
                else:
                    self._condition.wait()

    def _run(self) -> None:
        while True:
            task = self._next_due()
            if task is None:
                return
            ticket, path = task
            if ticket != self.current_ticket(path):
                logger.debug("compile_superseded", path=str(path), ticket=ticket)
                continue
            try:
                self._action(path)
            except Exception:
                logger.exception("scheduled_compile_error", path=str(path))


class _SourceEventHandler(FileSystemEventHandler):
    """Internal handler for watchdog file events.

    Filters modification events down to the watched source files.
    """

    def __init__(self, watched: frozenset[Path], on_change: Callable[[Path], Any]) -> None:
        super().__init__()
        self._watched = watched
        self._on_change = on_change

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events.

        Args:
            event: File system event
        """
        if event.is_directory:
            return

        src_path = event.src_path
        if isinstance(src_path, bytes):
            src_path = os.fsdecode(src_path)
        path = Path(os.path.abspath(src_path))
        if path not in self._watched:
            return

        logger.debug("source_modified_event", path=str(path))
        self._on_change(path)


class SourceWatcher:
    """Watches source files and recompiles them when they change.

    Attributes:
        paths: Absolute paths of the watched source files.
        directories: Directories registered with the observer.
        state: Current watcher state (STOPPED or RUNNING).

    Example:
        >>> watcher = SourceWatcher(paths, orchestrator.compile, quiet_period=0.5)
        >>> watcher.start()
        >>> try:
        ...     watcher.wait()
        ... finally:
        ...     watcher.stop()
    """

    def __init__(
        self,
        paths: Iterable[Path | str],
        compile_file: CompileAction,
        *,
        quiet_period: float = DEFAULT_DEBOUNCE_SECONDS,
        on_failure: Callable[[CompileOutcome], None] | None = None,
    ) -> None:
        """Initialize SourceWatcher.

        Args:
            paths: Source files to watch.
            compile_file: Called with a changed file's path after debouncing.
            quiet_period: Seconds of quiet before a changed file is compiled.
            on_failure: Optional callback for failed compile outcomes.

        Raises:
            WatcherError: If a source directory does not exist.
        """
        self._paths = frozenset(Path(os.path.abspath(p)) for p in paths)
        self._directories = sorted({p.parent for p in self._paths})
        for directory in self._directories:
            if not directory.is_dir():
                raise WatcherError(f"Source directory does not exist: {directory}")

        self._compile_file = compile_file
        self._on_failure = on_failure
        self._scheduler = DebouncedScheduler(self._compile_if_present, quiet_period=quiet_period)
        self._state = WatcherState.STOPPED
        self._observer: BaseObserver | None = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._log = logger.bind(files=len(self._paths), directories=len(self._directories))

    @property
    def paths(self) -> frozenset[Path]:
        return self._paths

    @property
    def directories(self) -> list[Path]:
        return list(self._directories)

    @property
    def scheduler(self) -> DebouncedScheduler:
        return self._scheduler

    @property
    def state(self) -> WatcherState:
        with self._lock:
            return self._state

    def start(self) -> None:
        """Start watching.

        Raises:
            WatcherError: If the watcher is already running.
        """
        with self._lock:
            if self._state == WatcherState.RUNNING:
                raise WatcherError("Watcher is already running")

            self._log.info("starting_watcher")
            self._stopped.clear()
            self._scheduler.start()

            handler = _SourceEventHandler(self._paths, self._scheduler.submit)
            self._observer = Observer()
            for directory in self._directories:
                self._observer.schedule(handler, str(directory), recursive=False)
            self._observer.start()

            self._state = WatcherState.RUNNING
            self._log.info("watcher_started")

    def stop(self) -> None:
        """Stop watching and discard compiles that have not started.

        Safe to call even if not running.
        """
        with self._lock:
            if self._state == WatcherState.STOPPED:
                return

            self._log.info("stopping_watcher")
            if self._observer is not None:
                self._observer.stop()
                self._observer.join(timeout=5.0)
                self._observer = None

            self._scheduler.shutdown()
            self._state = WatcherState.STOPPED
            self._stopped.set()
            self._log.info("watcher_stopped")

    def wait(self, poll_interval: float = 1.0) -> None:
        """Block until the watcher is stopped or the process is interrupted.

        KeyboardInterrupt propagates to the caller.
        """
        while not self._stopped.wait(poll_interval):
            pass

    def __enter__(self) -> SourceWatcher:
        """Context manager entry - start watching."""
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Context manager exit - stop watching."""
        self.stop()

    def _compile_if_present(self, path: Path) -> None:
        """Compile a changed file unless it was deleted or moved meanwhile."""
        if not path.exists():
            self._log.debug("changed_file_missing", path=str(path))
            return

        outcome = self._compile_file(path)
        if outcome is not None and not outcome.ok:
            self._log.error("compile_failed", path=str(path), error=outcome.message)
            if self._on_failure is not None:
                self._on_failure(outcome)
        elif outcome is not None:
            self._log.info("recompiled", path=str(path))
