"""Script runner: starts batches of scripts and supervises their processes."""

import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Set, Tuple

from scriptdeck.domain.models import BatchResult, LaunchSpec, TrackedProcess
from scriptdeck.domain.exceptions import (
    ConfigurationError,
    LaunchError,
    RunnerDisposedError,
    TerminationError,
)
from scriptdeck.domain.protocols import IProcessAdapter, IProcessHandle, ILogger
from scriptdeck.infrastructure.process.adapter import ProcessAdapter
from scriptdeck.infrastructure.process.resolver import LaunchResolver
from scriptdeck.shared.events import EventHook
from scriptdeck.shared.logging import get_logger, LoggerAdapter
from scriptdeck.shared.types import PathLike

Resolver = Callable[[str], Optional[LaunchSpec]]

SKIP_BLANK = "blank path"
SKIP_MISSING = "file not found"
SKIP_UNSUPPORTED = "no launch specification"
SKIP_LAUNCH_FAILED = "launch failed"


@dataclass
class _LiveEntry:
    record: TrackedProcess
    handle: IProcessHandle


class ScriptRunner:
    """
    Starts scripts as child processes and republishes their lifecycle.

    Events (EventHook):
        on_started(pid, path)          before any output/exit of that process
        on_output(pid, text, is_error) one per captured line
        on_exited(pid, exit_code)      exactly once per started process
        on_skipped(path, reason)       path not started (missing, unsupported, launch failed)
        on_completed(record)           closed TrackedProcess of a tracked process

    Subscriber exceptions are logged and never reach the runner.

    Usage:
        with ScriptRunner() as runner:
            runner.on_output.subscribe(print_line)
            runner.start_many(paths).result()
            runner.wait_idle()
    """

    def __init__(
        self,
        adapter: Optional[IProcessAdapter] = None,
        resolver: Optional[Resolver] = None,
        batch_workers: int = 1,
        logger: Optional[ILogger] = None,
        owns_adapter: Optional[bool] = None,
    ):
        """
        Initialize runner.

        Args:
            adapter: Process adapter (a ProcessAdapter is created if omitted)
            resolver: Default path -> LaunchSpec resolver (extension based if omitted)
            batch_workers: Number of batches that may start concurrently
            logger: Optional logger
            owns_adapter: Dispose the adapter with the runner (default: only when created here)

        Raises:
            TypeError: If adapter does not look like an IProcessAdapter
            ConfigurationError: If batch_workers is not positive
        """
        if owns_adapter is None:
            owns_adapter = adapter is None
        if adapter is None:
            adapter = ProcessAdapter()
        for attr in ("start", "subscribe", "unsubscribe"):
            if not callable(getattr(adapter, attr, None)):
                raise TypeError(f"adapter is missing '{attr}': {adapter!r}")
        if resolver is not None and not callable(resolver):
            raise TypeError("resolver must be callable")
        if batch_workers < 1:
            raise ConfigurationError(f"batch_workers must be positive, got: {batch_workers}")

        self._adapter = adapter
        self._owns_adapter = owns_adapter
        self._default_resolver: Resolver = resolver or LaunchResolver()
        self._logger = logger or LoggerAdapter(get_logger(__name__))

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._running: Dict[int, _LiveEntry] = {}
        self._batches: Set[threading.Event] = set()
        self._pending_exits = 0
        self._disposed = False

        self._executor = ThreadPoolExecutor(max_workers=batch_workers, thread_name_prefix="scriptdeck-batch")

        self.on_started = EventHook("runner.on_started")
        self.on_output = EventHook("runner.on_output")
        self.on_exited = EventHook("runner.on_exited")
        self.on_skipped = EventHook("runner.on_skipped")
        self.on_completed = EventHook("runner.on_completed")

        self._subscription = adapter.subscribe(self._handle_output, self._handle_exited)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def running_count(self) -> int:
        with self._lock:
            return len(self._running)

    def start_many(self, paths: Iterable[PathLike], resolver: Optional[Resolver] = None) -> "Future[BatchResult]":
        """
        Start a batch of scripts in the background.

        Paths are processed in order. Blank and missing paths are skipped,
        as are paths neither resolver can launch. A failed launch never
        aborts the rest of the batch.

        Args:
            paths: Script paths
            resolver: Optional per-call resolver, tried before the default one

        Returns:
            Future resolving to the BatchResult once every path was handled

        Raises:
            RunnerDisposedError: If the runner was disposed
        """
        self._ensure_not_disposed()
        if paths is None:
            raise TypeError("paths is required")
        if resolver is not None and not callable(resolver):
            raise TypeError("resolver must be callable")

        batch = list(paths)
        cancel = threading.Event()
        with self._lock:
            self._batches.add(cancel)
        try:
            return self._executor.submit(self._run_batch, batch, resolver, cancel)
        except RuntimeError as e:
            self._finish_batch(cancel)
            raise RunnerDisposedError(f"Runner is shutting down: {e}") from e

    def cancel_all(self, kill: bool = False) -> None:
        """
        Abandon pending batch paths and stop tracking processes.

        Args:
            kill: Also force-terminate every tracked process

        Raises:
            RunnerDisposedError: If the runner was disposed
        """
        self._ensure_not_disposed()
        self._cancel_all(kill)

    def get_running_processes_snapshot(self) -> Tuple[TrackedProcess, ...]:
        """Return copies of the currently tracked process records."""
        with self._lock:
            return tuple(entry.record.copy() for entry in self._running.values())

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no batch is in flight and no process is tracked.

        Args:
            timeout: Seconds to wait (None waits forever)

        Returns:
            True if idle, False on timeout
        """
        with self._idle:
            return self._idle.wait_for(self._is_idle, timeout)

    def dispose(self) -> None:
        """
        Release the runner.

        Pending batches are cancelled and bookkeeping is cleared, but
        running children are left alive. The adapter is unsubscribed, and
        disposed as well when the runner owns it; its readers keep draining
        the children until they exit.
        """
        if self._disposed:
            return
        self._disposed = True
        self._cancel_all(kill=False)
        self._adapter.unsubscribe(self._subscription)
        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._owns_adapter:
            self._adapter.dispose()
        self._logger.debug("Runner disposed")

    def __enter__(self) -> "ScriptRunner":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    # ------------------------------------------------------------------ #
    # Batch loop
    # ------------------------------------------------------------------ #

    def _run_batch(self, paths: list, resolver: Optional[Resolver], cancel: threading.Event) -> BatchResult:
        result = BatchResult(requested=len(paths))
        try:
            for index, path in enumerate(paths):
                if cancel.is_set():
                    result.cancelled = True
                    self._logger.info(f"Batch cancelled, {len(paths) - index} path(s) abandoned")
                    break
                self._start_one(path, resolver, result)
        finally:
            self._finish_batch(cancel)

        self._logger.info(
            f"Batch done: {result.started_count} started, {len(result.skipped)} skipped, "
            f"{len(result.failed)} failed (of {result.requested})"
        )
        return result

    def _finish_batch(self, cancel: threading.Event) -> None:
        with self._idle:
            self._batches.discard(cancel)
            self._idle.notify_all()

    def _start_one(self, path: Optional[PathLike], resolver: Optional[Resolver], result: BatchResult) -> None:
        if path is None or not str(path).strip():
            self._skip(result, "" if path is None else str(path), SKIP_BLANK)
            return

        path_str = str(path)
        if not os.path.isfile(path_str):
            self._skip(result, path_str, SKIP_MISSING)
            return

        spec = self._resolve(path_str, resolver)
        if spec is None:
            self._skip(result, path_str, SKIP_UNSUPPORTED)
            return

        try:
            handle = self._adapter.start(spec)
        except LaunchError as e:
            self._logger.warning(f"Could not start {path_str}: {e.reason}")
            self._fail(result, path_str, str(e))
            return
        except Exception as e:
            self._logger.exception(f"Unexpected error starting {path_str}: {e}")
            self._fail(result, path_str, str(e))
            return

        pid = handle.pid
        try:
            if pid > 0:
                record = TrackedProcess(pid=pid, path=path_str, extension=Path(path_str).suffix.lower())
                with self._lock:
                    self._running[pid] = _LiveEntry(record=record, handle=handle)
            else:
                self._logger.warning(f"No usable pid for {path_str}, process is untracked")

            self.on_started.publish(pid, path_str)
            handle.begin_capture()
        except Exception as e:
            self._logger.exception(f"Failed to supervise {path_str} (pid={pid}): {e}")
            self._untrack(pid, handle)
            try:
                handle.dispose()
            except Exception as dispose_error:
                self._logger.debug(f"Dispose of pid={pid} failed: {dispose_error}")
            self._fail(result, path_str, str(e))
            return

        self._logger.info(f"Started {path_str} (pid={pid})")
        result.add_started(pid, path_str)

    def _resolve(self, path: str, resolver: Optional[Resolver]) -> Optional[LaunchSpec]:
        spec = None
        if resolver is not None:
            try:
                spec = resolver(path)
            except Exception as e:
                self._logger.warning(f"Resolver failed for {path}: {e}")
                spec = None
        if spec is None:
            try:
                spec = self._default_resolver(path)
            except Exception as e:
                self._logger.warning(f"Default resolver failed for {path}: {e}")
                spec = None
        return spec

    def _skip(self, result: BatchResult, path: str, reason: str) -> None:
        self._logger.debug(f"Skipping {path or '<blank>'}: {reason}")
        result.add_skipped(path, reason)
        self.on_skipped.publish(path, reason)

    def _fail(self, result: BatchResult, path: str, message: str) -> None:
        result.add_failure(path, message)
        self.on_skipped.publish(path, f"{SKIP_LAUNCH_FAILED}: {message}")

    def _untrack(self, pid: int, handle: IProcessHandle) -> None:
        with self._idle:
            entry = self._running.get(pid)
            if entry is not None and entry.handle is handle:
                del self._running[pid]
                self._idle.notify_all()

    # ------------------------------------------------------------------ #
    # Adapter callbacks
    # ------------------------------------------------------------------ #

    def _handle_output(self, pid: int, text: str, is_error: bool) -> None:
        self.on_output.publish(pid, text, is_error)

    def _handle_exited(self, pid: int, exit_code: Optional[int]) -> None:
        entry = None
        with self._lock:
            if pid > 0:
                entry = self._running.pop(pid, None)
                if entry is not None:
                    entry.record.mark_exited(exit_code)
            self._pending_exits += 1

        try:
            if entry is None:
                self._logger.debug(f"Exit of untracked pid={pid} (code={exit_code})")
            else:
                self._logger.info(f"Finished {entry.record.path} (pid={pid}, exit code {exit_code})")

            self.on_exited.publish(pid, exit_code)
            if entry is not None:
                self.on_completed.publish(entry.record.copy())
        finally:
            with self._idle:
                self._pending_exits -= 1
                self._idle.notify_all()

    def _is_idle(self) -> bool:
        # Caller holds self._lock
        return not self._running and not self._batches and self._pending_exits == 0

    # ------------------------------------------------------------------ #
    # Cancellation
    # ------------------------------------------------------------------ #

    def _cancel_all(self, kill: bool) -> None:
        with self._lock:
            batches = list(self._batches)
            entries = list(self._running.values())

        for cancel in batches:
            cancel.set()

        if kill:
            for entry in entries:
                try:
                    entry.handle.kill()
                    self._logger.info(f"Killed pid={entry.record.pid} ({entry.record.path})")
                except TerminationError as e:
                    self._logger.warning(f"Kill ignored: {e}")
                except OSError as e:
                    self._logger.warning(f"Kill ignored for pid={entry.record.pid}: {e}")

        with self._idle:
            self._running.clear()
            self._idle.notify_all()

        if batches or entries:
            self._logger.info(
                f"Cancelled {len(batches)} batch(es), released {len(entries)} tracked process(es)"
                f"{' with kill' if kill else ''}"
            )

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise RunnerDisposedError("ScriptRunner has been disposed")
