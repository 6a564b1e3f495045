"""One interactive run: a runner, its counters and the history of finished scripts."""

import threading
from concurrent.futures import Future
from typing import Iterable, List, Optional, Tuple

from scriptdeck.application.runner import ScriptRunner, Resolver, SKIP_LAUNCH_FAILED
from scriptdeck.application.stats import StatsAggregator
from scriptdeck.domain.models import BatchResult, StatsSnapshot, TrackedProcess
from scriptdeck.domain.exceptions import RunnerDisposedError
from scriptdeck.shared.logging import get_logger
from scriptdeck.shared.types import PathLike


class RunSession:
    """
    Drives a StatsAggregator from the events of a ScriptRunner.

    launched  +1 per started process
    completed +1 per exit
    errors    +1 per non-zero (or unknown) exit code and per failed launch
    """

    def __init__(
        self,
        runner: ScriptRunner,
        stats: Optional[StatsAggregator] = None,
        owns_runner: bool = False,
    ):
        if runner is None:
            raise TypeError("runner is required")
        self.runner = runner
        self.stats = stats or StatsAggregator()
        self._owns_runner = owns_runner
        self._lock = threading.Lock()
        self._history: List[TrackedProcess] = []
        self._selected: Tuple[str, ...] = ()
        self._total = 0
        self._closed = False
        self._logger = get_logger(__name__)

        self._tokens = [
            (runner.on_started, runner.on_started.subscribe(self._on_started)),
            (runner.on_exited, runner.on_exited.subscribe(self._on_exited)),
            (runner.on_skipped, runner.on_skipped.subscribe(self._on_skipped)),
            (runner.on_completed, runner.on_completed.subscribe(self._on_completed)),
        ]

    @property
    def total(self) -> int:
        return self._total

    @property
    def selected(self) -> Tuple[str, ...]:
        return self._selected

    @property
    def history(self) -> Tuple[TrackedProcess, ...]:
        """Closed process records of the current run, in exit order."""
        with self._lock:
            return tuple(self._history)

    def select(self, paths: Iterable[PathLike], total: Optional[int] = None) -> None:
        """
        Record the scripts chosen for the next run.

        Args:
            paths: Selected script paths
            total: Number of scripts known overall (defaults to the selection size)
        """
        self._selected = tuple(str(p) for p in paths)
        self._total = len(self._selected) if total is None else max(0, total)

    def run(self, paths: Optional[Iterable[PathLike]] = None, resolver: Optional[Resolver] = None) -> "Future[BatchResult]":
        """
        Reset counters and history, then start the selection.

        Args:
            paths: Scripts to run (replaces the current selection when given)
            resolver: Optional per-call resolver

        Returns:
            Future of the batch result
        """
        if self._closed:
            raise RunnerDisposedError("RunSession has been closed")
        if paths is not None:
            selection = [str(p) for p in paths]
            self.select(selection, total=max(self._total, len(selection)))
        with self._lock:
            self._history.clear()
        self.stats.reset()
        self._logger.info(f"Running {len(self._selected)} of {self._total} script(s)")
        return self.runner.start_many(self._selected, resolver)

    def stop(self, kill: bool = True) -> None:
        """Cancel the pending batch and, by default, kill tracked processes."""
        self.runner.cancel_all(kill=kill)

    def snapshot(self) -> StatsSnapshot:
        return self.stats.get_snapshot(
            total=self._total,
            selected=len(self._selected),
            running=self.runner.running_count,
        )

    def summary(self) -> str:
        snap = self.snapshot()
        return (
            f"Launched: {snap.launched} | Completed: {snap.completed} | "
            f"Errors: {snap.errors} | Running: {snap.running} | "
            f"Selected: {snap.selected}/{snap.total}"
        )

    def close(self) -> None:
        """Detach from the runner (and dispose it when owned)."""
        if self._closed:
            return
        self._closed = True
        for hook, token in self._tokens:
            hook.unsubscribe(token)
        if self._owns_runner:
            self.runner.dispose()

    def __enter__(self) -> "RunSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _on_started(self, pid: int, path: str) -> None:
        self.stats.increment_launched()

    def _on_exited(self, pid: int, exit_code: Optional[int]) -> None:
        self.stats.increment_completed()
        if exit_code != 0:
            self.stats.increment_errors()

    def _on_skipped(self, path: str, reason: str) -> None:
        if reason.startswith(SKIP_LAUNCH_FAILED):
            self._logger.error(f"Launch failed for {path}: {reason}")
            self.stats.increment_errors()

    def _on_completed(self, record: TrackedProcess) -> None:
        with self._lock:
            self._history.append(record)
