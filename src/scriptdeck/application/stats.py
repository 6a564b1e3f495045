"""Thread-safe run counters with change notification."""

import threading
from typing import Optional

from scriptdeck.domain.models import StatsSnapshot
from scriptdeck.domain.protocols import ILogger
from scriptdeck.shared.events import EventHook
from scriptdeck.shared.logging import get_logger, LoggerAdapter


class StatsAggregator:
    """
    Keeps the launched/completed/error counters of a run.

    Every mutation publishes a fresh StatsSnapshot through on_stats_changed.
    The derived counts (total, selected, running) belong to the caller and
    are only combined in at get_snapshot() time; published snapshots carry
    zeros for them.
    """

    def __init__(self, logger: Optional[ILogger] = None):
        self._lock = threading.Lock()
        self._launched = 0
        self._completed = 0
        self._errors = 0
        self._logger = logger or LoggerAdapter(get_logger(__name__))
        self.on_stats_changed = EventHook("stats.on_stats_changed")

    @property
    def launched(self) -> int:
        with self._lock:
            return self._launched

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def errors(self) -> int:
        with self._lock:
            return self._errors

    def increment_launched(self, amount: int = 1) -> None:
        if amount <= 0:
            return
        with self._lock:
            self._launched += amount
        self._publish()

    def increment_completed(self, amount: int = 1) -> None:
        if amount <= 0:
            return
        with self._lock:
            self._completed += amount
        self._publish()

    def increment_errors(self, amount: int = 1) -> None:
        if amount <= 0:
            return
        with self._lock:
            self._errors += amount
        self._publish()

    def get_snapshot(self, total: int = 0, selected: int = 0, running: int = 0) -> StatsSnapshot:
        """
        Build an immutable snapshot.

        Args:
            total: Number of scripts known to the caller
            selected: Number of scripts selected for the run
            running: Number of processes currently running

        Returns:
            New StatsSnapshot
        """
        with self._lock:
            launched, completed, errors = self._launched, self._completed, self._errors
        return StatsSnapshot(
            total=total,
            selected=selected,
            running=running,
            completed=completed,
            errors=errors,
            launched=launched,
        )

    def reset(self) -> None:
        """Zero every counter in one step, then publish."""
        with self._lock:
            self._launched = 0
            self._completed = 0
            self._errors = 0
        self._publish()

    def _publish(self) -> None:
        errors = self.on_stats_changed.publish(self.get_snapshot())
        if errors:
            self._logger.debug(f"{len(errors)} stats subscriber(s) failed")
