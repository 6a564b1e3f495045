"""Domain models for script orchestration."""

import os
import shlex
import subprocess
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Dict, List, Tuple, Union


@dataclass(frozen=True)
class LaunchSpec:
    """Describes how to start one process."""

    executable: str
    arguments: str = ""
    working_dir: Optional[Path] = None
    capture_output: bool = True
    show_window: bool = False
    env: Optional[Dict[str, str]] = None

    def __post_init__(self):
        if not self.executable or not self.executable.strip():
            raise ValueError("Executable must not be empty")

    def command_line(self) -> Union[List[str], str]:
        """
        Build the command handed to the OS.

        Windows receives a single command string so that the argument string
        reaches the interpreter untouched; elsewhere it is split POSIX-style.

        Returns:
            argv list, or a command string on Windows
        """
        if os.name == "nt":
            head = subprocess.list2cmdline([self.executable])
            return f"{head} {self.arguments}".strip()
        return [self.executable] + shlex.split(self.arguments)

    def with_env(self, **env: str) -> "LaunchSpec":
        """Return a copy with extra environment variables merged in."""
        merged = dict(self.env or {})
        merged.update(env)
        return replace(self, env=merged)


@dataclass
class TrackedProcess:
    """Bookkeeping entry for one live or just-exited process."""

    pid: int
    path: str
    extension: str
    started_at: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None
    exit_code: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.ended_at is None

    @property
    def duration(self) -> Optional[timedelta]:
        if self.ended_at is None:
            return None
        return self.ended_at - self.started_at

    def mark_exited(self, exit_code: Optional[int], ended_at: Optional[datetime] = None) -> None:
        """
        Stamp the exit of the process.

        Args:
            exit_code: OS exit code, None if it could not be determined
            ended_at: Exit timestamp (defaults to now)

        Raises:
            ValueError: If the record was already closed
        """
        if self.ended_at is not None:
            raise ValueError(f"Process {self.pid} already marked as exited")
        self.ended_at = ended_at or datetime.now()
        self.exit_code = exit_code

    def copy(self) -> "TrackedProcess":
        return replace(self)


@dataclass(frozen=True)
class StatsSnapshot:
    """Immutable point-in-time view of run counters."""

    total: int = 0
    selected: int = 0
    running: int = 0
    completed: int = 0
    errors: int = 0
    launched: int = 0

    def __post_init__(self):
        for name in ("total", "selected", "running", "completed", "errors", "launched"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")


@dataclass
class BatchResult:
    """Outcome of one start_many call."""

    requested: int = 0
    started: List[Tuple[int, str]] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def started_count(self) -> int:
        return len(self.started)

    def add_started(self, pid: int, path: str) -> None:
        self.started.append((pid, path))

    def add_skipped(self, path: str, reason: str) -> None:
        self.skipped.append((path, reason))

    def add_failure(self, path: str, message: str) -> None:
        """Record a path whose launch failed."""
        self.failed.append((path, message))
