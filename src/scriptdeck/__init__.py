"""Launch scripts as child processes, capture their output and count outcomes."""

from scriptdeck.domain import (
    LaunchSpec,
    TrackedProcess,
    StatsSnapshot,
    BatchResult,
    LaunchError,
    TerminationError,
    RunnerDisposedError,
)
from scriptdeck.infrastructure.process import ProcessAdapter, LaunchResolver
from scriptdeck.application import (
    ScriptRunner,
    StatsAggregator,
    RunSession,
    create_runner,
    create_session,
)

__version__ = "1.0.0"

__all__ = [
    "LaunchSpec",
    "TrackedProcess",
    "StatsSnapshot",
    "BatchResult",
    "LaunchError",
    "TerminationError",
    "RunnerDisposedError",
    "ProcessAdapter",
    "LaunchResolver",
    "ScriptRunner",
    "StatsAggregator",
    "RunSession",
    "create_runner",
    "create_session",
]
