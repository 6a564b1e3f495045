"""Application layer: runner, counters and session wiring."""

from .runner import ScriptRunner
from .stats import StatsAggregator
from .session import RunSession
from .factories import create_runner, create_session, configure_logging

__all__ = [
    "ScriptRunner",
    "StatsAggregator",
    "RunSession",
    "create_runner",
    "create_session",
    "configure_logging",
]
