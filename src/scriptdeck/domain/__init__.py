"""Domain layer package."""

from .models import LaunchSpec, TrackedProcess, StatsSnapshot, BatchResult
from .exceptions import (
    DomainException,
    LaunchError,
    TransientIOError,
    SubscriberError,
    TerminationError,
    ConfigurationError,
    RunnerDisposedError,
)
from .protocols import (
    IProcessHandle,
    IProcessAdapter,
    ILaunchResolver,
    ILogger,
)

__all__ = [
    # Models
    "LaunchSpec",
    "TrackedProcess",
    "StatsSnapshot",
    "BatchResult",
    # Exceptions
    "DomainException",
    "LaunchError",
    "TransientIOError",
    "SubscriberError",
    "TerminationError",
    "ConfigurationError",
    "RunnerDisposedError",
    # Protocols
    "IProcessHandle",
    "IProcessAdapter",
    "ILaunchResolver",
    "ILogger",
]
