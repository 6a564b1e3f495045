"""Domain exceptions for script orchestration."""

from typing import Optional


class DomainException(Exception):
    """Base exception for all domain errors."""
    pass


class LaunchError(DomainException):
    """Raised when the OS could not create a process for a script."""

    def __init__(self, executable: str, reason: str, path: Optional[str] = None):
        self.executable = executable
        self.reason = reason
        self.path = path
        target = path or executable
        super().__init__(f"Failed to launch {target}: {reason}")


class TransientIOError(DomainException):
    """Raised when reading a line from a child process stream fails."""
    pass


class SubscriberError(DomainException):
    """Wraps an exception raised by an event subscriber."""
    pass


class TerminationError(DomainException):
    """Raised when a forced kill of a child process fails."""

    def __init__(self, pid: int, reason: str):
        self.pid = pid
        self.reason = reason
        super().__init__(f"Failed to terminate pid={pid}: {reason}")


class ConfigurationError(DomainException):
    """Raised when configuration is invalid."""
    pass


class RunnerDisposedError(DomainException):
    """Raised when a disposed runner or adapter is used."""
    pass
