"""Protocol definitions for dependency inversion."""

from typing import Protocol, Optional, Callable

from .models import LaunchSpec


OutputCallback = Callable[[int, str, bool], None]
ExitCallback = Callable[[int, Optional[int]], None]


class IProcessHandle(Protocol):
    """Interface for one started OS process."""

    @property
    def pid(self) -> int:
        """OS process id (values <= 0 mean untracked)."""
        ...

    def begin_capture(self) -> None:
        """Start reading output streams and watching for exit."""
        ...

    def kill(self) -> None:
        """Force-terminate the process."""
        ...

    def dispose(self) -> None:
        """Release OS resources held for the process."""
        ...


class IProcessAdapter(Protocol):
    """Interface for launching processes and capturing their output."""

    def start(self, spec: LaunchSpec) -> IProcessHandle:
        """Start a process described by spec."""
        ...

    def subscribe(self, on_output: OutputCallback, on_exited: ExitCallback) -> object:
        """Register output/exit callbacks; returns a subscription token."""
        ...

    def unsubscribe(self, token: object) -> None:
        """Remove callbacks registered with subscribe."""
        ...

    def dispose(self) -> None:
        """Release every resource still held by the adapter."""
        ...


class ILaunchResolver(Protocol):
    """Interface for turning a script path into a launch specification."""

    def __call__(self, path: str) -> Optional[LaunchSpec]:
        """Resolve path, or return None when it should be skipped."""
        ...


class ILogger(Protocol):
    """Interface for logging."""

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        ...

    def exception(self, message: str, **kwargs) -> None:
        """Log exception with traceback."""
        ...
