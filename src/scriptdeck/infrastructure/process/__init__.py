"""Process launching and capture."""

from .adapter import ProcessAdapter, ProcessHandle
from .resolver import LaunchResolver, resolve_launch_spec, SUPPORTED_EXTENSIONS

__all__ = [
    "ProcessAdapter",
    "ProcessHandle",
    "LaunchResolver",
    "resolve_launch_spec",
    "SUPPORTED_EXTENSIONS",
]
