"""Shared utilities package."""

from .logging import setup_logger, get_logger, LoggerAdapter
from .events import EventHook
from .types import PathLike

__all__ = [
    "setup_logger",
    "get_logger",
    "LoggerAdapter",
    "EventHook",
    "PathLike",
]
