"""Configuration package."""

from .loader import ConfigLoader, RunnerConfig, load_config

__all__ = ["ConfigLoader", "RunnerConfig", "load_config"]
