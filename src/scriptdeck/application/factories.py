"""Factories wiring runners and sessions from configuration."""

from pathlib import Path
from typing import Optional

from scriptdeck.application.runner import ScriptRunner
from scriptdeck.application.session import RunSession
from scriptdeck.application.stats import StatsAggregator
from scriptdeck.infrastructure.config.loader import RunnerConfig, load_config
from scriptdeck.infrastructure.process.adapter import ProcessAdapter
from scriptdeck.infrastructure.process.resolver import LaunchResolver
from scriptdeck.shared.logging import setup_logger, ROOT_LOGGER_NAME


def configure_logging(config: RunnerConfig) -> None:
    """Apply the logging section of a config to the package logger."""
    setup_logger(ROOT_LOGGER_NAME, level=config.log_level, log_file=config.log_file)


def create_runner(config: Optional[RunnerConfig] = None, config_path: Optional[Path] = None) -> ScriptRunner:
    """
    Create a ScriptRunner from configuration.

    Args:
        config: Ready configuration (loaded from config_path/env if omitted)
        config_path: Optional YAML file

    Returns:
        Runner with a ProcessAdapter and an extension resolver built from config
    """
    if config is None:
        config = load_config(config_path)
        configure_logging(config)
    return ScriptRunner(
        adapter=ProcessAdapter(encoding=config.encoding),
        resolver=LaunchResolver.from_config(config),
        batch_workers=config.batch_workers,
        owns_adapter=True,
    )


def create_session(config: Optional[RunnerConfig] = None, config_path: Optional[Path] = None) -> RunSession:
    """Create a RunSession that owns a freshly configured runner."""
    runner = create_runner(config, config_path)
    return RunSession(runner, StatsAggregator(), owns_runner=True)
