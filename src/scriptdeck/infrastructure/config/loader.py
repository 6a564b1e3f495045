"""Configuration loading and validation."""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, fields

from scriptdeck.domain.exceptions import ConfigurationError
from scriptdeck.shared.logging import get_logger

ENV_PREFIX = "SCRIPTDECK_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RunnerConfig:
    """Configuration for the script runner."""

    # Batch start loop
    batch_workers: int = 1

    # Interpreters used by the default resolver
    cmd_executable: str = "cmd.exe"
    powershell_executable: str = "powershell.exe"

    # Process options
    capture_output: bool = True
    show_window: bool = False
    encoding: str = "utf-8"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.log_file is not None and not isinstance(self.log_file, Path):
            self.log_file = Path(self.log_file)
        self.log_level = str(self.log_level).upper()
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if not isinstance(self.batch_workers, int) or self.batch_workers < 1:
            raise ConfigurationError(f"batch_workers must be a positive integer, got: {self.batch_workers}")

        if not self.cmd_executable:
            raise ConfigurationError("cmd_executable must not be empty")

        if not self.powershell_executable:
            raise ConfigurationError("powershell_executable must not be empty")

        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log_level: {self.log_level}")

        try:
            "".encode(self.encoding)
        except LookupError:
            raise ConfigurationError(f"Unknown encoding: {self.encoding}")


class ConfigLoader:
    """Loads and validates configuration from YAML files and environment variables."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            config_path: Optional path to YAML config file
        """
        self.config_path = Path(config_path) if config_path else Path("scriptdeck.yaml")
        self._logger = get_logger(__name__)

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> RunnerConfig:
        """
        Load configuration from file and environment.

        Environment variables take precedence over the config file, and
        runtime overrides take precedence over both.

        Returns:
            RunnerConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_dict: Dict[str, Any] = {}

        # Load from YAML if exists
        if self.config_path.exists():
            self._logger.info(f"Loading config from {self.config_path}")
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}")
            if not isinstance(yaml_config, dict):
                raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")
            config_dict.update(yaml_config)
        else:
            self._logger.warning(f"Config file not found: {self.config_path}")

        # Override with environment variables
        config_dict.update(self._load_from_env())

        if overrides:
            for k, v in overrides.items():
                if v is None:
                    continue
                config_dict[k] = v

        valid_fields = {f.name for f in fields(RunnerConfig)}
        unknown = sorted(set(config_dict) - valid_fields)
        if unknown:
            self._logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        filtered_config = {k: v for k, v in config_dict.items() if k in valid_fields}

        try:
            return RunnerConfig(**filtered_config)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        if workers := os.getenv(f"{ENV_PREFIX}BATCH_WORKERS"):
            try:
                env_config["batch_workers"] = int(workers)
            except ValueError:
                self._logger.warning(f"Invalid {ENV_PREFIX}BATCH_WORKERS value: {workers}")

        if cmd := os.getenv(f"{ENV_PREFIX}CMD"):
            env_config["cmd_executable"] = cmd

        if powershell := os.getenv(f"{ENV_PREFIX}POWERSHELL"):
            env_config["powershell_executable"] = powershell

        if capture := os.getenv(f"{ENV_PREFIX}CAPTURE_OUTPUT"):
            env_config["capture_output"] = capture.lower() in ("true", "1", "yes")

        if show_window := os.getenv(f"{ENV_PREFIX}SHOW_WINDOW"):
            env_config["show_window"] = show_window.lower() in ("true", "1", "yes")

        if encoding := os.getenv(f"{ENV_PREFIX}ENCODING"):
            env_config["encoding"] = encoding

        if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            env_config["log_level"] = log_level.upper()

        if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            env_config["log_file"] = Path(log_file)

        return env_config


def load_config(path: Optional[Path] = None, **overrides) -> RunnerConfig:
    """Convenience wrapper around ConfigLoader(path).load(overrides)."""
    return ConfigLoader(path).load(overrides or None)
