"""Test configuration loader."""

from pathlib import Path

import pytest

from scriptdeck.infrastructure.config import ConfigLoader, RunnerConfig, load_config
from scriptdeck.domain.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BATCH_WORKERS", "CMD", "POWERSHELL", "CAPTURE_OUTPUT",
                 "SHOW_WINDOW", "ENCODING", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(f"SCRIPTDECK_{name}", raising=False)


def test_defaults_when_file_missing(tmp_path):
    config = ConfigLoader(tmp_path / "missing.yaml").load()

    assert config == RunnerConfig()
    assert config.batch_workers == 1
    assert config.powershell_executable == "powershell.exe"


def test_load_from_yaml(tmp_path):
    path = tmp_path / "scriptdeck.yaml"
    path.write_text(
        "batch_workers: 3\n"
        "powershell_executable: pwsh\n"
        "log_level: debug\n"
        "log_file: logs/run.log\n"
    )

    config = ConfigLoader(path).load()

    assert config.batch_workers == 3
    assert config.powershell_executable == "pwsh"
    assert config.log_level == "DEBUG"
    assert config.log_file == Path("logs/run.log")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "scriptdeck.yaml"
    path.write_text("batch_workers: 3\ncapture_output: true\n")
    monkeypatch.setenv("SCRIPTDECK_BATCH_WORKERS", "5")
    monkeypatch.setenv("SCRIPTDECK_CAPTURE_OUTPUT", "no")
    monkeypatch.setenv("SCRIPTDECK_CMD", "cmd32.exe")

    config = ConfigLoader(path).load()

    assert config.batch_workers == 5
    assert config.capture_output is False
    assert config.cmd_executable == "cmd32.exe"


def test_invalid_env_value_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("SCRIPTDECK_BATCH_WORKERS", "many")
    config = ConfigLoader(tmp_path / "none.yaml").load()
    assert config.batch_workers == 1


def test_runtime_overrides_win(tmp_path, monkeypatch):
    monkeypatch.setenv("SCRIPTDECK_LOG_LEVEL", "warning")
    config = load_config(tmp_path / "none.yaml", log_level="ERROR", encoding=None)

    assert config.log_level == "ERROR"
    assert config.encoding == "utf-8"


def test_unknown_keys_are_dropped(tmp_path):
    path = tmp_path / "scriptdeck.yaml"
    path.write_text("batch_workers: 2\nretry: 5\n")

    config = ConfigLoader(path).load()

    assert config.batch_workers == 2
    assert not hasattr(config, "retry")


@pytest.mark.parametrize("kwargs", [
    {"batch_workers": 0},
    {"log_level": "LOUD"},
    {"encoding": "not-a-codec"},
    {"cmd_executable": ""},
])
def test_validation_errors(kwargs):
    with pytest.raises(ConfigurationError):
        RunnerConfig(**kwargs)


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / "scriptdeck.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        ConfigLoader(path).load()


def test_malformed_yaml_rejected(tmp_path):
    path = tmp_path / "scriptdeck.yaml"
    path.write_text("batch_workers: [1, 2\n")
    with pytest.raises(ConfigurationError):
        ConfigLoader(path).load()
