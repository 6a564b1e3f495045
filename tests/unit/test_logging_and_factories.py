"""Test logging helpers and the runner/session factories."""

import logging

import pytest

from scriptdeck.shared.logging import setup_logger, get_logger, LoggerAdapter, ROOT_LOGGER_NAME
from scriptdeck.application.factories import create_runner, create_session, configure_logging
from scriptdeck.application.runner import ScriptRunner
from scriptdeck.infrastructure.config.loader import RunnerConfig
from scriptdeck.domain.exceptions import RunnerDisposedError
from scriptdeck.domain.models import LaunchSpec


def test_get_logger_is_namespaced():
    logger = get_logger("custom.module")
    assert logger.name == f"{ROOT_LOGGER_NAME}.custom.module"
    assert get_logger("scriptdeck.application.runner").name == "scriptdeck.application.runner"
    assert logging.getLogger(ROOT_LOGGER_NAME).handlers


def test_setup_logger_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logger("scriptdeck-test-file", level="debug", log_file=log_file)

    logger.debug("hello file")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert "hello file" in log_file.read_text(encoding="utf-8")
    assert "[DEBUG]" in log_file.read_text(encoding="utf-8")


def test_setup_logger_replaces_handlers():
    logger = setup_logger("scriptdeck-test-reset")
    setup_logger("scriptdeck-test-reset")
    assert len(logger.handlers) == 1


def test_logger_adapter_forwards(caplog):
    adapter = LoggerAdapter(logging.getLogger("scriptdeck-test-adapter"))
    with caplog.at_level(logging.INFO, logger="scriptdeck-test-adapter"):
        adapter.info("started", pid=12)

    assert caplog.records[0].getMessage() == "started"
    assert caplog.records[0].pid == 12


def test_configure_logging_level():
    configure_logging(RunnerConfig(log_level="WARNING"))
    assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.WARNING
    configure_logging(RunnerConfig())


def test_create_runner_from_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv("SCRIPTDECK_BATCH_WORKERS", raising=False)
    path = tmp_path / "scriptdeck.yaml"
    path.write_text("batch_workers: 2\npowershell_executable: pwsh\n")

    runner = create_runner(config_path=path)
    try:
        assert isinstance(runner, ScriptRunner)
        assert runner._executor._max_workers == 2
        assert runner._default_resolver("x.ps1").executable == "pwsh"
    finally:
        runner.dispose()
        configure_logging(RunnerConfig())


def test_create_session_owns_runner():
    session = create_session(RunnerConfig())
    runner = session.runner
    adapter = runner._adapter
    session.close()
    assert runner.is_disposed
    with pytest.raises(RunnerDisposedError):
        adapter.start(LaunchSpec(executable="cmd.exe"))
