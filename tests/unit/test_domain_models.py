"""
Unit tests for domain models.
"""

import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from scriptdeck.domain.models import (
    LaunchSpec,
    TrackedProcess,
    StatsSnapshot,
    BatchResult,
)


class TestLaunchSpec:
    """Test LaunchSpec model."""

    def test_create_spec(self):
        """Test creating a spec with defaults."""
        spec = LaunchSpec(executable="cmd.exe", arguments='/c "x.bat"')

        assert spec.capture_output is True
        assert spec.show_window is False
        assert spec.working_dir is None

    def test_spec_is_immutable(self):
        """Test spec cannot be modified."""
        spec = LaunchSpec(executable="cmd.exe")
        with pytest.raises(Exception):
            spec.executable = "other"

    def test_empty_executable_rejected(self):
        """Test validation of executable."""
        with pytest.raises(ValueError):
            LaunchSpec(executable="  ")

    @pytest.mark.skipif(os.name == "nt", reason="POSIX argument splitting")
    def test_command_line_posix(self):
        """Test quoted arguments are split POSIX-style."""
        spec = LaunchSpec(executable="/bin/sh", arguments='-c "echo hi there"')
        assert spec.command_line() == ["/bin/sh", "-c", "echo hi there"]

    @pytest.mark.skipif(os.name != "nt", reason="Windows command string")
    def test_command_line_windows(self):
        """Test Windows receives the raw argument string."""
        spec = LaunchSpec(executable="cmd.exe", arguments='/c "C:\\x y\\a.bat"')
        assert spec.command_line() == 'cmd.exe /c "C:\\x y\\a.bat"'

    def test_with_env(self):
        """Test env merge returns a new spec."""
        spec = LaunchSpec(executable="python", env={"A": "1"})
        updated = spec.with_env(B="2")

        assert updated.env == {"A": "1", "B": "2"}
        assert spec.env == {"A": "1"}


class TestTrackedProcess:
    """Test TrackedProcess model."""

    def test_new_record_is_running(self):
        record = TrackedProcess(pid=42, path="/x/a.ps1", extension=".ps1")

        assert record.is_running
        assert record.exit_code is None
        assert record.duration is None

    def test_mark_exited(self):
        """Test closing a record stamps end time and code."""
        start = datetime(2024, 1, 1, 12, 0, 0)
        record = TrackedProcess(pid=42, path="a.bat", extension=".bat", started_at=start)

        record.mark_exited(3, ended_at=start + timedelta(seconds=5))

        assert not record.is_running
        assert record.exit_code == 3
        assert record.duration == timedelta(seconds=5)

    def test_mark_exited_only_once(self):
        record = TrackedProcess(pid=1, path="a.bat", extension=".bat")
        record.mark_exited(0)
        with pytest.raises(ValueError):
            record.mark_exited(1)

    def test_copy_is_independent(self):
        record = TrackedProcess(pid=7, path="a.bat", extension=".bat")
        copy = record.copy()
        record.mark_exited(0)

        assert copy.is_running
        assert copy == TrackedProcess(pid=7, path="a.bat", extension=".bat", started_at=record.started_at)


class TestStatsSnapshot:
    """Test StatsSnapshot model."""

    def test_defaults_are_zero(self):
        snap = StatsSnapshot()
        assert (snap.total, snap.selected, snap.running, snap.completed, snap.errors, snap.launched) == (0, 0, 0, 0, 0, 0)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            StatsSnapshot(errors=-1)

    def test_frozen(self):
        snap = StatsSnapshot(completed=1)
        with pytest.raises(Exception):
            snap.completed = 2


class TestBatchResult:
    """Test BatchResult model."""

    def test_accumulates(self):
        result = BatchResult(requested=3)
        result.add_started(10, "a.ps1")
        result.add_skipped("c.txt", "no launch specification")
        result.add_failure("b.bat", "not found")

        assert result.started_count == 1
        assert result.skipped == [("c.txt", "no launch specification")]
        assert result.failed == [("b.bat", "not found")]
        assert not result.cancelled
