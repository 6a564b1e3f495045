import sys
import os
import threading
from typing import Dict, List, Optional, Set

import pytest

# Ensure src/ is importable without installing the package
SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from scriptdeck.domain.exceptions import LaunchError, TerminationError
from scriptdeck.domain.models import LaunchSpec
from scriptdeck.shared.events import EventHook


class FakeHandle:
    """Process handle that never touches the OS."""

    def __init__(self, pid: int, spec: LaunchSpec, adapter: "FakeAdapter"):
        self._pid = pid
        self.spec = spec
        self._adapter = adapter
        self.captured = False
        self.killed = False
        self.disposed = False
        self.kill_error: Optional[Exception] = None

    @property
    def pid(self) -> int:
        return self._pid

    def begin_capture(self) -> None:
        self.captured = True
        self._adapter.capture_order.append(self._pid)

    def kill(self) -> None:
        if self.kill_error is not None:
            raise self.kill_error
        self.killed = True

    def dispose(self) -> None:
        self.disposed = True


class FakeAdapter:
    """In-memory IProcessAdapter; tests drive output and exits by hand."""

    def __init__(self):
        self.on_output = EventHook("fake.on_output")
        self.on_exited = EventHook("fake.on_exited")
        self.started: List[LaunchSpec] = []
        self.handles: Dict[int, FakeHandle] = {}
        self.capture_order: List[int] = []
        self.fail_executables: Set[str] = set()
        self.pid_override: Optional[int] = None
        self.block_start: Optional[threading.Event] = None
        self.disposed = False
        self._next_pid = 1000

    def subscribe(self, on_output, on_exited):
        return self.on_output.subscribe(on_output), self.on_exited.subscribe(on_exited)

    def unsubscribe(self, token):
        self.on_output.unsubscribe(token[0])
        self.on_exited.unsubscribe(token[1])

    def start(self, spec: LaunchSpec) -> FakeHandle:
        if self.block_start is not None:
            self.block_start.wait(5)
        if spec.executable in self.fail_executables:
            raise LaunchError(spec.executable, "not found")
        if self.pid_override is not None:
            pid = self.pid_override
        else:
            self._next_pid += 1
            pid = self._next_pid
        handle = FakeHandle(pid, spec, self)
        self.started.append(spec)
        self.handles[pid] = handle
        return handle

    def emit(self, pid: int, text: str, is_error: bool = False) -> None:
        self.on_output.publish(pid, text, is_error)

    def exit(self, pid: int, code: Optional[int] = 0) -> None:
        self.on_exited.publish(pid, code)

    def dispose(self) -> None:
        self.disposed = True


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def script_dir(tmp_path):
    """Directory with one script of each interesting kind."""
    for name in ("a.ps1", "b.bat", "c.txt"):
        (tmp_path / name).write_text("echo hi\n")
    return tmp_path
