"""Process launch and output capture on top of subprocess.Popen."""

import os
import subprocess
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

from scriptdeck.domain.models import LaunchSpec
from scriptdeck.domain.exceptions import (
    LaunchError,
    TerminationError,
    TransientIOError,
    RunnerDisposedError,
)
from scriptdeck.domain.protocols import OutputCallback, ExitCallback
from scriptdeck.shared.events import EventHook
from scriptdeck.shared.logging import get_logger

# Consecutive failed reads tolerated on one stream before capture gives up
MAX_CONSECUTIVE_READ_FAILURES = 3


class ProcessHandle:
    """
    One started child process.

    The handle is returned armed but idle: nothing is read and no exit is
    reported until begin_capture() is called. After that, one reader thread
    per redirected stream forwards complete lines, and a waiter thread
    reports the exit once both streams are drained.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        spec: LaunchSpec,
        emit_output: Callable[[int, str, bool], None],
        on_finished: Callable[["ProcessHandle", Optional[int]], None],
    ):
        self._process = process
        self._spec = spec
        self._emit_output = emit_output
        self._on_finished = on_finished
        self._lock = threading.Lock()
        self._capturing = False
        self._disposed = False
        self._exit_code: Optional[int] = None
        self._exited = threading.Event()
        self._readers: List[threading.Thread] = []
        self._logger = get_logger(__name__)

    @property
    def pid(self) -> int:
        pid = getattr(self._process, "pid", None)
        return pid if isinstance(pid, int) else -1

    @property
    def spec(self) -> LaunchSpec:
        return self._spec

    @property
    def exit_code(self) -> Optional[int]:
        return self._exit_code

    @property
    def has_exited(self) -> bool:
        return self._exited.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the exit has been reported; returns False on timeout."""
        return self._exited.wait(timeout)

    def begin_capture(self) -> None:
        """Start reader threads and the exit waiter. Repeated calls are ignored."""
        with self._lock:
            if self._capturing:
                return
            self._capturing = True
            disposed = self._disposed

        # A disposed handle still reports its exit, it just has nothing to read
        streams: List[Tuple[object, bool]] = []
        if not disposed and self._process.stdout is not None:
            streams.append((self._process.stdout, False))
        if not disposed and self._process.stderr is not None:
            streams.append((self._process.stderr, True))

        for stream, is_error in streams:
            reader = threading.Thread(
                target=self._pump,
                args=(stream, is_error),
                name=f"pid{self.pid}-{'stderr' if is_error else 'stdout'}",
                daemon=True,
            )
            self._readers.append(reader)
            reader.start()

        threading.Thread(target=self._wait_for_exit, name=f"pid{self.pid}-waiter", daemon=True).start()

    def _pump(self, stream, is_error: bool) -> None:
        pid = self.pid
        failures = 0
        try:
            while True:
                try:
                    line = stream.readline()
                except ValueError:
                    # Stream already closed
                    break
                except OSError as e:
                    failures += 1
                    error = TransientIOError(f"Read failed on pid={pid} {'stderr' if is_error else 'stdout'}: {e}")
                    self._logger.warning(str(error))
                    if getattr(stream, "closed", False) or failures >= MAX_CONSECUTIVE_READ_FAILURES:
                        break
                    continue

                if not line:
                    break
                failures = 0
                # Drained but not reported once disposed
                if not self._disposed:
                    self._emit_output(pid, line.rstrip("\r\n"), is_error)
        finally:
            # Closed by its own reader, never while another thread reads it
            self._close_stream(stream)

    def _wait_for_exit(self) -> None:
        for reader in self._readers:
            reader.join()

        code: Optional[int]
        try:
            code = self._process.wait()
        except OSError as e:
            self._logger.warning(f"Could not collect exit status of pid={self.pid}: {e}")
            code = None

        # Negative return codes mean the process was ended by a signal
        if code is not None and code < 0:
            self._logger.debug(f"pid={self.pid} terminated by signal {-code}")
            code = None

        self._exit_code = code
        self._close_streams()
        try:
            self._on_finished(self, code)
        finally:
            self._exited.set()

    def kill(self) -> None:
        """
        Force-terminate the process.

        Killing a process that has already exited is a no-op.

        Raises:
            TerminationError: If the OS refused the kill
        """
        if self._exited.is_set():
            return
        try:
            if self._process.poll() is not None:
                return
            self._process.kill()
        except ProcessLookupError:
            return
        except OSError as e:
            raise TerminationError(self.pid, str(e)) from e

    def dispose(self) -> None:
        """
        Stop reporting output and release the redirected streams.

        Returns immediately. Streams with an active reader are closed by
        that reader when the child closes its end; only streams nobody
        reads are closed here. The exit is still reported. Does not
        terminate the process.
        """
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            capturing = self._capturing
        if not capturing:
            self._close_streams()

    def _close_streams(self) -> None:
        for stream in (self._process.stdout, self._process.stderr):
            self._close_stream(stream)

    def _close_stream(self, stream) -> None:
        if stream is None:
            return
        try:
            stream.close()
        except OSError as e:
            self._logger.debug(f"Error closing stream of pid={self.pid}: {e}")


class ProcessAdapter:
    """
    Launches processes from a LaunchSpec and republishes their output and exit.

    Implements IProcessAdapter protocol. Events:
        on_output(pid, text, is_error)
        on_exited(pid, exit_code)
    """

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize adapter.

        Args:
            encoding: Text encoding used to decode child output
        """
        self._encoding = encoding
        self._logger = get_logger(__name__)
        self._lock = threading.Lock()
        self._live: Set[ProcessHandle] = set()
        self._disposed = False
        self.on_output = EventHook("adapter.on_output")
        self.on_exited = EventHook("adapter.on_exited")

    def subscribe(self, on_output: OutputCallback, on_exited: ExitCallback) -> Tuple[int, int]:
        """Register output/exit callbacks; returns a token for unsubscribe."""
        return self.on_output.subscribe(on_output), self.on_exited.subscribe(on_exited)

    def unsubscribe(self, token: Tuple[int, int]) -> None:
        output_token, exit_token = token
        self.on_output.unsubscribe(output_token)
        self.on_exited.unsubscribe(exit_token)

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._live)

    def start(self, spec: LaunchSpec) -> ProcessHandle:
        """
        Start a process.

        Args:
            spec: Launch specification

        Returns:
            Handle of the started process (capture not yet begun)

        Raises:
            LaunchError: If the process could not be created
            RunnerDisposedError: If the adapter was disposed
        """
        if spec is None:
            raise ValueError("spec is required")
        if self._disposed:
            raise RunnerDisposedError("ProcessAdapter has been disposed")

        cwd = Path(spec.working_dir) if spec.working_dir else None
        if cwd is not None and not cwd.is_dir():
            raise LaunchError(spec.executable, f"working directory does not exist: {cwd}")

        pipe = subprocess.PIPE if spec.capture_output else None
        try:
            process = subprocess.Popen(
                spec.command_line(),
                cwd=str(cwd) if cwd else None,
                env=self._build_env(spec.env),
                stdin=subprocess.DEVNULL,
                stdout=pipe,
                stderr=pipe,
                text=True,
                encoding=self._encoding,
                errors="replace",
                bufsize=1,
                creationflags=self._creation_flags(spec),
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            raise LaunchError(spec.executable, str(e)) from e

        handle = ProcessHandle(process, spec, self._emit_output, self._handle_finished)
        with self._lock:
            self._live.add(handle)
        self._logger.debug(f"Started pid={handle.pid}: {spec.executable} {spec.arguments}")
        return handle

    def _emit_output(self, pid: int, text: str, is_error: bool) -> None:
        self.on_output.publish(pid, text, is_error)

    def _handle_finished(self, handle: ProcessHandle, exit_code: Optional[int]) -> None:
        with self._lock:
            self._live.discard(handle)
        self.on_exited.publish(handle.pid, exit_code)

    @staticmethod
    def _build_env(extra: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if not extra:
            return None
        env = os.environ.copy()
        env.update({str(k): str(v) for k, v in extra.items()})
        return env

    @staticmethod
    def _creation_flags(spec: LaunchSpec) -> int:
        if os.name != "nt":
            return 0
        if spec.show_window:
            return subprocess.CREATE_NEW_CONSOLE
        return subprocess.CREATE_NO_WINDOW

    def dispose(self) -> None:
        """Dispose every live handle without waiting for it. Processes are not killed."""
        if self._disposed:
            return
        self._disposed = True
        with self._lock:
            handles = list(self._live)
            self._live.clear()
        for handle in handles:
            handle.dispose()
        self._logger.debug(f"Adapter disposed ({len(handles)} live handles released)")

    def __enter__(self) -> "ProcessAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()
