"""Default extension-based launch resolution."""

from pathlib import Path
from typing import Optional

from scriptdeck.domain.models import LaunchSpec
from scriptdeck.shared.logging import get_logger
from scriptdeck.shared.types import PathLike

logger = get_logger(__name__)

BATCH_EXTENSION = ".bat"
POWERSHELL_EXTENSION = ".ps1"
SUPPORTED_EXTENSIONS = (BATCH_EXTENSION, POWERSHELL_EXTENSION)


class LaunchResolver:
    """
    Maps a script path to a LaunchSpec by file extension.

    .bat runs through the command shell, .ps1 through the PowerShell host.
    Anything else resolves to None and is skipped by the runner.
    """

    def __init__(
        self,
        cmd_executable: str = "cmd.exe",
        powershell_executable: str = "powershell.exe",
        capture_output: bool = True,
        show_window: bool = False,
    ):
        self.cmd_executable = cmd_executable
        self.powershell_executable = powershell_executable
        self.capture_output = capture_output
        self.show_window = show_window

    @classmethod
    def from_config(cls, config) -> "LaunchResolver":
        """Build a resolver from a RunnerConfig."""
        return cls(
            cmd_executable=config.cmd_executable,
            powershell_executable=config.powershell_executable,
            capture_output=config.capture_output,
            show_window=config.show_window,
        )

    def __call__(self, path: PathLike) -> Optional[LaunchSpec]:
        return self.resolve(path)

    def resolve(self, path: PathLike) -> Optional[LaunchSpec]:
        """
        Resolve a script path.

        Args:
            path: Script file path

        Returns:
            LaunchSpec, or None for unsupported extensions
        """
        script = Path(path)
        ext = script.suffix.lower()
        if not ext:
            return None

        working_dir = script.parent

        if ext == BATCH_EXTENSION:
            executable = self.cmd_executable
            arguments = f'/c "{script}"'
        elif ext == POWERSHELL_EXTENSION:
            executable = self.powershell_executable
            arguments = f'-ExecutionPolicy Bypass -NoLogo -NoProfile -File "{script}"'
        else:
            logger.debug(f"No launcher for extension '{ext}': {script}")
            return None

        return LaunchSpec(
            executable=executable,
            arguments=arguments,
            working_dir=working_dir,
            capture_output=self.capture_output,
            show_window=self.show_window,
        )


default_resolver = LaunchResolver()


def resolve_launch_spec(path: PathLike) -> Optional[LaunchSpec]:
    """Resolve a path with the default interpreters."""
    return default_resolver.resolve(path)
