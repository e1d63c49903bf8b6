"""Runs the external editor on a batch of files."""

import os
import platform
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import LaunchError, ToolNotFound
from ..models import RunMode
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Windows creation flags; the subprocess constants only exist on Windows.
DETACHED_PROCESS = getattr(subprocess, "DETACHED_PROCESS", 0x00000008)
CREATE_NEW_PROCESS_GROUP = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0x00000200)


@dataclass
class LaunchHandle:
    """What was started and, when attached, how it ended."""

    command: list[str]
    mode: RunMode
    pid: int | None = None

    # None in detached mode: the process is still running or unknown
    exit_status: int | None = None

    # Detached process, kept so it can be polled and reaped
    process: subprocess.Popen | None = field(default=None, repr=False, compare=False)

    def poll(self) -> int | None:
        """Exit status of a detached editor once it has finished, reaping it."""
        if self.process is not None:
            self.exit_status = self.process.poll()
        return self.exit_status

    @property
    def waited(self) -> bool:
        return self.mode == RunMode.ATTACHED


class ExternalProcessLauncher:
    """
    Starts an editor with every file passed as an argument.

    Attached launches block until the editor exits. Detached launches
    return as soon as the process exists and never report an exit status.
    """

    def __init__(self, system: str | None = None):
        """
        Args:
            system: Platform name as returned by ``platform.system()``;
                detected when omitted.
        """
        self.system = system or platform.system()

    def locate(self, tool_path: str) -> str:
        """
        Find the editor executable.

        An existing path is used as given; anything else is looked up on PATH.

        Raises:
            ToolNotFound: Neither works.
        """
        if not tool_path:
            raise ToolNotFound("<unset>")

        candidate = Path(tool_path).expanduser()
        if candidate.is_file() or (candidate.is_dir() and candidate.suffix == ".app"):
            return str(candidate)

        found = shutil.which(tool_path)
        if found is None:
            raise ToolNotFound(tool_path)
        return found

    def build_command(self, executable: str, files: Sequence[Path], mode: RunMode) -> list[str]:
        """Platform-specific argument list for launching ``executable``."""
        file_args = [os.fspath(f) for f in files]
        if self.system == "Darwin":
            # open -W waits for the application to quit
            wait = ["-W"] if mode == RunMode.ATTACHED else []
            return ["open", *wait, "-a", executable, *file_args]
        return [executable, *file_args]

    def launch(self, tool_path: str, files: Sequence[Path], mode: RunMode) -> LaunchHandle:
        """
        Run the editor on ``files``.

        Args:
            tool_path: Executable path or name
            files: Files to open, in order
            mode: Attached waits for exit; detached returns immediately

        Returns:
            LaunchHandle; ``exit_status`` is set only for attached runs

        Raises:
            ToolNotFound: The editor cannot be located
            LaunchError: The process could not be created
        """
        executable = self.locate(tool_path)
        command = self.build_command(executable, files, mode)
        logger.info(f"Launching ({mode.value}): {' '.join(command)}")

        try:
            if mode == RunMode.ATTACHED:
                completed = subprocess.run(command)
                logger.info(f"Editor exited with status {completed.returncode}")
                return LaunchHandle(
                    command=command, mode=mode, exit_status=completed.returncode
                )

            process = subprocess.Popen(command, **self._detach_options())
            logger.info(f"Editor started detached (pid {process.pid})")
            return LaunchHandle(command=command, mode=mode, pid=process.pid, process=process)

        except (OSError, ValueError, subprocess.SubprocessError) as e:
            raise LaunchError(f"Could not start {executable}: {e}") from e

    def _detach_options(self) -> dict:
        options = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
        }
        if self.system == "Windows":
            options["creationflags"] = DETACHED_PROCESS | CREATE_NEW_PROCESS_GROUP
        else:
            options["start_new_session"] = True
        return options
