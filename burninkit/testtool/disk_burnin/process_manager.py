"""
Disk Burn-In Process Manager

Runs the external tools used by the burn-in sequence: short-lived smartctl
invocations and the long-running badblocks child process.
"""

import os
import subprocess
from pathlib import Path
from typing import IO, List, Optional

import psutil

from .exceptions import BurnInProcessError, BurnInTimeoutError
from burninkit.logger import get_module_logger

logger = get_module_logger(__name__)

# smartctl exit status bits that mean the command never reached the drive
SMARTCTL_COMMAND_LINE_ERROR = 0x01
SMARTCTL_DEVICE_OPEN_FAILED = 0x02
SMARTCTL_FATAL_MASK = SMARTCTL_COMMAND_LINE_ERROR | SMARTCTL_DEVICE_OPEN_FAILED


class BurnInProcessManager:
    """
    Process manager for smartctl and badblocks.

    This class handles:
    - Blocking smartctl invocations with a timeout
    - Starting one long-running child process with output sent to a file
    - PID tracking, status checks and termination
    - Detecting foreign processes already addressing a device (via psutil)

    Only one child process is tracked at a time.

    Example:
        >>> manager = BurnInProcessManager()
        >>> result = manager.run_smartctl(['-i'], '/dev/sdb')
        >>> pid = manager.start_process(['badblocks', '-sv', '/dev/sdb'], './bb.progress')
        >>> while manager.is_running():
        ...     time.sleep(60)
        >>> manager.returncode()
        0
    """

    def __init__(
        self,
        smartctl_path: str = 'smartctl',
        badblocks_path: str = 'badblocks',
        command_timeout: float = 60,
    ):
        """
        Initialize process manager.

        Args:
            smartctl_path: smartctl executable (name on PATH or full path)
            badblocks_path: badblocks executable (name on PATH or full path)
            command_timeout: Default timeout for blocking commands in seconds
        """
        self.smartctl_path = smartctl_path
        self.badblocks_path = badblocks_path
        self.command_timeout = command_timeout

        # Process tracking
        self._process: Optional[subprocess.Popen] = None
        self._pid: Optional[int] = None
        self._output: Optional[IO] = None

    # ------------------------------------------------------------------
    # Blocking commands
    # ------------------------------------------------------------------

    def run_command(self, cmd: List[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """
        Run a command to completion and capture its output.

        Args:
            cmd: Command and arguments
            timeout: Timeout in seconds (default: ``command_timeout``)

        Returns:
            subprocess.CompletedProcess with text stdout/stderr; undecodable
            bytes in vendor strings are replaced

        Raises:
            BurnInProcessError: If the executable cannot be started
            BurnInTimeoutError: If the command does not return in time
        """
        timeout = timeout or self.command_timeout
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                encoding='utf-8',
                errors='replace',
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise BurnInTimeoutError(f"Command timed out after {timeout} seconds: {' '.join(cmd)}")
        except OSError as e:
            raise BurnInProcessError(f"Failed to run {cmd[0]}: {e}")

    def run_smartctl(self, args: List[str], device: str) -> subprocess.CompletedProcess:
        """
        Run smartctl against a device.

        Args:
            args: smartctl options, e.g. ``['-t', 'short']``
            device: Device path

        Returns:
            subprocess.CompletedProcess
        """
        return self.run_command([self.smartctl_path] + list(args) + [device])

    @staticmethod
    def smartctl_failed(result: subprocess.CompletedProcess) -> bool:
        """True if smartctl could not parse its arguments or open the device."""
        return bool(result.returncode & SMARTCTL_FATAL_MASK)

    # ------------------------------------------------------------------
    # Long-running child process
    # ------------------------------------------------------------------

    def start_process(self, cmd: List[str], output_path: str) -> int:
        """
        Start a child process with stdout and stderr sent to a file.

        Args:
            cmd: Command and arguments
            output_path: File receiving the process output (truncated)

        Returns:
            int: Process ID (PID)

        Raises:
            BurnInProcessError: If a process is already tracked or the start fails
        """
        if self.is_running():
            raise BurnInProcessError(f"Process {self._pid} is still running")
        self._release()

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Starting: {' '.join(cmd)}")

        try:
            self._output = open(output_path, 'w', encoding='utf-8')
            self._process = subprocess.Popen(
                cmd,
                stdout=self._output,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
            )
        except (OSError, subprocess.SubprocessError) as e:
            self._release()
            raise BurnInProcessError(f"Failed to start {cmd[0]}: {e}")

        self._pid = self._process.pid
        return self._pid

    def returncode(self) -> Optional[int]:
        """
        Exit status of the tracked process.

        Returns:
            None while the process is running (or when nothing is tracked),
            otherwise its exit status.
        """
        if self._process is None:
            return None
        code = self._process.poll()
        if code is not None and self._output is not None:
            self._output.close()
            self._output = None
        return code

    def is_running(self) -> bool:
        """
        Check if the tracked process is running.

        Returns:
            bool: True if process is running
        """
        if self._process is None:
            return False
        return self._process.poll() is None

    def get_pid(self) -> Optional[int]:
        """PID of the tracked process while it runs, else None."""
        if self.is_running():
            return self._pid
        return None

    def stop_process(self, timeout: float = 10) -> bool:
        """
        Stop the tracked process gracefully, killing it after ``timeout``.

        Returns:
            bool: True if process stopped

        Raises:
            BurnInProcessError: If process cannot be stopped
        """
        if not self.is_running():
            self._release()
            return True

        try:
            self._process.terminate()
            try:
                self._process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait(timeout=5)
        except (OSError, subprocess.SubprocessError) as e:
            raise BurnInProcessError(f"Failed to stop process {self._pid}: {e}")

        logger.info(f"Process {self._pid} stopped")
        self._release()
        return True

    def kill_process(self) -> bool:
        """
        Force kill the tracked process immediately.

        Raises:
            BurnInProcessError: If process cannot be killed
        """
        if not self.is_running():
            self._release()
            return True

        try:
            self._process.kill()
            self._process.wait(timeout=5)
        except (OSError, subprocess.SubprocessError) as e:
            raise BurnInProcessError(f"Failed to kill process {self._pid}: {e}")

        self._release()
        return True

    def find_processes_for_device(self, executable: str, device: str) -> List[int]:
        """
        Find running processes of ``executable`` with ``device`` on their command line.

        Args:
            executable: Executable name or path, e.g. ``badblocks``
            device: Device path

        Returns:
            List[int]: PIDs of matching processes (excluding our own child)
        """
        name = os.path.basename(executable)
        pids = []
        for process in psutil.process_iter(['pid', 'name', 'cmdline']):
            try:
                cmdline = process.info.get('cmdline') or []
                if process.info.get('name') != name:
                    continue
                if device in cmdline and process.info['pid'] != self._pid:
                    pids.append(process.info['pid'])
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return pids

    def _release(self) -> None:
        if self._output is not None:
            self._output.close()
            self._output = None
        self._process = None
        self._pid = None
