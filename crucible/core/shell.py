"""
Local command execution
"""
import os
import signal
import subprocess
import threading
import time
from typing import IO, List, Optional

from .interfaces import CommandRunner
from .exceptions import ShellCommandFailed
from .logging import InstanceLogger, get_logger
from .utils import display_cmd

# Seconds before a local command is killed
LOCAL_COMMAND_TIMEOUT = 60000


class LocalCommandRunner(CommandRunner):
    """Runs shell commands on this machine, logging their output"""

    def __init__(
        self,
        logger: Optional[InstanceLogger] = None,
        timeout: float = LOCAL_COMMAND_TIMEOUT,
    ):
        self.logger = logger or InstanceLogger(get_logger(__name__))
        self.timeout = timeout

    def run(self, cmd: str, use_sudo: bool = False, subject: str = "local") -> None:
        """
        Execute a command in a subshell on the local system.

        Args:
            cmd: Command to execute
            use_sudo: Prefix the command with sudo
            subject: Label used in the BEGIN/END log lines

        Raises:
            ShellCommandFailed: If the command exits non-zero, times out
                or cannot be started
        """
        if use_sudo:
            cmd = f"sudo {cmd}"
        label = f"[{subject} command]"

        self.logger.info(f"{label} BEGIN ({display_cmd(cmd)})")
        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                cmd,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except OSError as e:
            raise ShellCommandFailed(f"Failed to run {display_cmd(cmd)}: {e}") from e

        stdout: List[str] = []
        stderr: List[str] = []
        lock = threading.Lock()
        pumps = [
            threading.Thread(target=self._pump, args=(proc.stdout, stdout, lock), daemon=True),
            threading.Thread(target=self._pump, args=(proc.stderr, stderr, lock), daemon=True),
        ]
        for pump in pumps:
            pump.start()

        try:
            returncode = proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            # grandchildren hold the pipes too, kill the whole group
            os.killpg(proc.pid, signal.SIGKILL)
            proc.wait()
            raise ShellCommandFailed(
                f"Command timed out after {self.timeout} seconds: {display_cmd(cmd)}"
            ) from e
        finally:
            for pump in pumps:
                pump.join()
            self.logger.flush()

        self.logger.info(f"{label} END ({time.monotonic() - start:.2f} seconds)")

        if returncode != 0:
            raise ShellCommandFailed(
                f"Expected process to exit with [0], but received '{returncode}'\n"
                f"---- Begin output of {cmd} ----\n"
                f"STDOUT: {''.join(stdout).strip()}\n"
                f"STDERR: {''.join(stderr).strip()}\n"
                f"---- End output of {cmd} ----"
            )

    def _pump(self, stream: IO[str], captured: List[str], lock: threading.Lock) -> None:
        """Log ``stream`` line by line as the command produces it"""
        with stream:
            for line in stream:
                captured.append(line)
                with lock:
                    self.logger.write(line)
