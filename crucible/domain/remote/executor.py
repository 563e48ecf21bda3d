"""
Remote command execution over SSH
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import paramiko

from ...core.constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from ...core.exceptions import ActionFailed
from ...core.interfaces import ConnectionFactory
from ...core.logging import InstanceLogger
from ...core.utils import collapse_whitespace
from ...infrastructure.connection import RemoteConnectionFactory


@dataclass(frozen=True)
class SSHTarget:
    """Where and as whom to connect"""
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = None
    key: Optional[str] = None
    timeout: float = DEFAULT_SSH_TIMEOUT

    def as_params(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "user": self.user,
            "port": self.port,
            "password": self.password,
            "key": self.key,
            "timeout": self.timeout,
        }

    def __str__(self) -> str:
        return f"{self.user}@{self.host}:{self.port}"


class RemoteExecutor:
    """
    Runs one command per SSH session and fails on non-zero exit.

    Output is streamed into the instance logger as it arrives; the
    calling thread blocks until the remote command exits.
    """

    def __init__(
        self,
        target: SSHTarget,
        logger: InstanceLogger,
        connection_factory: Optional[ConnectionFactory] = None,
    ):
        self.target = target
        self.logger = logger
        self.connection_factory = connection_factory or RemoteConnectionFactory()
        self.exit_code: Optional[int] = None

    def run(self, cmd: str) -> int:
        """
        Execute ``cmd`` on the target.

        Returns:
            The exit status (always 0)

        Raises:
            ActionFailed: On non-zero exit or any SSH/socket error
        """
        self.exit_code = None
        try:
            with self.connection_factory.create(self.target.as_params()) as client:
                client.exec_streaming(
                    cmd,
                    on_stdout=self._on_data,
                    on_stderr=self._on_data,
                    on_exit_status=self._on_exit_status,
                )
        except (paramiko.SSHException, OSError) as e:
            raise ActionFailed(str(e) or type(e).__name__) from e
        finally:
            self.logger.flush()

        if self.exit_code != 0:
            raise ActionFailed(
                f"SSH exited ({self.exit_code}) for command: [{collapse_whitespace(cmd)}]"
            )
        return self.exit_code

    def _on_data(self, data: str) -> None:
        self.logger.write(data)

    def _on_exit_status(self, code: int) -> None:
        self.exit_code = code
