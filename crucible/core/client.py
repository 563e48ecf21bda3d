from __future__ import annotations
import codecs
from dataclasses import dataclass
from typing import Callable, Optional
import time

import paramiko
from pathlib import Path

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT


DataCallback = Callable[[str], None]
ExitCallback = Callable[[int], None]

RECV_SIZE = 4096


def _emit(callback: Optional[DataCallback], data: str) -> None:
    if callback and data:
        callback(data)


@dataclass
class ClientConfig:
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = None
    key_path: Optional[str] = None
    timeout: float = DEFAULT_SSH_TIMEOUT


class RemoteClient:
    """
    Thin wrapper around paramiko.SSHClient:
    - keeps host / user / port (paramiko does not)
    - password or private key login, no host key verification
    - streaming exec on a dedicated channel, SFTP helper
    - usable as a context manager
    """
    def __init__(
        self,
        host: str,
        user: str,
        port: int = DEFAULT_SSH_PORT,
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> None:
        self.config = ClientConfig(
            host=host,
            user=user,
            port=port,
            password=password,
            key_path=key_path,
            timeout=timeout,
        )

        # Instances are throwaway machines, never record their host keys
        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        self._sftp: Optional[paramiko.SFTPClient] = None

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        cfg = self.config
        kwargs = dict(
            hostname=cfg.host,
            port=cfg.port,
            username=cfg.user,
            timeout=cfg.timeout,
            allow_agent=False,
            look_for_keys=False,
        )
        if cfg.key_path:
            kwargs["pkey"] = self._load_private_key(cfg.key_path)
        if cfg.password:
            kwargs["password"] = cfg.password
        if not cfg.key_path and not cfg.password:
            kwargs["allow_agent"] = True
            kwargs["look_for_keys"] = True

        self.client.connect(**kwargs)

    def close(self) -> None:
        if self._sftp:
            try:
                self._sftp.close()
            except (OSError, paramiko.SSHException):
                pass
            self._sftp = None
        self.client.close()

    # --------------------
    # Load private key
    # --------------------
    def _load_private_key(self, path: str) -> paramiko.PKey:
        """Try Ed25519, then RSA"""
        p = Path(path).expanduser()

        try:
            return paramiko.Ed25519Key.from_private_key_file(str(p))
        except (paramiko.SSHException, ValueError):
            try:
                return paramiko.RSAKey.from_private_key_file(str(p))
            except paramiko.SSHException as e:
                raise paramiko.SSHException(f"Failed to load private key at {p}") from e

    # --------------------
    # Helpers
    # --------------------
    def exec_streaming(
        self,
        cmd: str,
        on_stdout: Optional[DataCallback] = None,
        on_stderr: Optional[DataCallback] = None,
        on_exit_status: Optional[ExitCallback] = None,
    ) -> int:
        """
        Execute a command on its own channel, pumping output until exit.

        Callbacks run on the calling thread as data arrives.

        Args:
            cmd: Command to execute
            on_stdout: Called with each decoded stdout chunk
            on_stderr: Called with each decoded stderr chunk
            on_exit_status: Called once with the exit status

        Returns:
            Remote exit status
        """
        transport = self.client.get_transport()
        if transport is None or not transport.is_active():
            raise paramiko.SSHException("SSH session not active")

        channel = transport.open_session()
        try:
            channel.exec_command(cmd)

            # One decoder per stream, multibyte characters may straddle reads
            out_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            err_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

            while True:
                has_output = False

                if channel.recv_ready():
                    raw = channel.recv(RECV_SIZE)
                    if raw:
                        has_output = True
                        _emit(on_stdout, out_decoder.decode(raw))

                if channel.recv_stderr_ready():
                    raw = channel.recv_stderr(RECV_SIZE)
                    if raw:
                        has_output = True
                        _emit(on_stderr, err_decoder.decode(raw))

                if not has_output:
                    if channel.exit_status_ready() and not (
                        channel.recv_ready() or channel.recv_stderr_ready()
                    ):
                        break
                    time.sleep(0.01)

            _emit(on_stdout, out_decoder.decode(b"", final=True))
            _emit(on_stderr, err_decoder.decode(b"", final=True))

            exit_code = channel.recv_exit_status()
            if on_exit_status:
                on_exit_status(exit_code)
            return exit_code
        finally:
            channel.close()

    def open_sftp(self) -> paramiko.SFTPClient:
        """Return an SFTP client, reusing the open one"""
        if self._sftp is None or self._sftp.get_channel() is None:
            self._sftp = self.client.open_sftp()
        return self._sftp

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
