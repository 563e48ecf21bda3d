"""Shared fakes and fixtures for the test suite."""
from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest

from crucible.core.exceptions import ActionFailed, ShellCommandFailed
from crucible.core.interfaces import CommandRunner, ConnectionFactory
from crucible.domain.driver import Driver
from crucible.domain.instance import Instance, Platform, Suite
from crucible.domain.runner import CommandGenerator


class FakeSFTP:
    """In-memory stand-in for ``paramiko.SFTPClient``."""

    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}
        self.dirs: set[str] = set()

    def putfo(self, fl: Any, remotepath: str) -> SimpleNamespace:
        data = fl.read()
        self.files[remotepath] = data
        return SimpleNamespace(st_size=len(data))

    def put(self, localpath: str, remotepath: str) -> SimpleNamespace:
        data = Path(localpath).read_bytes()
        self.files[remotepath] = data
        return SimpleNamespace(st_size=len(data))

    def stat(self, path: str) -> SimpleNamespace:
        if path in self.dirs:
            return SimpleNamespace(st_mode=0o40755)
        raise IOError(f"No such file: {path}")

    def mkdir(self, path: str) -> None:
        self.dirs.add(path)


class FakeClient:
    """Records executed commands and replays canned output."""

    def __init__(
        self,
        stdout: str = "",
        stderr: str = "",
        exit_for: Optional[Callable[[str], int]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.exit_for = exit_for or (lambda cmd: 0)
        self.error = error
        self.commands: List[str] = []
        self.sftp = FakeSFTP()
        self.sessions = 0
        self.closed = 0

    def exec_streaming(self, cmd, on_stdout=None, on_stderr=None, on_exit_status=None) -> int:
        self.commands.append(cmd)
        if self.error is not None:
            raise self.error
        if self.stdout and on_stdout:
            on_stdout(self.stdout)
        if self.stderr and on_stderr:
            on_stderr(self.stderr)
        code = self.exit_for(cmd)
        if on_exit_status:
            on_exit_status(code)
        return code

    def open_sftp(self) -> FakeSFTP:
        if self.error is not None:
            raise self.error
        return self.sftp

    def __enter__(self) -> FakeClient:
        self.sessions += 1
        return self

    def __exit__(self, *exc: Any) -> None:
        self.closed += 1


class FakeConnectionFactory(ConnectionFactory):
    """Hands out one shared FakeClient, or fails to connect."""

    def __init__(self, client: Optional[FakeClient] = None, error: Optional[BaseException] = None) -> None:
        self.client = client or FakeClient()
        self.error = error
        self.params: List[Dict[str, Any]] = []

    def create(self, params: Dict[str, Any]) -> FakeClient:
        self.params.append(params)
        if self.error is not None:
            raise self.error
        return self.client


class FakeRunner(CommandRunner):
    """Records local commands; fails those containing ``fail_on``."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.fail_on = fail_on
        self.commands: List[str] = []

    def run(self, cmd: str, use_sudo: bool = False, subject: str = "local") -> None:
        self.commands.append(cmd)
        if self.fail_on and self.fail_on in cmd:
            raise ShellCommandFailed(f"failed: {cmd}")


class RecordingDriver(Driver):
    """Driver that records calls and fails on one chosen action."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        super().__init__({})
        self.fail_on = fail_on
        self.calls: List[str] = []

    def _do(self, action: str, state: Dict[str, Any]) -> None:
        self.calls.append(action)
        state[f"{action}_seen"] = True
        if action == self.fail_on:
            raise ActionFailed(f"{action} exploded")

    def create(self, state: Dict[str, Any]) -> None:
        self._do("create", state)

    def converge(self, state: Dict[str, Any]) -> None:
        self._do("converge", state)

    def setup(self, state: Dict[str, Any]) -> None:
        self._do("setup", state)

    def verify(self, state: Dict[str, Any]) -> None:
        self._do("verify", state)

    def destroy(self, state: Dict[str, Any]) -> None:
        self._do("destroy", state)


def make_instance(
    driver: Driver,
    suite: Optional[Suite] = None,
    platform: Optional[Platform] = None,
    test_root: Optional[Path] = None,
) -> Instance:
    suite = suite or Suite(name="default", run_list=["recipe[foo]"])
    platform = platform or Platform(name="ubuntu")
    runner = CommandGenerator(suite.name, test_root=test_root, fetcher=lambda url: "puts 'hi'")
    return Instance(suite=suite, platform=platform, driver=driver, runner=runner)


@pytest.fixture
def recording_driver() -> RecordingDriver:
    return RecordingDriver()
