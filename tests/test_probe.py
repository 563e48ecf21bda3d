"""SSH reachability probe tests."""
from __future__ import annotations

import errno
import socket
from typing import List

import pytest

from crucible.domain.remote import ProbeOutcome, probe_sshd, wait_for_sshd


class ScriptedConnector:
    """Raises the scripted errors in turn, then connects to a live socket pair."""

    def __init__(self, *errors: BaseException) -> None:
        self.errors = list(errors)
        self.calls = 0
        self.sockets: List[socket.socket] = []

    def __call__(self, address: tuple) -> socket.socket:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        ours, theirs = socket.socketpair()
        self.sockets.extend([ours, theirs])
        return ours

    def close(self) -> None:
        for sock in self.sockets:
            sock.close()


@pytest.fixture
def connector_factory():
    made: List[ScriptedConnector] = []

    def build(*errors: BaseException) -> ScriptedConnector:
        connector = ScriptedConnector(*errors)
        made.append(connector)
        return connector

    yield build
    for connector in made:
        connector.close()


def test_waits_out_refused_connections(connector_factory) -> None:
    connector = connector_factory(
        ConnectionRefusedError(errno.ECONNREFUSED, "refused"),
        ConnectionRefusedError(errno.ECONNREFUSED, "refused"),
        ConnectionRefusedError(errno.ECONNREFUSED, "refused"),
    )
    sleeps: List[float] = []

    assert wait_for_sshd("box", 22, connect=connector, sleep=sleeps.append) is True
    assert sleeps == [2, 2, 2]
    assert connector.calls == 4


def test_timeout_gives_up_without_sleeping(connector_factory) -> None:
    connector = connector_factory(TimeoutError("timed out"))
    sleeps: List[float] = []

    assert wait_for_sshd("box", 22, connect=connector, sleep=sleeps.append) is False
    assert sleeps == []


def test_probe_closes_socket(connector_factory) -> None:
    connector = connector_factory()

    assert probe_sshd("box", 22, connect=connector) is ProbeOutcome.REACHABLE
    assert connector.sockets[0].fileno() == -1


@pytest.mark.parametrize(
    "error, outcome",
    [
        (OSError(errno.EHOSTUNREACH, "no route"), ProbeOutcome.RETRY),
        (OSError(errno.ENETUNREACH, "network down"), ProbeOutcome.RETRY),
        (OSError(errno.EIO, "io"), ProbeOutcome.RETRY),
        (PermissionError(errno.EACCES, "denied"), ProbeOutcome.UNREACHABLE),
        (OSError(errno.EPERM, "not permitted"), ProbeOutcome.UNREACHABLE),
        (OSError(errno.ETIMEDOUT, "timed out"), ProbeOutcome.UNREACHABLE),
    ],
)
def test_probe_classifies_errors(connector_factory, error: OSError, outcome: ProbeOutcome) -> None:
    assert probe_sshd("box", 22, connect=connector_factory(error)) is outcome


def test_not_ready_retries_immediately(connector_factory, monkeypatch: pytest.MonkeyPatch) -> None:
    outcomes = iter([ProbeOutcome.NOT_READY, ProbeOutcome.REACHABLE])
    monkeypatch.setattr(
        "crucible.domain.remote.probe.probe_sshd",
        lambda host, port, connect, wait: next(outcomes),
    )
    sleeps: List[float] = []

    assert wait_for_sshd("box", 22, sleep=sleeps.append) is True
    assert sleeps == []
