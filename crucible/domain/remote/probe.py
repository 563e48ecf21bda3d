"""
SSH reachability probe
"""
import errno
import select
import socket
import time
from enum import Enum
from typing import Callable, Optional

from ...core.constants import SSHD_PROBE_BACKOFF, SSHD_PROBE_WAIT
from ...core.logging import InstanceLogger, get_logger

logger = get_logger(__name__)

Connector = Callable[[tuple], socket.socket]
Sleeper = Callable[[float], None]

# Errors worth waiting out while a machine boots
_TRANSIENT_ERRNOS = {errno.ECONNREFUSED, errno.EHOSTUNREACH, errno.ENETUNREACH}


class ProbeOutcome(Enum):
    REACHABLE = "reachable"
    RETRY = "retry"
    NOT_READY = "not_ready"
    UNREACHABLE = "unreachable"


def probe_sshd(
    host: str,
    port: int,
    connect: Connector = socket.create_connection,
    wait: float = SSHD_PROBE_WAIT,
) -> ProbeOutcome:
    """
    Try one TCP connection to ``host:port``.

    Returns:
        REACHABLE when the socket becomes writable within ``wait``
        seconds, NOT_READY when it does not, RETRY for refused or
        unroutable connections and generic I/O errors, UNREACHABLE for
        permission errors and connect timeouts
    """
    sock: Optional[socket.socket] = None
    try:
        sock = connect((host, port))
        _, writable, _ = select.select([], [sock], [], wait)
        return ProbeOutcome.REACHABLE if writable else ProbeOutcome.NOT_READY
    except (PermissionError, TimeoutError):
        return ProbeOutcome.UNREACHABLE
    except OSError as e:
        if e.errno in (errno.EPERM, errno.EACCES, errno.ETIMEDOUT):
            return ProbeOutcome.UNREACHABLE
        if e.errno not in _TRANSIENT_ERRNOS:
            logger.debug(f"Probe of {host}:{port} failed: {e}")
        return ProbeOutcome.RETRY
    finally:
        if sock is not None:
            sock.close()


def wait_for_sshd(
    host: str,
    port: int,
    log: Optional[InstanceLogger] = None,
    connect: Connector = socket.create_connection,
    sleep: Sleeper = time.sleep,
    backoff: float = SSHD_PROBE_BACKOFF,
    wait: float = SSHD_PROBE_WAIT,
) -> bool:
    """
    Block until sshd on ``host:port`` accepts connections.

    Transient failures sleep ``backoff`` seconds and retry without limit.

    Returns:
        True once reachable, False on a terminal failure
    """
    log = log or InstanceLogger(logger)
    log.info(f"Waiting for SSH service on {host}:{port}")
    while True:
        outcome = probe_sshd(host, port, connect=connect, wait=wait)
        if outcome is ProbeOutcome.REACHABLE:
            return True
        if outcome is ProbeOutcome.UNREACHABLE:
            log.warning(f"SSH service on {host}:{port} is unreachable")
            return False
        if outcome is ProbeOutcome.RETRY:
            log.debug(f"SSH service on {host}:{port} not up yet, retrying in {backoff}s")
            sleep(backoff)
