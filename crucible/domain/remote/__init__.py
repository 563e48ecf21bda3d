"""
Remote execution domain module
"""
from .executor import RemoteExecutor, SSHTarget
from .probe import ProbeOutcome, probe_sshd, wait_for_sshd

__all__ = [
    "RemoteExecutor",
    "SSHTarget",
    "ProbeOutcome",
    "probe_sshd",
    "wait_for_sshd",
]
