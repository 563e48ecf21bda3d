"""
SSH driver for machines that already exist
"""
from types import MappingProxyType
from typing import Any, Dict

from ...core.exceptions import ActionFailed
from .ssh import SSHDriver


class StaticSSHDriver(SSHDriver):
    """
    Uses a fixed, pre-provisioned host.

    ``create`` only records the configured ``hostname`` and waits for
    sshd; ``destroy`` forgets it. The machine itself is never touched.
    """

    DEFAULTS = MappingProxyType({
        "hostname": None,
    })

    def create(self, state: Dict[str, Any]) -> None:
        hostname = self["hostname"]
        if not hostname:
            raise ActionFailed(f"Driver config 'hostname' is required to create {self.instance_label}.")

        state["hostname"] = hostname
        if not self.wait_for_sshd(hostname):
            raise ActionFailed(f"SSH service on {hostname}:{self['port']} is unreachable.")

    def destroy(self, state: Dict[str, Any]) -> None:
        state.pop("hostname", None)
