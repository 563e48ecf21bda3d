"""
Base driver for instances reached over SSH
"""
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ...core.constants import (
    CHEF_OMNIBUS_URL,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_TIMEOUT,
    REMOTE_CHEF_HOME,
)
from ...core.exceptions import ActionFailed
from ...core.interfaces import CommandRunner, ConnectionFactory
from ..converge.uploader import AssetUploader
from ..remote.executor import RemoteExecutor, SSHTarget
from ..remote import probe
from .base import Driver


class SSHDriver(Driver):
    """
    Converges, sets up and verifies an instance over SSH.

    Subclasses provide ``create`` and ``destroy`` for their backend and
    must leave the instance address in ``state["hostname"]``.

    Config:
        username: SSH login (default root)
        password: SSH password
        ssh_key: Path to a private key
        port: SSH port (default 22)
        use_sudo: Prefix privileged commands with sudo (default True)
        require_chef_omnibus: Install chef when /opt/chef is missing
        crucible_root: Project root holding cookbooks (default cwd)
    """

    DEFAULTS = MappingProxyType({
        "username": "root",
        "port": DEFAULT_SSH_PORT,
        "use_sudo": True,
        "require_chef_omnibus": False,
    })

    chef_home = REMOTE_CHEF_HOME

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        command_runner: Optional[CommandRunner] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ):
        super().__init__(config, command_runner)
        self.connection_factory = connection_factory

    # --------------------
    # Lifecycle actions
    # --------------------
    def create(self, state: Dict[str, Any]) -> None:
        raise NotImplementedError(f"{type(self).__name__}#create must be implemented by subclass.")

    def converge(self, state: Dict[str, Any]) -> None:
        target = self.build_ssh_args(state)

        if self["require_chef_omnibus"]:
            self.install_omnibus(target)
        self.prepare_chef_home(target)
        self.upload_chef_data(target)
        self.run_chef_solo(target)

    def setup(self, state: Dict[str, Any]) -> None:
        target = self.build_ssh_args(state)

        install_cmd = self.instance.runner.install_cmd
        if install_cmd:
            self.ssh(target, install_cmd)

    def verify(self, state: Dict[str, Any]) -> None:
        target = self.build_ssh_args(state)

        runner = self.instance.runner
        if runner.run_cmd:
            self.ssh(target, runner.sync_cmd)
            self.ssh(target, runner.run_cmd)

    def destroy(self, state: Dict[str, Any]) -> None:
        raise NotImplementedError(f"{type(self).__name__}#destroy must be implemented by subclass.")

    # --------------------
    # Steps
    # --------------------
    def build_ssh_args(self, state: Dict[str, Any]) -> SSHTarget:
        hostname = state.get("hostname")
        if not hostname:
            raise ActionFailed(f"No hostname recorded for {self.instance_label}, has it been created?")
        return SSHTarget(
            host=hostname,
            user=self["username"],
            port=int(self["port"]),
            password=self["password"],
            key=self["ssh_key"],
            timeout=self.get("ssh_timeout", DEFAULT_SSH_TIMEOUT),
        )

    @property
    def root(self) -> Path:
        return Path(self["crucible_root"] or Path.cwd())

    @property
    def sudo(self) -> str:
        return "sudo " if self["use_sudo"] else ""

    def install_omnibus(self, target: SSHTarget) -> None:
        self.ssh(target, f"""
          if [ ! -d "/opt/chef" ] ; then
            curl -L {CHEF_OMNIBUS_URL} | {self.sudo}bash
          fi
        """)

    def prepare_chef_home(self, target: SSHTarget) -> None:
        self.ssh(target, f"{self.sudo}rm -rf {self.chef_home} && mkdir -p {self.chef_home}/cache")

    def upload_chef_data(self, target: SSHTarget) -> None:
        AssetUploader(
            self.instance,
            target,
            self.root,
            self.chef_home,
            connection_factory=self.connection_factory,
        ).upload()

    def run_chef_solo(self, target: SSHTarget) -> None:
        self.ssh(target, f"""
          {self.sudo}chef-solo -c {self.chef_home}/solo.rb -j {self.chef_home}/dna.json \\
            --log_level {self.logger.chef_log_level()}
        """)

    def ssh(self, target: SSHTarget, cmd: str) -> int:
        return RemoteExecutor(target, self.logger, self.connection_factory).run(cmd)

    def wait_for_sshd(self, hostname: str) -> bool:
        return probe.wait_for_sshd(hostname, int(self["port"]), log=self.logger)
