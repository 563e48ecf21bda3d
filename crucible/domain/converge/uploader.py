"""
Chef asset upload over SFTP
"""
from __future__ import annotations

import io
import json
import os
import posixpath
from pathlib import Path
from typing import Optional, TYPE_CHECKING

import paramiko

from ...core.exceptions import ActionFailed
from ...core.interfaces import ConnectionFactory
from ...infrastructure.connection import RemoteConnectionFactory
from ..remote.executor import SSHTarget
from .cookbooks import CookbookResolver

if TYPE_CHECKING:
    from ..instance.models import Instance


def solo_rb_contents(node_name: str, chef_home: str, roles: bool, data_bags: bool) -> str:
    """chef-solo configuration pointing at the uploaded directories"""
    solo = [
        f'node_name "{node_name}"',
        f'file_cache_path "{chef_home}/cache"',
        f'cookbook_path "{chef_home}/cookbooks"',
    ]
    if roles:
        solo.append(f'role_path "{chef_home}/roles"')
    if data_bags:
        solo.append(f'data_bag_path "{chef_home}/data_bags"')
    return "\n".join(solo)


def ensure_remote_dir(sftp: paramiko.SFTPClient, remote_dir: str) -> None:
    """mkdir -p over SFTP"""
    current = ""
    for part in remote_dir.split("/"):
        if not part:
            continue
        current = f"{current}/{part}"
        try:
            sftp.stat(current)
        except IOError:
            try:
                sftp.mkdir(current)
            except IOError:
                # Created concurrently or not ours to create; put will tell
                pass


class AssetUploader:
    """
    Stages everything chef-solo needs on the instance.

    Uploads ``dna.json``, ``solo.rb``, the resolved cookbooks and, when the
    suite has them, data bags and roles, all under ``chef_home``.
    """

    def __init__(
        self,
        instance: Instance,
        target: SSHTarget,
        root: Path,
        chef_home: str,
        resolver: Optional[CookbookResolver] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ):
        self.instance = instance
        self.target = target
        self.root = Path(root)
        self.chef_home = chef_home
        self.resolver = resolver or CookbookResolver(self.root, instance.driver.command_runner)
        self.connection_factory = connection_factory or RemoteConnectionFactory()

    @property
    def logger(self):
        return self.instance.logger

    def upload(self) -> None:
        """
        Resolve cookbooks locally, then push all assets in one SFTP session.

        Raises:
            ConfigError: If no cookbook source can be found
            ActionFailed: On local tool failure or any SSH/SFTP error
        """
        suite = self.instance.suite
        with self.resolver.staged(self.instance.name) as cookbooks_dir:
            try:
                with self.connection_factory.create(self.target.as_params()) as client:
                    sftp = client.open_sftp()
                    self._upload_json(sftp)
                    self._upload_solo_rb(sftp)
                    self._upload_tree(sftp, cookbooks_dir, f"{self.chef_home}/cookbooks")
                    if suite.data_bags_path:
                        self._upload_tree(sftp, Path(suite.data_bags_path), f"{self.chef_home}/data_bags")
                    if suite.roles_path:
                        self._upload_tree(sftp, Path(suite.roles_path), f"{self.chef_home}/roles")
            except (paramiko.SSHException, OSError) as e:
                raise ActionFailed(f"Failed to upload chef data: {e}") from e

    def _upload_json(self, sftp: paramiko.SFTPClient) -> None:
        payload = json.dumps(self.instance.dna).encode("utf-8")
        sftp.putfo(io.BytesIO(payload), f"{self.chef_home}/dna.json")

    def _upload_solo_rb(self, sftp: paramiko.SFTPClient) -> None:
        suite = self.instance.suite
        contents = solo_rb_contents(
            self.instance.name,
            self.chef_home,
            roles=bool(suite.roles_path),
            data_bags=bool(suite.data_bags_path),
        )
        sftp.putfo(io.BytesIO(contents.encode("utf-8")), f"{self.chef_home}/solo.rb")

    def _upload_tree(self, sftp: paramiko.SFTPClient, local_root: Path, remote_root: str) -> None:
        """Recursively copy ``local_root`` to ``remote_root``"""
        ensure_remote_dir(sftp, remote_root)
        for dirpath, dirnames, filenames in os.walk(local_root):
            dirnames.sort()
            rel_dir = Path(dirpath).relative_to(local_root).as_posix()
            remote_dir = remote_root if rel_dir == "." else posixpath.join(remote_root, rel_dir)
            for dirname in dirnames:
                ensure_remote_dir(sftp, posixpath.join(remote_dir, dirname))
            for filename in sorted(filenames):
                local_file = Path(dirpath) / filename
                attrs = sftp.put(str(local_file), posixpath.join(remote_dir, filename))
                size = attrs.st_size if attrs.st_size is not None else local_file.stat().st_size
                rel_name = local_file.relative_to(local_root).as_posix()
                self.logger.info(f"Uploaded {rel_name} ({size} bytes)")
