"""
Command strings for the remote test runner (jr)

Every command produced here is a plain shell string, safe to hand to a
single SSH exec request.
"""
import base64
import hashlib
import posixpath
from functools import cached_property
from pathlib import Path
from typing import Callable, List, Optional

import requests

from ...core.constants import (
    DEFAULT_TEST_BASE_PATH,
    JR_FETCH_TIMEOUT,
    JR_INSTALL_URL,
    JR_ROOT,
    JR_RUBY_BINPATH,
)
from ...core.exceptions import ActionFailed, ValidationError
from ...core.logging import get_logger

logger = get_logger(__name__)

DATA_BAGS_DIR = "data_bags"
STREAM_EOF = "__EOFSTREAM__"


def fetch_install_script(url: str = JR_INSTALL_URL) -> str:
    """Download the jr bootstrap script"""
    try:
        response = requests.get(url, timeout=JR_FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ActionFailed(f"Could not fetch jr installer from {url}: {e}") from e
    return response.text


class CommandGenerator:
    """
    Builds the jr commands for one suite.

    Suite test files live under ``<test_root>/<suite_name>/<plugin>/``.
    When a suite has no such files every command is None, meaning there
    is nothing to do.
    """

    def __init__(
        self,
        suite_name: str,
        use_sudo: bool = True,
        test_root: Optional[Path] = None,
        fetcher: Callable[[str], str] = fetch_install_script,
    ):
        if suite_name is None:
            raise ValidationError("'suite_name' is required.")
        self.suite_name = suite_name
        self.use_sudo = use_sudo
        self.test_root = Path(test_root) if test_root else Path.cwd() / DEFAULT_TEST_BASE_PATH
        self.fetcher = fetcher

    # --------------------
    # Commands
    # --------------------
    @cached_property
    def install_cmd(self) -> Optional[str]:
        """Install jr and the suite's plugins"""
        if not self.local_suite_files:
            return None
        return (
            f'{self.sudo}{self.ruby_bin} -e "$(cat <<"EOF"\n'
            f"{self.install_script}\n"
            f"EOF\n"
            f')"\n'
            f"{self.sudo}{self.jr_bin} install {' '.join(self.plugins)}\n"
        )

    @cached_property
    def sync_cmd(self) -> Optional[str]:
        """Replace the remote suite files with the local ones"""
        if not self.local_suite_files:
            return None
        streams = "".join(self._stream_file(f) for f in self.local_suite_files)
        return f"{self.sudo}{self.jr_bin} cleanup-suites\n{streams}"

    @cached_property
    def run_cmd(self) -> Optional[str]:
        """Run every suite test"""
        if not self.local_suite_files:
            return None
        return f"{self.sudo}{self.jr_bin} test"

    # --------------------
    # Local files
    # --------------------
    @property
    def suite_root(self) -> Path:
        return self.test_root / self.suite_name

    @cached_property
    def local_suite_files(self) -> List[Path]:
        """Files inside plugin directories, data bags excluded"""
        return sorted(
            p for p in self.suite_root.glob("*/**/*")
            if p.is_file() and DATA_BAGS_DIR not in p.relative_to(self.suite_root).parts
        )

    @cached_property
    def plugins(self) -> List[str]:
        return sorted({
            p.name for p in self.suite_root.glob("*")
            if p.is_dir() and p.name != DATA_BAGS_DIR
        })

    @cached_property
    def install_script(self) -> str:
        return self.fetcher(JR_INSTALL_URL).rstrip("\n")

    def remote_file(self, local_path: Path) -> str:
        rel = local_path.relative_to(self.suite_root).as_posix()
        return f"$({self.jr_bin} suitepath)/{rel}"

    def _stream_file(self, local_path: Path) -> str:
        content = local_path.read_bytes()
        md5 = hashlib.md5(content).hexdigest()
        perms = f"{local_path.stat().st_mode & 0o777:03o}"
        remote_path = self.remote_file(local_path)
        encoded = base64.encodebytes(content).decode("ascii")

        return (
            f'echo "Uploading {remote_path} (mode={perms})"\n'
            f'cat <<"{STREAM_EOF}" | {self.sudo}{self.jr_bin} stream-file {remote_path} {md5} {perms}\n'
            f"{encoded}"
            f"{STREAM_EOF}\n"
        )

    # --------------------
    # Paths
    # --------------------
    @property
    def sudo(self) -> str:
        return "sudo " if self.use_sudo else ""

    @property
    def ruby_bin(self) -> str:
        return posixpath.join(JR_RUBY_BINPATH, "ruby")

    @property
    def jr_bin(self) -> str:
        return posixpath.join(JR_ROOT, "bin/jr")
