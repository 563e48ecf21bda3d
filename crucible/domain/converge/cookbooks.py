"""
Local cookbook resolution
"""
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from ...core.exceptions import ConfigError, ShellCommandFailed
from ...core.interfaces import CommandRunner
from ...core.logging import get_logger

logger = get_logger(__name__)

# Files and directories that make up the cookbook under test
COOKBOOK_PARTS = (
    "metadata.rb",
    "README.*",
    "attributes",
    "files",
    "libraries",
    "providers",
    "recipes",
    "resources",
    "templates",
)

_METADATA_ATTR = r"""^\s*{key}\s*\(?\s*["']([^"']+)["']"""


def read_metadata(metadata_file: Path) -> Tuple[Optional[str], Optional[str]]:
    """
    Pull the cookbook ``name`` and ``version`` out of a metadata.rb.

    Only literal string values are understood; anything computed comes
    back as None.
    """
    text = Path(metadata_file).read_text(encoding="utf-8")
    found = []
    for key in ("name", "version"):
        match = re.search(_METADATA_ATTR.format(key=key), text, re.MULTILINE)
        found.append(match.group(1) if match else None)
    return found[0], found[1]


class CookbookResolver:
    """
    Gathers every cookbook an instance needs into a staging directory.

    Resolution order under ``root``: a Berksfile (``berks install``), a
    Cheffile (``librarian-chef install``), then a plain ``cookbooks/``
    directory plus the cookbook in ``root`` itself.
    """

    def __init__(self, root: Path, command_runner: CommandRunner):
        self.root = Path(root)
        self.command_runner = command_runner

    @contextmanager
    def staged(self, instance_name: str) -> Iterator[Path]:
        """Yield a populated staging directory, removed on exit"""
        tmpdir = Path(tempfile.mkdtemp(prefix=f"{instance_name}-cookbooks"))
        try:
            self.prepare(tmpdir)
            yield tmpdir
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)

    def prepare(self, tmpdir: Path) -> None:
        if (self.root / "Berksfile").exists():
            self._run_berks(tmpdir)
        elif (self.root / "Cheffile").exists():
            self._run_librarian(tmpdir)
        elif (self.root / "cookbooks").is_dir():
            self._copy_cookbooks(tmpdir)
        else:
            raise ConfigError(f"Berksfile, Cheffile or cookbooks/ must exist in {self.root}")

    def _require_tool(self, binary: str, product: str) -> None:
        try:
            self.command_runner.run(f"if ! command -v {binary} >/dev/null; then exit 1; fi")
        except ShellCommandFailed as e:
            raise ConfigError(f"{product} must be installed, {binary} was not found") from e

    def _run_berks(self, tmpdir: Path) -> None:
        self._require_tool("berks", "Berkshelf")
        self.command_runner.run(f"berks install --path {tmpdir}")

    def _run_librarian(self, tmpdir: Path) -> None:
        self._require_tool("librarian-chef", "Librarian")
        self.command_runner.run(f"librarian-chef install --path {tmpdir}")

    def _copy_cookbooks(self, tmpdir: Path) -> None:
        shutil.copytree(self.root / "cookbooks", tmpdir, dirs_exist_ok=True)

        metadata_rb = self.root / "metadata.rb"
        if not metadata_rb.exists():
            return
        name, _ = read_metadata(metadata_rb)
        if name is None:
            raise ConfigError(f"name attribute must be set in {metadata_rb}")

        cookbook_dir = tmpdir / name
        cookbook_dir.mkdir(parents=True, exist_ok=True)
        for pattern in COOKBOOK_PARTS:
            for part in self.root.glob(pattern):
                if part.is_dir():
                    shutil.copytree(part, cookbook_dir / part.name, dirs_exist_ok=True)
                else:
                    shutil.copy2(part, cookbook_dir / part.name)
        logger.debug(f"Staged cookbook {name} from {self.root}")
