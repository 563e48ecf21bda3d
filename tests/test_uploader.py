"""Chef asset upload tests."""
from __future__ import annotations

import json
from pathlib import Path

import paramiko
import pytest

from crucible.core.exceptions import ActionFailed, ConfigError
from crucible.domain.converge import AssetUploader, CookbookResolver, solo_rb_contents
from crucible.domain.instance import Platform, Suite
from crucible.domain.remote import SSHTarget

from conftest import FakeClient, FakeConnectionFactory, FakeRunner, RecordingDriver, make_instance

CHEF_HOME = "/tmp/crucible-chef-solo"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    recipes = tmp_path / "cookbooks" / "apt" / "recipes"
    recipes.mkdir(parents=True)
    (recipes / "default.rb").write_text("package 'curl'\n", encoding="utf-8")
    return tmp_path


def _uploader(project: Path, suite: Suite, factory: FakeConnectionFactory) -> AssetUploader:
    instance = make_instance(RecordingDriver(), suite=suite, platform=Platform(name="ubuntu"))
    return AssetUploader(
        instance,
        SSHTarget(host="box", user="root"),
        project,
        CHEF_HOME,
        resolver=CookbookResolver(project, FakeRunner()),
        connection_factory=factory,
    )


def test_solo_rb_minimal() -> None:
    assert solo_rb_contents("default-ubuntu", CHEF_HOME, roles=False, data_bags=False) == (
        'node_name "default-ubuntu"\n'
        f'file_cache_path "{CHEF_HOME}/cache"\n'
        f'cookbook_path "{CHEF_HOME}/cookbooks"'
    )


def test_solo_rb_with_roles_and_data_bags() -> None:
    solo = solo_rb_contents("n", CHEF_HOME, roles=True, data_bags=True).splitlines()

    assert solo[-2:] == [f'role_path "{CHEF_HOME}/roles"', f'data_bag_path "{CHEF_HOME}/data_bags"']


def test_uploads_dna_solo_and_cookbooks_in_one_session(project: Path) -> None:
    client = FakeClient()
    factory = FakeConnectionFactory(client)
    suite = Suite(name="default", run_list=["recipe[apt]"], attributes={"apt": {"mirror": "x"}})

    _uploader(project, suite, factory).upload()

    assert client.sessions == 1
    files = client.sftp.files
    assert json.loads(files[f"{CHEF_HOME}/dna.json"]) == {"apt": {"mirror": "x"}, "run_list": ["recipe[apt]"]}
    assert b'node_name "default-ubuntu"' in files[f"{CHEF_HOME}/solo.rb"]
    assert b"role_path" not in files[f"{CHEF_HOME}/solo.rb"]
    assert files[f"{CHEF_HOME}/cookbooks/apt/recipes/default.rb"] == b"package 'curl'\n"
    assert f"{CHEF_HOME}/cookbooks/apt/recipes" in client.sftp.dirs


def test_uploads_data_bags_and_roles(project: Path) -> None:
    bags = project / "test" / "integration" / "data_bags" / "users"
    bags.mkdir(parents=True)
    (bags / "alice.json").write_text('{"id": "alice"}', encoding="utf-8")
    roles = project / "roles"
    roles.mkdir()
    (roles / "web.json").write_text("{}", encoding="utf-8")
    client = FakeClient()
    suite = Suite(
        name="default",
        run_list=[],
        data_bags_path=str(bags.parent),
        roles_path=str(roles),
    )

    _uploader(project, suite, FakeConnectionFactory(client)).upload()

    files = client.sftp.files
    assert files[f"{CHEF_HOME}/data_bags/users/alice.json"] == b'{"id": "alice"}'
    assert f"{CHEF_HOME}/roles/web.json" in files
    solo = files[f"{CHEF_HOME}/solo.rb"].decode("utf-8")
    assert f'role_path "{CHEF_HOME}/roles"' in solo
    assert f'data_bag_path "{CHEF_HOME}/data_bags"' in solo


def test_uploads_are_logged(project: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO")

    _uploader(project, Suite(name="default", run_list=[]), FakeConnectionFactory()).upload()

    assert "Uploaded apt/recipes/default.rb (15 bytes)" in [r.getMessage() for r in caplog.records]


@pytest.mark.parametrize("error", [paramiko.SSHException("channel closed"), OSError("broken pipe")])
def test_transfer_errors_become_action_failed(project: Path, error: Exception) -> None:
    factory = FakeConnectionFactory(FakeClient(error=error))

    with pytest.raises(ActionFailed, match="Failed to upload chef data"):
        _uploader(project, Suite(name="default", run_list=[]), factory).upload()


def test_missing_cookbooks_propagate_config_error(tmp_path: Path) -> None:
    factory = FakeConnectionFactory()

    with pytest.raises(ConfigError):
        _uploader(tmp_path, Suite(name="default", run_list=[]), factory).upload()
    assert factory.params == []


class RecordingResolver(CookbookResolver):
    """Remembers the staging directories it hands out"""

    def __init__(self, root: Path) -> None:
        super().__init__(root, FakeRunner())
        self.staged_dirs: list = []

    def prepare(self, tmpdir: Path) -> None:
        self.staged_dirs.append(tmpdir)
        super().prepare(tmpdir)


@pytest.mark.parametrize("connect_error", [True, False])
def test_staging_directory_removed_after_failed_upload(project: Path, connect_error: bool) -> None:
    error = OSError("connection reset")
    factory = FakeConnectionFactory(error=error) if connect_error else FakeConnectionFactory(FakeClient(error=error))
    resolver = RecordingResolver(project)
    instance = make_instance(RecordingDriver(), suite=Suite(name="default", run_list=[]))
    uploader = AssetUploader(
        instance,
        SSHTarget(host="box", user="root"),
        project,
        CHEF_HOME,
        resolver=resolver,
        connection_factory=factory,
    )

    with pytest.raises(ActionFailed, match="connection reset"):
        uploader.upload()

    assert len(resolver.staged_dirs) == 1
    assert not resolver.staged_dirs[0].exists()
