"""
Configuration loader with priority: env > local TOML > TOML > defaults
"""
import os
import re
import tomllib
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TypeVar

from ...core.constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_DRIVER_PLUGIN,
    DEFAULT_TEST_BASE_PATH,
    LOG_DIR_NAME,
    STATE_DIR_NAME,
)
from ...core.exceptions import ConfigError
from ...core.logging import get_instance_logger
from ...core.utils import deep_merge
from ...domain.driver import Driver, driver_for_plugin, layer_configs
from ...domain.instance import Instance, InstanceLifecycle, Platform, Suite, instance_name
from ...domain.runner import CommandGenerator
from ...infrastructure.state import FileStateStore

T = TypeVar("T")

_DRIVER_KEYS = ("driver_plugin", "driver_config")


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self, env_prefix: str = "CRUCIBLE_"):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        env_mappings = {
            "DRIVER_PLUGIN": "driver_plugin",
            "USERNAME": "driver_config.username",
            "PASSWORD": "driver_config.password",
            "SSH_KEY": "driver_config.ssh_key",
            "PORT": "driver_config.port",
            "USE_SUDO": "driver_config.use_sudo",
        }

        for env_suffix, config_key in env_mappings.items():
            value = os.getenv(f"{self._env_prefix}{env_suffix}")
            if value:
                # Handle nested keys
                if "." in config_key:
                    parts = config_key.split(".")
                    config.setdefault(parts[0], {})[parts[1]] = self._convert_value(value)
                else:
                    config[config_key] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}
        for config in configs:
            result = deep_merge(result, config)
        return result

    def load(self, toml_path: Path, use_env: bool = True) -> Dict[str, Any]:
        """
        Load ``toml_path``, its ``.local`` sibling if present, then env vars.

        Args:
            toml_path: Path to the project TOML file
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = [self.load_toml(toml_path)]

        local_path = local_config_path(toml_path)
        if local_path.exists():
            configs.append(self.load_toml(local_path))

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        return self.merge_configs(*configs)


def local_config_path(path: Path) -> Path:
    """``.crucible.toml`` -> ``.crucible.local.toml``"""
    return path.with_name(f"{path.stem}.local{path.suffix}")


# ============================================================
# Collections
# ============================================================

class Collection(List[T]):
    """A list of named objects that can be looked up by name"""

    def get(self, name: str) -> Optional[T]:
        return next((item for item in self if item.name == name), None)

    def get_all(self, pattern: str) -> "Collection[T]":
        regexp = re.compile(pattern)
        return Collection(item for item in self if regexp.search(item.name))

    def as_names(self) -> List[str]:
        return [item.name for item in self]


# ============================================================
# Project Configuration
# ============================================================

class CrucibleConfig:
    """
    Suites, platforms and instances of one project.

    The project root is the directory holding the configuration file;
    state lives in ``<root>/.crucible`` and per-instance logs in
    ``<root>/.crucible/logs``.
    """

    def __init__(
        self,
        config_file: Optional[Path] = None,
        test_base_path: Optional[Path] = None,
        loader: Optional[ConfigLoader] = None,
        use_env: bool = True,
    ):
        self.config_file = Path(config_file or Path.cwd() / DEFAULT_CONFIG_FILE).expanduser().resolve()
        self.root = self.config_file.parent
        self.test_base_path = Path(test_base_path) if test_base_path else self.root / DEFAULT_TEST_BASE_PATH
        self.loader = loader or ConfigLoader()
        self.use_env = use_env

    @cached_property
    def data(self) -> Dict[str, Any]:
        return self.loader.load(self.config_file, use_env=self.use_env)

    @property
    def state_dir(self) -> Path:
        return self.root / STATE_DIR_NAME

    @property
    def log_root(self) -> Path:
        return self.state_dir / LOG_DIR_NAME

    @cached_property
    def state_store(self) -> FileStateStore:
        return FileStateStore(self.state_dir)

    @cached_property
    def platforms(self) -> Collection[Platform]:
        return Collection(Platform.from_dict(p) for p in self._entries("platforms"))

    @cached_property
    def suites(self) -> Collection[Suite]:
        suites = Collection()
        for entry in self._entries("suites"):
            paths = {
                "data_bags_path": self._resolve_fixture_dir(entry.get("name"), "data_bags"),
                "roles_path": self._resolve_fixture_dir(entry.get("name"), "roles"),
            }
            suites.append(Suite.from_dict({**entry, **{k: v for k, v in paths.items() if v}}))
        return suites

    @cached_property
    def instances(self) -> Collection[Instance]:
        """Every suite on every platform, suites outermost"""
        return Collection(
            self._new_instance(suite, platform)
            for suite in self.suites
            for platform in self.platforms
        )

    def lifecycles(self, pattern: Optional[str] = None) -> List[InstanceLifecycle]:
        instances = self.instances.get_all(pattern) if pattern else self.instances
        return [InstanceLifecycle(instance, self.state_store) for instance in instances]

    # --------------------
    # Builders
    # --------------------
    def _entries(self, key: str) -> Iterable[Dict[str, Any]]:
        entries = self.data.get(key) or []
        if not isinstance(entries, list):
            raise ConfigError(f"'{key}' must be an array of tables in {self.config_file}")
        return entries

    def _resolve_fixture_dir(self, suite_name: Optional[str], dirname: str) -> Optional[str]:
        """Suite-specific dir, then common test dir, then project root"""
        candidates = [self.test_base_path / dirname, self.root / dirname]
        if suite_name:
            candidates.insert(0, self.test_base_path / suite_name / dirname)
        for candidate in candidates:
            if candidate.is_dir():
                return str(candidate)
        return None

    def _platform_entry(self, platform_name: str) -> Dict[str, Any]:
        for entry in self._entries("platforms"):
            if entry.get("name") == platform_name:
                return entry
        return {}

    def _new_driver(self, platform: Platform) -> Driver:
        common = {k: v for k, v in self.data.items() if k in _DRIVER_KEYS}
        specific = {k: v for k, v in self._platform_entry(platform.name).items() if k in _DRIVER_KEYS}
        merged = deep_merge(deep_merge({"driver_plugin": DEFAULT_DRIVER_PLUGIN}, common), specific)

        config = layer_configs(
            common.get("driver_config"),
            specific.get("driver_config"),
            {"crucible_root": str(self.root)},
        )
        return driver_for_plugin(merged["driver_plugin"], config)

    def _new_instance(self, suite: Suite, platform: Platform) -> Instance:
        driver = self._new_driver(platform)
        use_sudo = driver.get("use_sudo")
        return Instance(
            suite=suite,
            platform=platform,
            driver=driver,
            runner=CommandGenerator(
                suite.name,
                use_sudo=True if use_sudo is None else bool(use_sudo),
                test_root=self.test_base_path,
            ),
            logger=get_instance_logger(instance_name(suite.name, platform.name), self.log_root),
        )
