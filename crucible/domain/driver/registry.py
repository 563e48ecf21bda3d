"""
Driver plugin registry
"""
from types import MappingProxyType
from typing import Any, Mapping, Optional, Type

from ...core.exceptions import ConfigError
from ...core.interfaces import CommandRunner
from .base import Driver
from .dummy import DummyDriver
from .static import StaticSSHDriver

DRIVERS: Mapping[str, Type[Driver]] = MappingProxyType({
    "dummy": DummyDriver,
    "static": StaticSSHDriver,
})


def driver_class(plugin: str) -> Type[Driver]:
    """
    Look up a driver class by plugin name.

    Raises:
        ConfigError: If no driver is registered under ``plugin``
    """
    try:
        return DRIVERS[plugin]
    except KeyError:
        raise ConfigError(
            f"Unknown driver plugin '{plugin}', available: {', '.join(sorted(DRIVERS))}"
        ) from None


def driver_for_plugin(
    plugin: str,
    config: Optional[Mapping[str, Any]] = None,
    command_runner: Optional[CommandRunner] = None,
) -> Driver:
    """Build a driver for ``plugin`` from its configuration"""
    return driver_class(plugin)(config, command_runner=command_runner)
