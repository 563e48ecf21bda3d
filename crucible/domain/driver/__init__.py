"""
Driver domain module
"""
from .config import DriverConfig, resolve_config, layer_configs
from .base import Driver
from .dummy import DummyDriver
from .ssh import SSHDriver
from .static import StaticSSHDriver
from .registry import DRIVERS, driver_class, driver_for_plugin

__all__ = [
    "DriverConfig",
    "resolve_config",
    "layer_configs",
    "Driver",
    "DummyDriver",
    "SSHDriver",
    "StaticSSHDriver",
    "DRIVERS",
    "driver_class",
    "driver_for_plugin",
]
