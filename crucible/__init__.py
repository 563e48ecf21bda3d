"""
crucible - disposable test instances for chef cookbooks

Drives suite x platform instances through their lifecycle:
- create / destroy through pluggable drivers
- converge with chef-solo over SSH (cookbooks, data bags, roles uploaded by SFTP)
- setup / verify with the jr test runner
"""

__version__ = "0.1.0"

from .core import (
    ActionFailed,
    ConfigError,
    CrucibleError,
    ValidationError,
)
from .domain.instance import (
    FSM,
    Instance,
    InstanceLifecycle,
    Platform,
    Suite,
)
from .domain.driver import Driver, driver_for_plugin
from .domain.runner import CommandGenerator

__all__ = [
    "__version__",
    "ActionFailed",
    "ConfigError",
    "CrucibleError",
    "ValidationError",
    "FSM",
    "Instance",
    "InstanceLifecycle",
    "Platform",
    "Suite",
    "Driver",
    "driver_for_plugin",
    "CommandGenerator",
]
