"""
Core infrastructure layer
"""
from .client import RemoteClient, ClientConfig
from .constants import *
from .exceptions import *
from .logging import (
    setup_logging,
    get_logger,
    get_stdout_console,
    get_stderr_console,
    get_instance_logger,
    InstanceLogger,
)
from .interfaces import StateStore, ConnectionFactory, CommandRunner
from .shell import LocalCommandRunner
from .utils import deep_merge, collapse_whitespace, display_cmd

__all__ = [
    "RemoteClient",
    "ClientConfig",
    "CrucibleError",
    "ConfigError",
    "ValidationError",
    "ActionFailed",
    "ShellCommandFailed",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "get_instance_logger",
    "InstanceLogger",
    "StateStore",
    "ConnectionFactory",
    "CommandRunner",
    "LocalCommandRunner",
    "deep_merge",
    "collapse_whitespace",
    "display_cmd",
]
