"""
Driver base class
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from ...core.interfaces import CommandRunner
from ...core.logging import InstanceLogger, get_logger
from ...core.shell import LocalCommandRunner
from .config import DriverConfig

if TYPE_CHECKING:
    from ..instance.models import Instance

logger = get_logger(__name__)


class Driver:
    """
    Carries out the lifecycle actions of an instance.

    Every action receives the instance's mutable state dictionary and
    either returns normally or raises ActionFailed. The base actions do
    nothing.

    Subclasses declare their own ``DEFAULTS``; defaults are collected
    along the class hierarchy (subclass values win) and filled in under
    the caller's configuration once, at construction.
    """

    DEFAULTS: Mapping[str, Any] = MappingProxyType({})

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        command_runner: Optional[CommandRunner] = None,
    ):
        self.config = DriverConfig.build(self.defaults(), config)
        self._command_runner = command_runner
        self._fallback_logger: Optional[InstanceLogger] = None
        self.instance: Optional[Instance] = None

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            merged.update(vars(klass).get("DEFAULTS", {}))
        return merged

    def bind(self, instance: Instance) -> None:
        self.instance = instance

    # --------------------
    # Config access
    # --------------------
    def __getitem__(self, key: str) -> Any:
        return self.config.get(key)

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    # --------------------
    # Lifecycle actions
    # --------------------
    def create(self, state: Dict[str, Any]) -> None:
        """Create an instance"""

    def converge(self, state: Dict[str, Any]) -> None:
        """Converge a running instance"""

    def setup(self, state: Dict[str, Any]) -> None:
        """Set up a converged instance for suite tests"""

    def verify(self, state: Dict[str, Any]) -> None:
        """Run suite tests on a set up instance"""

    def destroy(self, state: Dict[str, Any]) -> None:
        """Destroy an instance"""

    # --------------------
    # Helpers
    # --------------------
    @property
    def logger(self) -> InstanceLogger:
        if self.instance is not None:
            return self.instance.logger
        if self._fallback_logger is None:
            self._fallback_logger = InstanceLogger(logger)
        return self._fallback_logger

    @property
    def command_runner(self) -> CommandRunner:
        if self._command_runner is None:
            self._command_runner = LocalCommandRunner(self.logger)
        return self._command_runner

    @property
    def instance_label(self) -> str:
        return str(self.instance) if self.instance is not None else "<unbound>"
