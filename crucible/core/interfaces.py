"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List


class StateStore(ABC):
    """
    Per-instance state records.

    A record is a flat JSON-able dict owned by the instance's driver, plus
    the ``last_action`` key written by the lifecycle after each successful
    action.
    """

    @abstractmethod
    def save(self, name: str, state: Dict[str, Any]) -> None:
        """Replace the record of instance ``name``"""

    @abstractmethod
    def load(self, name: str) -> Optional[Dict[str, Any]]:
        """Record of instance ``name``, None when it has none"""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Forget instance ``name``, a no-op when it has no record"""

    @abstractmethod
    def list(self) -> List[str]:
        """Names of all instances with a record"""

    @abstractmethod
    def exists(self, name: str) -> bool:
        pass

    def last_action(self, name: str) -> Optional[str]:
        """Last successful action of instance ``name``, None when nothing has run"""
        state = self.load(name) or {}
        return state.get("last_action")


class ConnectionFactory(ABC):
    """Opens connected SSH clients for instance targets"""

    @abstractmethod
    def create(self, params: Dict[str, Any]) -> Any:
        """
        Connect to ``params["host"]`` as ``params["user"]``.

        The returned client is a context manager that closes on exit.
        """


class CommandRunner(ABC):
    """Local command execution interface"""

    @abstractmethod
    def run(self, cmd: str, use_sudo: bool = False, subject: str = "local") -> None:
        """Run a local command, raising ShellCommandFailed on failure"""
