"""
Simulated driver
"""
import random
import time
from types import MappingProxyType
from typing import Any, Dict

from ...core.exceptions import ActionFailed
from .base import Driver

# Chance of an injected failure when random_failure is on
FAILURE_RATE = 0.1


class DummyDriver(Driver):
    """
    Driver that touches nothing, for exercising the lifecycle.

    Config:
        sleep: Seconds to pause in every action (default 0)
        random_failure: Randomly fail actions (default False)
    """

    DEFAULTS = MappingProxyType({
        "sleep": 0,
        "random_failure": False,
    })

    def create(self, state: Dict[str, Any]) -> None:
        name = self.instance.name if self.instance is not None else "dummy"
        state["my_id"] = f"{name}-{time.time()}"
        self._report("Create")

    def converge(self, state: Dict[str, Any]) -> None:
        self._report("Converge")

    def setup(self, state: Dict[str, Any]) -> None:
        self._report("Setup")

    def verify(self, state: Dict[str, Any]) -> None:
        self._report("Verify")

    def destroy(self, state: Dict[str, Any]) -> None:
        self._report("Destroy")
        state.pop("my_id", None)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def randomly_fail(self) -> bool:
        return random.random() < FAILURE_RATE

    def _report(self, action: str) -> None:
        self.logger.info(f"[Dummy] {action} on instance={self.instance_label}")
        if self["sleep"] and self["sleep"] > 0:
            self.sleep(self["sleep"])
        if self["random_failure"] and self.randomly_fail():
            self.logger.info(f"[Dummy] Random failure for action {action}.")
            raise ActionFailed(f"Action #{action.lower()} failed for {self.instance_label}.")
