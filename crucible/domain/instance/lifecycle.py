"""
Instance lifecycle orchestration
"""
import time
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from ...core.exceptions import ActionFailed
from ...core.interfaces import StateStore
from .fsm import FSM
from .models import Instance

DestroyMode = Literal["passing", "always", "never"]

_PHRASES = {
    "create": ("Creating", "Creation"),
    "converge": ("Converging", "Convergence"),
    "setup": ("Setting up", "Setup"),
    "verify": ("Verifying", "Verification"),
    "destroy": ("Destroying", "Destruction"),
}


@dataclass
class ActionResult:
    """Outcome of a single driver action"""
    action: str
    elapsed: float
    error: Optional[ActionFailed] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass
class TransitionResult:
    """Outcome of moving an instance towards a desired stage"""
    instance: str
    desired: str
    results: List[ActionResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failed(self) -> Optional[ActionResult]:
        return next((r for r in self.results if not r.ok), None)

    @property
    def actions(self) -> List[str]:
        return [r.action for r in self.results]

    def raise_for_status(self) -> None:
        failed = self.failed
        if failed is not None:
            failed.raise_for_status()


class InstanceLifecycle:
    """
    Moves one instance through destroy/create/converge/setup/verify.

    Each request is expanded by the FSM into an ordered list of actions
    which run one at a time. The state record is saved after every action
    attempt; the first failed action ends the request.
    """

    def __init__(self, instance: Instance, state_store: StateStore):
        self.instance = instance
        self.state_store = state_store

    @property
    def name(self) -> str:
        return self.instance.name

    @property
    def logger(self):
        return self.instance.logger

    def last_action(self) -> Optional[str]:
        return self.state_store.last_action(self.name)

    # --------------------
    # Public actions
    # --------------------
    def create(self) -> TransitionResult:
        return self.transition_to("create")

    def converge(self) -> TransitionResult:
        return self.transition_to("converge")

    def setup(self) -> TransitionResult:
        return self.transition_to("setup")

    def verify(self) -> TransitionResult:
        return self.transition_to("verify")

    def destroy(self) -> TransitionResult:
        return self.transition_to("destroy")

    def test(self, destroy_mode: DestroyMode = "passing") -> TransitionResult:
        """
        Destroy any prior instance, verify from scratch, then clean up.

        Args:
            destroy_mode: ``passing`` destroys only after a successful
                verify, ``always`` destroys regardless, ``never`` leaves
                the instance running

        Returns:
            Combined result of every action run
        """
        combined = TransitionResult(instance=self.name, desired="verify")
        start = time.monotonic()
        try:
            self.logger.banner(f"Cleaning up any prior instances of {self.instance}")
            combined.results.extend(self.destroy().results)
            if combined.ok:
                self.logger.banner(f"Testing {self.instance}")
                combined.results.extend(self.verify().results)
            if combined.ok and destroy_mode == "passing":
                combined.results.extend(self.destroy().results)
        finally:
            if destroy_mode == "always":
                combined.results.extend(self.destroy().results)

        if combined.ok:
            self.logger.info(
                f"Testing of {self.instance} complete ({time.monotonic() - start:.2f} seconds)."
            )
        return combined

    # --------------------
    # Orchestration
    # --------------------
    def transition_to(self, desired: str) -> TransitionResult:
        last = self.last_action()
        if FSM.is_collapsed(last, desired):
            self.logger.debug(
                f"Running {desired} alone on {self.instance} (last action: {last}); "
                f"earlier stages are not re-checked"
            )

        result = TransitionResult(instance=self.name, desired=desired)
        for action in FSM.actions(last, desired):
            outcome = self._perform(action)
            result.results.append(outcome)
            if not outcome.ok:
                break
        return result

    def _perform(self, action: str) -> ActionResult:
        doing, done = _PHRASES[action]
        self.logger.banner(f"{doing} {self.instance}")

        state = self.state_store.load(self.name) or {}
        method = getattr(self.instance.driver, action)
        start = time.monotonic()
        error: Optional[ActionFailed] = None
        try:
            try:
                method(state)
            except ActionFailed as e:
                error = e
            else:
                state["last_action"] = action
        finally:
            self.state_store.save(self.name, state)

        elapsed = time.monotonic() - start
        if error is not None:
            self.logger.error(f"{done} of {self.instance} failed: {error}")
            return ActionResult(action=action, elapsed=elapsed, error=error)

        if action == "destroy":
            self.state_store.delete(self.name)
        self.logger.info(f"{done} of {self.instance} complete ({elapsed:.2f} seconds).")
        return ActionResult(action=action, elapsed=elapsed)
