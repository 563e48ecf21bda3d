"""
Lifecycle stage ordering
"""
from typing import List, Optional, Tuple


class FSM:
    """
    The smallest state machine that can drive an instance.

    Stages are strictly ordered; moving forward runs every stage after the
    last one up to the desired one, anything else runs just the desired
    stage.
    """

    TRANSITIONS: Tuple[str, ...] = ("destroy", "create", "converge", "setup", "verify")

    @classmethod
    def index(cls, transition: Optional[str]) -> int:
        """Position of a stage, with None (no history) at 0"""
        if transition is None:
            return 0
        try:
            return cls.TRANSITIONS.index(str(transition))
        except ValueError:
            raise ValueError(
                f"Unknown transition '{transition}', expected one of {', '.join(cls.TRANSITIONS)}"
            ) from None

    @classmethod
    def actions(cls, last: Optional[str], desired: str) -> List[str]:
        """
        Transitions needed to go from ``last`` to ``desired``.

        Args:
            last: Last recorded action, None for no history
            desired: Desired action

        Returns:
            Ordered list of actions to perform
        """
        last_index = cls.index(last)
        desired_index = cls.index(desired)

        if desired_index <= last_index:
            return [cls.TRANSITIONS[desired_index]]
        return list(cls.TRANSITIONS[last_index + 1:desired_index + 1])

    @classmethod
    def is_collapsed(cls, last: Optional[str], desired: str) -> bool:
        """
        True when ``desired`` is at or behind ``last``.

        Such a request runs the desired stage alone and trusts the recorded
        state for everything before it: nothing checks that the instance
        still exists or is still converged.
        """
        if desired == "destroy":
            return False
        return cls.index(desired) <= cls.index(last)
