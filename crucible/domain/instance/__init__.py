"""
Instance domain module
"""
from .models import Suite, Platform, Instance, instance_name
from .fsm import FSM
from .lifecycle import InstanceLifecycle, ActionResult, TransitionResult

__all__ = [
    "Suite",
    "Platform",
    "Instance",
    "instance_name",
    "FSM",
    "InstanceLifecycle",
    "ActionResult",
    "TransitionResult",
]
