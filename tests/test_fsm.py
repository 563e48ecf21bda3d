"""Lifecycle stage ordering tests."""
from __future__ import annotations

import pytest

from crucible.domain.instance import FSM


def test_fresh_instance_create_runs_create() -> None:
    assert FSM.actions(None, "create") == ["create"]


def test_fresh_instance_verify_runs_every_forward_stage() -> None:
    assert FSM.actions(None, "verify") == ["create", "converge", "setup", "verify"]


def test_forward_from_create_to_verify() -> None:
    assert FSM.actions("create", "verify") == ["converge", "setup", "verify"]


def test_same_stage_runs_once() -> None:
    """A repeated request re-runs the stage rather than doing nothing."""
    assert FSM.actions("verify", "verify") == ["verify"]
    assert FSM.actions("create", "create") == ["create"]


def test_backward_runs_only_desired_stage() -> None:
    assert FSM.actions("verify", "create") == ["create"]
    assert FSM.actions("setup", "converge") == ["converge"]


def test_destroy_is_always_single() -> None:
    assert FSM.actions("verify", "destroy") == ["destroy"]
    assert FSM.actions(None, "destroy") == ["destroy"]


def test_after_destroy_behaves_like_fresh() -> None:
    assert FSM.actions("destroy", "converge") == FSM.actions(None, "converge")


def test_unknown_stage_raises() -> None:
    with pytest.raises(ValueError):
        FSM.actions(None, "explode")
    with pytest.raises(ValueError):
        FSM.actions("bogus", "create")


def test_is_collapsed_flags_unchecked_reruns() -> None:
    """Backward and same-stage requests trust the recorded state."""
    assert FSM.is_collapsed("verify", "create") is True
    assert FSM.is_collapsed("setup", "setup") is True
    assert FSM.is_collapsed("create", "verify") is False
    assert FSM.is_collapsed(None, "verify") is False
    assert FSM.is_collapsed("verify", "destroy") is False
