"""
Instance domain models
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from ...core.exceptions import ValidationError
from ...core.logging import InstanceLogger, get_instance_logger
from ...core.utils import deep_merge

if TYPE_CHECKING:
    from ..driver.base import Driver
    from ..runner.commands import CommandGenerator


def _require(kind: str, opts: Mapping[str, Any], keys: Sequence[str]) -> None:
    for key in keys:
        if opts.get(key) is None:
            raise ValidationError(f"{kind} attribute '{key}' is required.")


def _as_tuple(items: Any) -> Tuple[str, ...]:
    """A lone run_list entry given as a string becomes a one-item tuple"""
    if isinstance(items, str):
        return (items,)
    return tuple(items)


@dataclass(frozen=True)
class Suite:
    """
    A chef run_list and attribute tree used for one convergence test.

    Attributes:
        name: Logical suite name
        run_list: Chef run_list items
        attributes: Chef node attributes
        data_bags_path: Local data bags directory, None if there is none
        roles_path: Local roles directory, None if there is none
    """
    name: str
    run_list: Tuple[str, ...]
    attributes: Dict[str, Any] = field(default_factory=dict)
    data_bags_path: Optional[str] = None
    roles_path: Optional[str] = None

    def __post_init__(self) -> None:
        _require("Suite", {"name": self.name, "run_list": self.run_list}, ("name", "run_list"))
        object.__setattr__(self, "run_list", _as_tuple(self.run_list))
        object.__setattr__(self, "attributes", dict(self.attributes or {}))

    @classmethod
    def from_dict(cls, opts: Mapping[str, Any]) -> Suite:
        _require("Suite", opts, ("name", "run_list"))
        return cls(
            name=opts["name"],
            run_list=opts["run_list"],
            attributes=opts.get("attributes") or {},
            data_bags_path=opts.get("data_bags_path"),
            roles_path=opts.get("roles_path"),
        )


@dataclass(frozen=True)
class Platform:
    """A target operating system environment and its own run_list/attributes"""
    name: str
    run_list: Tuple[str, ...] = ()
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require("Platform", {"name": self.name}, ("name",))
        object.__setattr__(self, "run_list", _as_tuple(self.run_list or ()))
        object.__setattr__(self, "attributes", dict(self.attributes or {}))

    @classmethod
    def from_dict(cls, opts: Mapping[str, Any]) -> Platform:
        _require("Platform", opts, ("name",))
        return cls(
            name=opts["name"],
            run_list=opts.get("run_list") or (),
            attributes=opts.get("attributes") or {},
        )


def instance_name(suite_name: str, platform_name: str) -> str:
    """``<suite>-<platform>`` with underscores dashed and dots dropped"""
    return f"{suite_name}-{platform_name}".replace("_", "-").replace(".", "")


class Instance:
    """
    One suite applied to one platform.

    The instance owns its driver and command generator; suite and platform
    may be shared with other instances.
    """

    def __init__(
        self,
        suite: Suite,
        platform: Platform,
        driver: Driver,
        runner: CommandGenerator,
        logger: Optional[InstanceLogger] = None,
    ):
        _require(
            "Instance",
            {"suite": suite, "platform": platform, "driver": driver, "runner": runner},
            ("suite", "platform", "driver", "runner"),
        )
        self.suite = suite
        self.platform = platform
        self.driver = driver
        self.runner = runner
        self.logger = logger or get_instance_logger(self.name)

        driver.bind(self)

    @property
    def name(self) -> str:
        return instance_name(self.suite.name, self.platform.name)

    @property
    def run_list(self) -> List[str]:
        """Platform run_list followed by the suite run_list"""
        return list(self.platform.run_list) + list(self.suite.run_list)

    @property
    def attributes(self) -> Dict[str, Any]:
        """Platform attributes deep-merged with suite attributes on top"""
        return deep_merge(self.platform.attributes, self.suite.attributes)

    @property
    def dna(self) -> Dict[str, Any]:
        """Convergence payload: attributes plus the combined run_list"""
        return deep_merge(self.attributes, {"run_list": self.run_list})

    def __str__(self) -> str:
        return f"<{self.name}>"

    def __repr__(self) -> str:
        return f"Instance({self.name!r})"
