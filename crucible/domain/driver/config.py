"""
Driver configuration layering
"""
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional


def resolve_config(options: Mapping[str, Any], defaults: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Fill in class defaults under caller-supplied options.

    A key present in ``options`` always wins, whatever its value.

    Args:
        options: Caller-supplied configuration
        defaults: Driver class defaults

    Returns:
        New flat configuration dictionary
    """
    resolved = dict(defaults)
    resolved.update(options)
    return resolved


def layer_configs(*overlays: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Apply flat option overlays left to right, later layers win.

    The usual order is common driver config, then per-platform driver
    config. ``None`` layers are skipped.
    """
    result: Dict[str, Any] = {}
    for overlay in overlays:
        if overlay:
            result.update(overlay)
    return result


class DriverConfig(Mapping[str, Any]):
    """Read-only flat driver configuration"""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data = MappingProxyType(dict(data or {}))

    @classmethod
    def build(
        cls,
        defaults: Mapping[str, Any],
        *overlays: Optional[Mapping[str, Any]],
    ) -> "DriverConfig":
        """Defaults, then each overlay in order"""
        return cls(resolve_config(layer_configs(*overlays), defaults))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        shown = {k: ("***" if k == "password" else v) for k, v in self._data.items()}
        return f"DriverConfig({shown!r})"
