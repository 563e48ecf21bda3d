"""
Core utility functions
"""
import copy
import re
from typing import Any, Dict, Mapping


# ============================================================
# Mapping Helpers
# ============================================================

def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two mappings, values from ``override`` win.

    Neither argument is modified; nested dicts in the result are copies.
    """
    result = copy.deepcopy(dict(base))

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


# ============================================================
# Command Display
# ============================================================

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(cmd: str) -> str:
    """Squeeze runs of whitespace into one space and strip the ends"""
    return _WHITESPACE.sub(" ", cmd).strip()


def display_cmd(cmd: str) -> str:
    """Shorten multi-line commands to ``first line\\n...<last char>``"""
    first_line, newline, _ = cmd.partition("\n")
    if newline:
        return f"{first_line}\\n...{cmd[-1]}"
    return cmd
