from __future__ import annotations

import math
from typing import Any, List

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def coerce_bool(value: Any, *, default: bool = False) -> bool:
    """Coerce a loosely-typed value into a boolean.

    Used for user-authored YAML where values may arrive as strings like
    "false"/"0". Unknown strings fall back to the provided default.
    """
    if value is None:
        return bool(default)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, float):
        if math.isnan(value):
            return bool(default)
        return value != 0.0
    if isinstance(value, str):
        s = value.strip().lower()
        if not s:
            return bool(default)
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        return bool(default)
    return bool(value)


def coerce_float(value: Any, *, default: float, min_value: float, max_value: float) -> float:
    try:
        n = float(value)
    except (TypeError, ValueError):
        n = float(default)
    if math.isnan(n):
        n = float(default)
    return min(max(n, min_value), max_value)


def coerce_int(value: Any, *, default: int, min_value: int, max_value: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        n = int(default)
    return min(max(n, min_value), max_value)


def coerce_argv(value: Any, *, default: List[str]) -> List[str]:
    if isinstance(value, str):
        parts = value.split()
    elif isinstance(value, list):
        parts = [str(x).strip() for x in value if isinstance(x, (str, int, float)) and str(x).strip()]
    else:
        parts = []
    return parts or list(default)
