from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

INDEX_PATTERN = re.compile(r"-?[0-9]+")


def is_array_index(key: Any) -> bool:
    """Return ``True`` for keys that look like list positions (``"0"``, ``"12"``)."""
    if isinstance(key, int) and not isinstance(key, bool):
        return True
    return isinstance(key, str) and INDEX_PATTERN.fullmatch(key) is not None


def describe_type(value: Any) -> str:
    """Name the JSON-ish type of ``value`` for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    if callable(value):
        return "function"
    return type(value).__name__
