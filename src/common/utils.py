"""Common utility functions."""

from typing import Any


def get_value(obj: Any, *keys: str, default: Any = None) -> Any:
    """Return the first non-empty value among keys, read from a dict or object attributes."""
    for key in keys:
        value = obj.get(key) if isinstance(obj, dict) else getattr(obj, key, None)
        if value:
            return value
    return default
