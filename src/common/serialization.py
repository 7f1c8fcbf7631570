"""Serialization utilities."""

from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any


def to_jsonable(value: Any) -> Any:
    """Convert datetimes (at any nesting depth) to ISO strings and tuples to lists."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def serialize_dataclass(obj) -> dict:
    """Serialize a dataclass instance to a JSON-ready dict."""
    if not is_dataclass(obj) or isinstance(obj, type):
        raise TypeError(f"Expected a dataclass instance, got {type(obj).__name__}")
    return to_jsonable(asdict(obj))
