"""Data models for the entity-extraction stage."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NamedEntity:
    """One extracted entity occurrence."""
    name: str
    label: Optional[str] = None
