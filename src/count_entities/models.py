"""Data models for count_entities output."""

from dataclasses import dataclass


@dataclass
class EntityCount:
    """Number of occurrences of one entity across all feeds."""
    name: str
    count: int
