"""Split an input collection into independent partitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from dataflow.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PARTITIONS = 10


@dataclass(frozen=True)
class Partition:
    """An immutable, ordered slice of the source data."""
    index: int
    items: tuple[Any, ...]

    def __len__(self) -> int:
        return len(self.items)


def default_partition_count(num_items: int) -> int:
    """Default partition count: one per item, capped at DEFAULT_MAX_PARTITIONS."""
    return min(num_items, DEFAULT_MAX_PARTITIONS)


def validate_partition_count(num_partitions: Any) -> int:
    """Return num_partitions if it is a positive int, else raise ConfigurationError."""
    if isinstance(num_partitions, bool) or not isinstance(num_partitions, int):
        raise ConfigurationError(f"Partition count must be an integer, got {num_partitions!r}")
    if num_partitions <= 0:
        raise ConfigurationError(f"Partition count must be positive, got {num_partitions}")
    return num_partitions


def partition(items: Sequence[Any], num_partitions: int | None = None) -> list[Partition]:
    """
    Split items into contiguous, balanced partitions.

    Block sizes differ by at most one, so no partition is empty when
    len(items) >= num_partitions. Item order inside a partition follows the
    input order.

    Args:
        items: Input collection.
        num_partitions: Target partition count (default: min(len(items), 10)).

    Returns:
        List of Partition objects indexed 0..num_partitions-1.

    Raises:
        ConfigurationError: If num_partitions is not a positive integer.
    """
    items = tuple(items)
    if num_partitions is None:
        num_partitions = default_partition_count(len(items))
        if num_partitions == 0:
            return []
    else:
        validate_partition_count(num_partitions)

    size, remainder = divmod(len(items), num_partitions)
    partitions = []
    start = 0
    for index in range(num_partitions):
        end = start + size + (1 if index < remainder else 0)
        partitions.append(Partition(index=index, items=items[start:end]))
        start = end

    if len(items) < num_partitions:
        logger.warning(
            "%d partitions requested for %d items; %d partitions will be empty",
            num_partitions,
            len(items),
            num_partitions - len(items),
        )
    return partitions
