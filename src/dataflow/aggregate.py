"""Shuffle aggregation: local combine per partition, then a global merge."""

from __future__ import annotations

import logging
from typing import Hashable, Iterable, Mapping

from dataflow.errors import CountOverflowError

logger = logging.getLogger(__name__)

MAX_COUNT = 2**63 - 1


def _checked_add(key: Hashable, current: int, value: int) -> int:
    total = current + value
    if total > MAX_COUNT:
        raise CountOverflowError(str(key), total)
    return total


def _check_count(key: Hashable, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Count for {key!r} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"Count for {key!r} must be non-negative, got {value}")
    return value


def combine_partition(pairs: Iterable[tuple[Hashable, int]]) -> dict[Hashable, int]:
    """
    Fold (key, count) pairs of one partition into a partial aggregate.

    The result has one entry per distinct key, which is all that crosses the
    shuffle boundary.
    """
    partial: dict[Hashable, int] = {}
    for key, value in pairs:
        value = _check_count(key, value)
        if value == 0:
            continue
        partial[key] = _checked_add(key, partial.get(key, 0), value)
    return partial


def merge_partials(partials: Iterable[Mapping[Hashable, int]]) -> dict[Hashable, int]:
    """
    Merge partial aggregates by summing counts of matching keys.

    Addition is associative and commutative, so the merged counts do not
    depend on the order of the partials.
    """
    merged: dict[Hashable, int] = {}
    num_partials = 0
    for partial in partials:
        num_partials += 1
        for key, value in partial.items():
            value = _check_count(key, value)
            if value == 0:
                continue
            merged[key] = _checked_add(key, merged.get(key, 0), value)
    logger.debug("Merged %d partial aggregates into %d keys", num_partials, len(merged))
    return merged
