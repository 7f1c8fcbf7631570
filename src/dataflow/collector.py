"""Gather final aggregates into the caller's address space."""

from __future__ import annotations

import logging
from typing import Hashable, Iterable, Mapping

from dataflow.aggregate import merge_partials

logger = logging.getLogger(__name__)


def collect_counts(partials: Iterable[Mapping[Hashable, int]]) -> dict[Hashable, int]:
    """Merge the partial aggregates of every partition into the final aggregate."""
    counts = merge_partials(partials)
    logger.info("Collected %d distinct keys", len(counts))
    return counts


def collect_records(partitions: Iterable[list]) -> list:
    """Concatenate materialized partitions in partition order."""
    records = []
    for partition_records in partitions:
        records.extend(partition_records)
    return records


def sorted_counts(counts: Mapping[Hashable, int], limit: int | None = None) -> list[tuple[Hashable, int]]:
    """Order counts by count descending, then key ascending."""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], str(item[0])))
    return ordered[:limit] if limit is not None else ordered
