"""Lazy dataset handle over a lineage node."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Hashable, Iterable, Iterator

from dataflow.aggregate import combine_partition
from dataflow.cancel import CancelToken
from dataflow.collector import collect_counts, collect_records
from dataflow.lineage import ExecutionPlan, LineageGraph, LineageNode, NodeKind

if TYPE_CHECKING:
    from dataflow.context import DataflowContext

logger = logging.getLogger(__name__)


class Dataset:
    """
    A partitioned collection defined by its lineage.

    Transformations (map, flat_map, filter, map_partitions, union) only
    record a new lineage node and return a new Dataset. Actions (collect,
    count, count_by_key) build the execution plan and run it.
    """

    def __init__(self, context: DataflowContext, node: LineageNode):
        self.context = context
        self.node = node

    @property
    def id(self) -> int:
        return self.node.node_id

    @property
    def num_partitions(self) -> int:
        return self.node.num_partitions

    @property
    def graph(self) -> LineageGraph:
        return self.context.graph

    # Transformations

    def map(self, func: Callable[[Any], Any], name: str | None = None) -> Dataset:
        return self._derive(NodeKind.MAP, func, name)

    def flat_map(self, func: Callable[[Any], Iterable[Any]], name: str | None = None) -> Dataset:
        return self._derive(NodeKind.FLAT_MAP, func, name)

    def filter(self, func: Callable[[Any], bool], name: str | None = None) -> Dataset:
        return self._derive(NodeKind.FILTER, func, name)

    def map_partitions(self, func: Callable[[Iterator[Any]], Iterable[Any]], name: str | None = None) -> Dataset:
        return self._derive(NodeKind.MAP_PARTITIONS, func, name)

    def union(self, *others: Dataset) -> Dataset:
        for other in others:
            if other.context is not self.context:
                raise ValueError("Cannot union datasets from different contexts")
        parents = [self.id] + [other.id for other in others]
        node = self.graph.add_node(NodeKind.UNION, parents, name=f"union({', '.join(str(p) for p in parents)})")
        return Dataset(self.context, node)

    def _derive(self, kind: NodeKind, func: Callable[..., Any], name: str | None) -> Dataset:
        node = self.graph.add_node(kind, [self.id], func=func, name=name)
        return Dataset(self.context, node)

    # Plan inspection

    def plan(self) -> ExecutionPlan:
        return self.graph.build_plan(self.id)

    def lineage(self) -> str:
        return self.graph.describe(self.id)

    # Actions

    def collect(self, cancel_token: CancelToken | None = None) -> list[Any]:
        """Materialize every partition and return all records in partition order."""
        plan = self.plan()

        def task(partition_index: int, token: CancelToken) -> list[Any]:
            return LineageGraph.compute(plan, partition_index, token)

        return collect_records(self.context.run_job(plan, task, cancel_token))

    def count(self, cancel_token: CancelToken | None = None) -> int:
        """Number of records across all partitions."""
        plan = self.plan()

        def task(partition_index: int, token: CancelToken) -> int:
            return len(LineageGraph.compute(plan, partition_index, token))

        return sum(self.context.run_job(plan, task, cancel_token))

    def count_by_key(self, cancel_token: CancelToken | None = None) -> dict[Hashable, int]:
        """
        Sum (key, count) records by key across all partitions.

        Each task computes its partition and folds it into a partial aggregate
        (local combine); only those partials cross the shuffle boundary. The
        global merge runs once every partition has reported.
        """
        plan = self.plan()

        def task(partition_index: int, token: CancelToken) -> dict[Hashable, int]:
            return combine_partition(LineageGraph.compute(plan, partition_index, token))

        partials = self.context.run_job(plan, task, cancel_token)
        return collect_counts(partials)

    def __repr__(self) -> str:
        return f"Dataset[{self.id}] {self.node.name} (partitions={self.num_partitions})"
