"""Lineage graph: lazily recorded transformations and their evaluation.

Transformations are stored as nodes in an arena (``LineageGraph.nodes``) and
reference their parents by id. Nothing runs while the graph is built; a
partition is only materialized by ``LineageGraph.compute``, which is also
how a lost partition is recomputed after a task failure.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from dataflow.cancel import CancelToken
from dataflow.partitioner import Partition

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    SOURCE = "source"
    MAP = "map"
    FLAT_MAP = "flat_map"
    FILTER = "filter"
    MAP_PARTITIONS = "map_partitions"
    UNION = "union"


@dataclass(frozen=True)
class LineageNode:
    """Recipe for one dataset: source partitions or a transformation of parents."""
    node_id: int
    kind: NodeKind
    parents: tuple[int, ...]
    num_partitions: int
    name: str
    func: Callable[..., Any] | None = None
    source: tuple[Partition, ...] | None = None


@dataclass(frozen=True)
class ExecutionPlan:
    """Topologically ordered (parents first) nodes needed to compute target_id."""
    target_id: int
    nodes: tuple[LineageNode, ...]
    num_partitions: int

    @property
    def target(self) -> LineageNode:
        return self.nodes[-1]

    def node(self, node_id: int) -> LineageNode:
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        raise KeyError(node_id)


class LineageGraph:
    """Append-only arena of lineage nodes."""

    def __init__(self) -> None:
        self.nodes: list[LineageNode] = []
        self._lock = threading.Lock()

    def add_source(self, partitions: Sequence[Partition], name: str = "source") -> LineageNode:
        """Register immutable source partitions as a terminal node."""
        partitions = tuple(partitions)
        with self._lock:
            node = LineageNode(
                node_id=len(self.nodes),
                kind=NodeKind.SOURCE,
                parents=(),
                num_partitions=len(partitions),
                name=name,
                source=partitions,
            )
            self.nodes.append(node)
        logger.debug("Recorded %s node %d with %d partitions", node.kind.value, node.node_id, node.num_partitions)
        return node

    def add_node(
        self,
        kind: NodeKind,
        parents: Sequence[int],
        func: Callable[..., Any] | None = None,
        name: str | None = None,
    ) -> LineageNode:
        """Record a transformation of existing nodes without executing it."""
        if kind is NodeKind.SOURCE:
            raise ValueError("Use add_source() for source nodes")
        parents = tuple(parents)
        if not parents:
            raise ValueError(f"{kind.value} node needs at least one parent")
        if kind is not NodeKind.UNION and len(parents) != 1:
            raise ValueError(f"{kind.value} node takes exactly one parent, got {len(parents)}")
        if kind is not NodeKind.UNION and func is None:
            raise ValueError(f"{kind.value} node needs a function")

        with self._lock:
            for parent_id in parents:
                if not 0 <= parent_id < len(self.nodes):
                    raise KeyError(f"Unknown parent lineage node {parent_id}")
            if kind is NodeKind.UNION:
                num_partitions = sum(self.nodes[parent_id].num_partitions for parent_id in parents)
            else:
                num_partitions = self.nodes[parents[0]].num_partitions
            node = LineageNode(
                node_id=len(self.nodes),
                kind=kind,
                parents=parents,
                num_partitions=num_partitions,
                name=name or _func_name(kind, func),
                func=func,
            )
            self.nodes.append(node)
        logger.debug("Recorded %s node %d <- %s", node.kind.value, node.node_id, list(parents))
        return node

    def build_plan(self, node_id: int) -> ExecutionPlan:
        """
        Build the execution plan for node_id.

        Pure graph traversal: touches no data and returns an equal plan every
        time it is called for the same node.
        """
        with self._lock:
            arena = list(self.nodes)
        if not 0 <= node_id < len(arena):
            raise KeyError(f"Unknown lineage node {node_id}")

        ordered: list[LineageNode] = []
        visited: set[int] = set()

        def visit(current: int) -> None:
            if current in visited:
                return
            visited.add(current)
            for parent_id in arena[current].parents:
                visit(parent_id)
            ordered.append(arena[current])

        visit(node_id)
        return ExecutionPlan(
            target_id=node_id,
            nodes=tuple(ordered),
            num_partitions=arena[node_id].num_partitions,
        )

    def describe(self, node_id: int) -> str:
        """Human-readable lineage of node_id, one node per line."""
        plan = self.build_plan(node_id)
        lines = []
        for node in plan.nodes:
            parents = ", ".join(f"[{parent}]" for parent in node.parents) or "-"
            lines.append(f"[{node.node_id}] {node.name} partitions={node.num_partitions} <- {parents}")
        return "\n".join(lines)

    @staticmethod
    def compute(
        plan: ExecutionPlan,
        partition_index: int,
        cancel_token: CancelToken | None = None,
    ) -> list[Any]:
        """
        Materialize one partition of the plan's target.

        Every call re-evaluates the chain from the source partitions, so the
        result is a new, independent list each time.
        """
        if not 0 <= partition_index < plan.num_partitions:
            raise IndexError(f"Partition {partition_index} out of range for {plan.num_partitions} partitions")
        nodes = {node.node_id: node for node in plan.nodes}
        return list(_evaluate(nodes, plan.target_id, partition_index, cancel_token))


def _evaluate(
    nodes: dict[int, LineageNode],
    node_id: int,
    partition_index: int,
    cancel_token: CancelToken | None,
) -> Iterable[Any]:
    node = nodes[node_id]

    if node.kind is NodeKind.SOURCE:
        return node.source[partition_index].items

    if node.kind is NodeKind.UNION:
        offset = partition_index
        for parent_id in node.parents:
            parent = nodes[parent_id]
            if offset < parent.num_partitions:
                return _evaluate(nodes, parent_id, offset, cancel_token)
            offset -= parent.num_partitions
        raise IndexError(f"Partition {partition_index} out of range for union node {node_id}")

    upstream = _evaluate(nodes, node.parents[0], partition_index, cancel_token)
    if node.kind is NodeKind.MAP_PARTITIONS:
        return list(node.func(iter(upstream)))

    output = []
    for record in upstream:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        if node.kind is NodeKind.MAP:
            output.append(node.func(record))
        elif node.kind is NodeKind.FLAT_MAP:
            output.extend(node.func(record))
        elif node.func(record):
            output.append(record)
    return output


def _func_name(kind: NodeKind, func: Callable[..., Any] | None) -> str:
    if func is None:
        return kind.value
    target = getattr(func, "func", func)
    return f"{kind.value}({getattr(target, '__name__', type(target).__name__)})"
