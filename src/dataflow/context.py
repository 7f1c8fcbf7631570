"""Entry point for building and running dataflow jobs."""

from __future__ import annotations

import logging
import threading
from typing import Any, Sequence

from dataflow.cancel import CancelToken
from dataflow.dataset import Dataset
from dataflow.errors import ConfigurationError
from dataflow.lineage import ExecutionPlan, LineageGraph
from dataflow.partitioner import partition
from dataflow.recovery import DEFAULT_MAX_RETRIES, FaultRecoveryManager
from dataflow.scheduler import JobMetrics, TaskScheduler
from dataflow.workers import WORKER_POOLS, TaskFn, make_worker_pool

logger = logging.getLogger(__name__)

DEFAULT_NUM_WORKERS = 4


class DataflowContext:
    """
    Owns the lineage graph and the scheduler used to run its actions.

    Example:
        >>> with DataflowContext(num_workers=2) as ctx:
        ...     pairs = ctx.parallelize(["a b", "b"]).flat_map(str.split).map(lambda w: (w, 1))
        ...     pairs.count_by_key()
        {'a': 1, 'b': 2}
    """

    def __init__(
        self,
        num_workers: int = DEFAULT_NUM_WORKERS,
        worker_pool: str = "thread",
        max_retries_per_partition: int = DEFAULT_MAX_RETRIES,
        task_timeout: float | None = None,
    ):
        if worker_pool not in WORKER_POOLS:
            raise ConfigurationError(f"Unknown worker pool {worker_pool!r}. Valid pools: {', '.join(WORKER_POOLS)}")
        if isinstance(num_workers, bool) or not isinstance(num_workers, int) or num_workers <= 0:
            raise ConfigurationError(f"num_workers must be a positive integer, got {num_workers!r}")

        self.num_workers = num_workers
        self.worker_pool = worker_pool
        self.graph = LineageGraph()
        self.recovery = FaultRecoveryManager(max_retries_per_partition)
        self.scheduler = TaskScheduler(
            pool_factory=lambda: make_worker_pool(worker_pool, num_workers),
            recovery=self.recovery,
            task_timeout=task_timeout,
        )
        self.last_metrics: JobMetrics | None = None
        self._active_tokens: set[CancelToken] = set()
        self._lock = threading.Lock()

    def parallelize(self, items: Sequence[Any], num_partitions: int | None = None, name: str = "parallelize") -> Dataset:
        """Partition items and register them as a source dataset. Nothing runs yet."""
        partitions = partition(items, num_partitions)
        node = self.graph.add_source(partitions, name=name)
        logger.info("Created source dataset %d: %d items in %d partitions", node.node_id, len(items), len(partitions))
        return Dataset(self, node)

    def run_job(self, plan: ExecutionPlan, task_fn: TaskFn, cancel_token: CancelToken | None = None) -> list[Any]:
        """Run task_fn over every partition of plan and return per-partition results."""
        token = cancel_token or CancelToken()
        with self._lock:
            self._active_tokens.add(token)
        logger.debug("Execution plan:\n%s", self.graph.describe(plan.target_id))
        try:
            results, metrics = self.scheduler.run(plan, task_fn, token)
        finally:
            with self._lock:
                self._active_tokens.discard(token)
        self.last_metrics = metrics
        return results

    def cancel(self) -> None:
        """Cancel every job currently running in this context."""
        with self._lock:
            tokens = list(self._active_tokens)
        for token in tokens:
            token.cancel()
        if tokens:
            logger.warning("Cancelled %d running job(s)", len(tokens))

    def __enter__(self) -> DataflowContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.cancel()
        return False
