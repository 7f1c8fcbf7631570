"""Execution scheduler: runs one task per partition of a plan on a worker pool."""

from __future__ import annotations

import itertools
import logging
import queue
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

from dataflow.cancel import CancelToken
from dataflow.errors import ConfigurationError, JobCancelledError, TaskExecutionError, TaskTimeoutError
from dataflow.lineage import ExecutionPlan
from dataflow.recovery import FaultRecoveryManager
from dataflow.workers import Task, TaskFn, TaskResult, WorkerPool

logger = logging.getLogger(__name__)

# Upper bound on how long the scheduler blocks before re-checking
# cancellation and task deadlines.
POLL_INTERVAL = 0.05


@dataclass
class JobMetrics:
    """Execution statistics for one action."""
    job_id: int
    num_partitions: int
    attempts: dict[int, int] = field(default_factory=dict)
    recomputed_partitions: list[int] = field(default_factory=list)
    duration_s: float = 0.0

    @property
    def total_attempts(self) -> int:
        return sum(self.attempts.values())


class TaskScheduler:
    """
    Dispatch partition tasks to a worker pool and wait for all of them.

    At most ``pool.size`` tasks are in flight at a time. A failed or timed out
    attempt is handed to the FaultRecoveryManager, which either schedules a
    new attempt for that partition or aborts the job. Results of superseded
    attempts are discarded.
    """

    _job_ids = itertools.count(1)

    def __init__(
        self,
        pool_factory: Callable[[], WorkerPool],
        recovery: FaultRecoveryManager,
        task_timeout: float | None = None,
    ):
        if task_timeout is not None and task_timeout <= 0:
            raise ConfigurationError(f"task_timeout must be positive or None, got {task_timeout!r}")
        self.pool_factory = pool_factory
        self.recovery = recovery
        self.task_timeout = task_timeout

    def run(
        self,
        plan: ExecutionPlan,
        task_fn: TaskFn,
        cancel_token: CancelToken | None = None,
    ) -> tuple[list[Any], JobMetrics]:
        """
        Run task_fn for every partition of plan.

        Args:
            plan: Plan whose target partitions are computed.
            task_fn: Called as task_fn(partition_index, cancel_token) in a worker.
            cancel_token: Token the caller may use to cancel the job.

        Returns:
            Tuple of (per-partition results in partition order, JobMetrics).

        Raises:
            PartitionUnrecoverableError: If a partition exhausts its retries.
            JobCancelledError: If the job is cancelled.
        """
        cancel_token = cancel_token or CancelToken()
        job_id = next(self._job_ids)
        metrics = JobMetrics(job_id=job_id, num_partitions=plan.num_partitions)
        started = time.monotonic()

        if plan.num_partitions == 0:
            logger.info("Job %d has no partitions, nothing to run", job_id)
            return [], metrics

        logger.info(
            "Job %d: running %d tasks for %s",
            job_id,
            plan.num_partitions,
            plan.target.name,
        )

        pool = self.pool_factory()
        pending: deque[Task] = deque(Task(job_id=job_id, partition_index=index) for index in range(plan.num_partitions))
        in_flight: dict[int, tuple[Task, float | None]] = {}
        results: dict[int, Any] = {}

        pool.start(task_fn, cancel_token)
        try:
            while len(results) < plan.num_partitions:
                cancel_token.raise_if_cancelled()

                while pending and len(in_flight) < pool.size:
                    task = pending.popleft()
                    metrics.attempts[task.partition_index] = task.attempt
                    in_flight[task.partition_index] = (task, self._deadline(pool))
                    logger.debug("Job %d: dispatching partition %d (attempt %d)", job_id, task.partition_index, task.attempt)
                    pool.submit(task)

                for result in self._drain(pool):
                    self._handle_result(result, in_flight, results, pending, metrics)
                if len(results) == plan.num_partitions:
                    break

                for task in self._expired(in_flight):
                    del in_flight[task.partition_index]
                    pool.abandon(task)
                    self._retry(task, TaskTimeoutError(task.partition_index, task.attempt, self.task_timeout), pending, metrics)

                try:
                    result = pool.results.get(timeout=self._wait_time(in_flight))
                except queue.Empty:
                    continue
                self._handle_result(result, in_flight, results, pending, metrics)
        except BaseException:
            cancel_token.cancel()
            raise
        finally:
            pool.shutdown()
            metrics.duration_s = time.monotonic() - started

        logger.info(
            "Job %d finished: %d partitions, %d attempts, %d recomputed in %.2fs",
            job_id,
            plan.num_partitions,
            metrics.total_attempts,
            len(metrics.recomputed_partitions),
            metrics.duration_s,
        )
        return [results[index] for index in range(plan.num_partitions)], metrics

    def _handle_result(
        self,
        result: TaskResult,
        in_flight: dict[int, tuple[Task, float | None]],
        results: dict[int, Any],
        pending: deque[Task],
        metrics: JobMetrics,
    ) -> None:
        task = result.task
        current = in_flight.get(task.partition_index)
        if current is None or current[0] != task:
            logger.debug("Discarding stale result for partition %d (attempt %d)", task.partition_index, task.attempt)
            return
        del in_flight[task.partition_index]

        if result.success:
            results[task.partition_index] = result.value
            return
        if isinstance(result.error, JobCancelledError):
            raise result.error
        self._retry(task, TaskExecutionError(task.partition_index, task.attempt, result.error), pending, metrics)

    def _retry(self, task: Task, error: TaskExecutionError, pending: deque[Task], metrics: JobMetrics) -> None:
        retry = self.recovery.on_failure(task, error.cause or error)
        if task.partition_index not in metrics.recomputed_partitions:
            metrics.recomputed_partitions.append(task.partition_index)
        pending.append(retry)

    def _deadline(self, pool: WorkerPool) -> float | None:
        if self.task_timeout is None or not pool.enforces_timeouts:
            return None
        return time.monotonic() + self.task_timeout

    @staticmethod
    def _drain(pool: WorkerPool) -> list[TaskResult]:
        """Results already reported; handled before deadlines are checked."""
        drained = []
        while True:
            try:
                drained.append(pool.results.get_nowait())
            except queue.Empty:
                return drained

    @staticmethod
    def _expired(in_flight: dict[int, tuple[Task, float | None]]) -> list[Task]:
        now = time.monotonic()
        return [task for task, deadline in in_flight.values() if deadline is not None and deadline <= now]

    @staticmethod
    def _wait_time(in_flight: dict[int, tuple[Task, float | None]]) -> float:
        deadlines = [deadline for _, deadline in in_flight.values() if deadline is not None]
        if not deadlines:
            return POLL_INTERVAL
        return max(0.0, min(POLL_INTERVAL, min(deadlines) - time.monotonic()))
