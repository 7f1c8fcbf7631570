"""Fault recovery by recomputing failed partitions from lineage."""

from __future__ import annotations

import logging

from dataflow.errors import ConfigurationError, PartitionUnrecoverableError
from dataflow.workers import Task

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class FaultRecoveryManager:
    """
    Decide whether a failed partition task is retried.

    A retry is a fresh attempt for the same partition only; the task function
    recomputes it from the lineage plan, so no copy of lost data is needed
    and sibling partitions are never re-executed. Each partition gets
    1 + max_retries_per_partition attempts in total.
    """

    def __init__(self, max_retries_per_partition: int = DEFAULT_MAX_RETRIES):
        if (
            isinstance(max_retries_per_partition, bool)
            or not isinstance(max_retries_per_partition, int)
            or max_retries_per_partition < 0
        ):
            raise ConfigurationError(
                f"max_retries_per_partition must be a non-negative integer, got {max_retries_per_partition!r}"
            )
        self.max_retries_per_partition = max_retries_per_partition

    @property
    def max_attempts(self) -> int:
        return self.max_retries_per_partition + 1

    def on_failure(self, task: Task, error: BaseException) -> Task:
        """
        Return the next attempt for the failed task's partition.

        Raises:
            PartitionUnrecoverableError: If the partition has used all its attempts.
        """
        if task.attempt >= self.max_attempts:
            logger.error(
                "Partition %d failed %d time(s), giving up: %s",
                task.partition_index,
                task.attempt,
                error,
            )
            raise PartitionUnrecoverableError(task.partition_index, task.attempt, error)

        retry = Task(job_id=task.job_id, partition_index=task.partition_index, attempt=task.attempt + 1)
        logger.warning(
            "Recomputing partition %d from lineage (attempt %d/%d) after: %s",
            task.partition_index,
            retry.attempt,
            self.max_attempts,
            error,
        )
        return retry
