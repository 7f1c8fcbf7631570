"""Error taxonomy for the dataflow engine."""

from __future__ import annotations


class DataflowError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(DataflowError, ValueError):
    """Invalid job configuration (partition count, heuristic name, pool size...).

    Raised before any task is scheduled.
    """


class TaskExecutionError(DataflowError):
    """A single task attempt failed inside a worker.

    Handled by the fault-recovery manager; callers only see it as the
    ``cause`` of a ``PartitionUnrecoverableError``.
    """

    def __init__(self, partition_index: int, attempt: int, cause: BaseException | None = None):
        self.partition_index = partition_index
        self.attempt = attempt
        self.cause = cause
        super().__init__(f"Task for partition {partition_index} failed on attempt {attempt}: {cause!r}")


class TaskTimeoutError(TaskExecutionError):
    """A task attempt ran longer than the configured task timeout."""

    def __init__(self, partition_index: int, attempt: int, timeout: float):
        self.timeout = timeout
        super().__init__(partition_index, attempt, TimeoutError(f"exceeded {timeout:.1f}s"))


class PartitionUnrecoverableError(DataflowError):
    """Retries exhausted for a partition; the whole job is aborted."""

    def __init__(self, partition_index: int, attempts: int, cause: BaseException | None = None):
        self.partition_index = partition_index
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Partition {partition_index} could not be computed after {attempts} attempt(s): {cause!r}"
        )


class CountOverflowError(DataflowError, OverflowError):
    """A count exceeded the 64-bit accumulator width."""

    def __init__(self, key: str, value: int):
        self.key = key
        self.value = value
        super().__init__(f"Count for {key!r} overflowed 64-bit accumulator ({value})")


class JobCancelledError(DataflowError):
    """The job was cancelled by the caller before it completed."""
