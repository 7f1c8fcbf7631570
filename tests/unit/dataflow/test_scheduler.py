"""Tests for dataflow.scheduler and dataflow.workers modules."""

import threading
import time

import pytest

from dataflow.cancel import CancelToken
from dataflow.errors import (
    ConfigurationError,
    JobCancelledError,
    PartitionUnrecoverableError,
)
from dataflow.lineage import LineageGraph
from dataflow.partitioner import partition
from dataflow.recovery import FaultRecoveryManager
from dataflow.scheduler import TaskScheduler
from dataflow.workers import InlineWorkerPool, Task, ThreadWorkerPool, make_worker_pool, run_task


def _plan(num_partitions: int):
    graph = LineageGraph()
    source = graph.add_source(partition(list(range(num_partitions * 2)), num_partitions))
    return graph.build_plan(source.node_id)


def _scheduler(pool="thread", size=3, max_retries=2, task_timeout=None) -> TaskScheduler:
    return TaskScheduler(
        pool_factory=lambda: make_worker_pool(pool, size),
        recovery=FaultRecoveryManager(max_retries),
        task_timeout=task_timeout,
    )


def _compute(partition_index: int, token: CancelToken):
    return sum(LineageGraph.compute(PLAN, partition_index, token))


PLAN = _plan(5)


class FailFirstAttempt:
    """Task function that fails the first attempt of selected partitions."""

    def __init__(self, partitions, fn=_compute):
        self.partitions = set(partitions)
        self.fn = fn
        self.calls: dict[int, int] = {}
        self._lock = threading.Lock()

    def __call__(self, partition_index: int, token: CancelToken):
        with self._lock:
            self.calls[partition_index] = self.calls.get(partition_index, 0) + 1
            first = self.calls[partition_index] == 1
        if first and partition_index in self.partitions:
            raise RuntimeError(f"simulated crash in partition {partition_index}")
        return self.fn(partition_index, token)


class _SlowFirst:
    """Runs fn slowly on the first attempt of each partition, fast afterwards."""

    def __init__(self, slow_fn):
        self.slow_fn = slow_fn
        self.seen: set[int] = set()
        self._lock = threading.Lock()

    def __call__(self, partition_index, token):
        with self._lock:
            first = partition_index not in self.seen
            self.seen.add(partition_index)
        if first:
            return self.slow_fn(partition_index, token)
        return _compute(partition_index, token)


class LateReportingPool(InlineWorkerPool):
    """Inline pool whose results arrive after the task deadline has passed."""

    def submit(self, task: Task) -> None:
        time.sleep(0.05)
        super().submit(task)

    @property
    def enforces_timeouts(self) -> bool:
        return True


class TestTaskScheduler:
    def test_runs_every_partition_in_order(self) -> None:
        results, metrics = _scheduler().run(PLAN, _compute)
        assert results == [1, 5, 9, 13, 17]
        assert metrics.attempts == {0: 1, 1: 1, 2: 1, 3: 1, 4: 1}
        assert metrics.recomputed_partitions == []

    def test_inline_pool_gives_same_results(self) -> None:
        results, _ = _scheduler(pool="inline").run(PLAN, _compute)
        assert results == [1, 5, 9, 13, 17]

    def test_empty_plan(self) -> None:
        graph = LineageGraph()
        plan = graph.build_plan(graph.add_source([]).node_id)
        results, metrics = _scheduler().run(plan, _compute)
        assert results == []
        assert metrics.num_partitions == 0

    def test_only_failed_partition_is_recomputed(self) -> None:
        task_fn = FailFirstAttempt({2})
        results, metrics = _scheduler().run(PLAN, task_fn)

        assert results == [1, 5, 9, 13, 17]
        assert task_fn.calls == {0: 1, 1: 1, 2: 2, 3: 1, 4: 1}
        assert metrics.attempts[2] == 2
        assert metrics.recomputed_partitions == [2]

    def test_zero_retries_fails_job(self) -> None:
        with pytest.raises(PartitionUnrecoverableError) as exc_info:
            _scheduler(max_retries=0).run(PLAN, FailFirstAttempt({3}))
        assert exc_info.value.partition_index == 3
        assert exc_info.value.attempts == 1

    def test_retries_are_bounded(self) -> None:
        calls = []

        def always_fails(partition_index, token):
            calls.append(partition_index)
            raise RuntimeError("down")

        with pytest.raises(PartitionUnrecoverableError) as exc_info:
            _scheduler(pool="inline", max_retries=2).run(_plan(1), always_fails)
        assert exc_info.value.attempts == 3
        assert calls == [0, 0, 0]
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_timeout_triggers_recomputation(self) -> None:
        def slow_once(partition_index, token):
            if partition_index == 1:
                time.sleep(0.5)
            return _compute(partition_index, token)

        results, metrics = _scheduler(task_timeout=0.2).run(PLAN, _SlowFirst(slow_once))
        assert results == [1, 5, 9, 13, 17]
        assert metrics.attempts[1] == 2
        assert metrics.recomputed_partitions == [1]

    def test_result_reported_after_deadline_is_kept(self) -> None:
        scheduler = TaskScheduler(
            pool_factory=LateReportingPool,
            recovery=FaultRecoveryManager(0),
            task_timeout=0.01,
        )

        results, metrics = scheduler.run(PLAN, _compute)

        assert results == [1, 5, 9, 13, 17]
        assert metrics.recomputed_partitions == []

    def test_timeouts_exhaust_retries(self) -> None:
        def stuck(partition_index, token):
            time.sleep(0.3)
            return 0

        with pytest.raises(PartitionUnrecoverableError) as exc_info:
            _scheduler(size=1, max_retries=1, task_timeout=0.05).run(_plan(1), stuck)
        assert isinstance(exc_info.value.cause, TimeoutError)

    def test_cancel_before_run(self) -> None:
        token = CancelToken()
        token.cancel()
        with pytest.raises(JobCancelledError):
            _scheduler().run(PLAN, _compute, token)

    def test_cancel_during_run(self) -> None:
        token = CancelToken()
        started = threading.Event()

        def waits_for_cancel(partition_index, token):
            started.set()
            while True:
                token.raise_if_cancelled()
                time.sleep(0.01)

        timer = threading.Timer(0.1, token.cancel)
        timer.start()
        try:
            with pytest.raises(JobCancelledError):
                _scheduler().run(PLAN, waits_for_cancel, token)
        finally:
            timer.cancel()
        assert started.is_set()

    def test_failure_cancels_running_siblings(self) -> None:
        token = CancelToken()

        def task_fn(partition_index, token):
            if partition_index == 0:
                raise RuntimeError("fatal")
            while not token.cancelled:
                time.sleep(0.01)
            token.raise_if_cancelled()

        with pytest.raises(PartitionUnrecoverableError):
            _scheduler(max_retries=0).run(PLAN, task_fn, token)
        assert token.cancelled

    def test_invalid_timeout_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            _scheduler(task_timeout=0)


class TestWorkerPools:
    def test_make_worker_pool_by_name(self) -> None:
        assert isinstance(make_worker_pool("thread", 2), ThreadWorkerPool)
        assert isinstance(make_worker_pool("inline", 2), InlineWorkerPool)

    def test_unknown_pool_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            make_worker_pool("cluster", 2)

    def test_thread_pool_size_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            ThreadWorkerPool(0)

    def test_run_task_captures_exception(self) -> None:
        def boom(partition_index, token):
            raise ValueError("bad record")

        result = run_task(Task(job_id=1, partition_index=0), boom, CancelToken())
        assert result.success is False
        assert isinstance(result.error, ValueError)

    def test_thread_pool_reports_results_on_queue(self) -> None:
        pool = ThreadWorkerPool(2)
        pool.start(lambda index, token: index * 10, CancelToken())
        try:
            pool.submit(Task(job_id=1, partition_index=0))
            pool.submit(Task(job_id=1, partition_index=1))
            results = {pool.results.get(timeout=2).task.partition_index for _ in range(2)}
        finally:
            pool.shutdown()
        assert results == {0, 1}
