"""Worker pools that execute partition tasks.

Pools receive ``Task`` messages through ``submit`` and report ``TaskResult``
messages on their ``results`` queue. Workers share nothing with each other
or with the scheduler beyond those two queues.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable

from dataflow.cancel import CancelToken
from dataflow.errors import ConfigurationError, JobCancelledError

logger = logging.getLogger(__name__)

TaskFn = Callable[[int, CancelToken], Any]


@dataclass(frozen=True)
class Task:
    """One attempt at computing one partition."""
    job_id: int
    partition_index: int
    attempt: int = 1


@dataclass(frozen=True)
class TaskResult:
    task: Task
    success: bool
    value: Any = None
    error: BaseException | None = None


def run_task(task: Task, task_fn: TaskFn, cancel_token: CancelToken) -> TaskResult:
    """Run task_fn for one task, turning exceptions into a failed TaskResult."""
    if cancel_token.cancelled:
        return TaskResult(task=task, success=False, error=JobCancelledError("Job was cancelled"))
    try:
        value = task_fn(task.partition_index, cancel_token)
    except Exception as exc:
        return TaskResult(task=task, success=False, error=exc)
    return TaskResult(task=task, success=True, value=value)


class WorkerPool:
    """Base class for worker pools."""

    size: int = 1

    def __init__(self) -> None:
        self.results: queue.Queue[TaskResult] = queue.Queue()

    def start(self, task_fn: TaskFn, cancel_token: CancelToken) -> None:
        raise NotImplementedError

    def submit(self, task: Task) -> None:
        raise NotImplementedError

    def abandon(self, task: Task) -> None:
        """Give up on a running task (timed out) and free its slot."""

    def shutdown(self) -> None:
        pass

    @property
    def enforces_timeouts(self) -> bool:
        return True


class InlineWorkerPool(WorkerPool):
    """Runs each task on the submitting thread. Timeouts cannot be enforced."""

    size = 1

    def start(self, task_fn: TaskFn, cancel_token: CancelToken) -> None:
        self._task_fn = task_fn
        self._cancel_token = cancel_token

    def submit(self, task: Task) -> None:
        self.results.put(run_task(task, self._task_fn, self._cancel_token))

    @property
    def enforces_timeouts(self) -> bool:
        return False


class _Worker(threading.Thread):
    def __init__(self, pool: ThreadWorkerPool, name: str):
        super().__init__(name=name, daemon=True)
        self._pool = pool
        self.retired = threading.Event()

    def run(self) -> None:
        pool = self._pool
        while not self.retired.is_set():
            task = pool._tasks.get()
            if task is None:
                break
            pool._mark_running(task, self)
            result = run_task(task, pool._task_fn, pool._cancel_token)
            pool._mark_done(task)
            pool.results.put(result)
        logger.debug("Worker %s stopped", self.name)


class ThreadWorkerPool(WorkerPool):
    """Fixed number of threads consuming an explicit task queue."""

    def __init__(self, size: int):
        super().__init__()
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ConfigurationError(f"Worker pool size must be a positive integer, got {size!r}")
        self.size = size
        self._tasks: queue.Queue[Task | None] = queue.Queue()
        self._workers: list[_Worker] = []
        self._running: dict[Task, _Worker] = {}
        self._lock = threading.Lock()
        self._spawned = 0

    def start(self, task_fn: TaskFn, cancel_token: CancelToken) -> None:
        self._task_fn = task_fn
        self._cancel_token = cancel_token
        for _ in range(self.size):
            self._spawn()
        logger.debug("Started %d worker threads", self.size)

    def submit(self, task: Task) -> None:
        self._tasks.put(task)

    def abandon(self, task: Task) -> None:
        with self._lock:
            worker = self._running.pop(task, None)
        if worker is None:
            return
        worker.retired.set()
        logger.warning(
            "Abandoning %s (partition %d, attempt %d); starting a replacement worker",
            worker.name,
            task.partition_index,
            task.attempt,
        )
        self._spawn()

    def shutdown(self) -> None:
        with self._lock:
            workers = [worker for worker in self._workers if not worker.retired.is_set()]
        for _ in workers:
            self._tasks.put(None)
        for worker in workers:
            worker.join(timeout=1.0)

    def _spawn(self) -> None:
        with self._lock:
            self._spawned += 1
            worker = _Worker(self, name=f"dataflow-worker-{self._spawned}")
            self._workers.append(worker)
        worker.start()

    def _mark_running(self, task: Task, worker: _Worker) -> None:
        with self._lock:
            self._running[task] = worker

    def _mark_done(self, task: Task) -> None:
        with self._lock:
            self._running.pop(task, None)


WORKER_POOLS = ("thread", "inline")


def make_worker_pool(kind: str, size: int) -> WorkerPool:
    """Create a worker pool by name ("thread" or "inline")."""
    if kind == "thread":
        return ThreadWorkerPool(size)
    if kind == "inline":
        return InlineWorkerPool()
    raise ConfigurationError(f"Unknown worker pool {kind!r}. Valid pools: {', '.join(WORKER_POOLS)}")
