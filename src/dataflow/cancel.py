"""Cooperative cancellation shared by the scheduler and running tasks."""

import threading

from dataflow.errors import JobCancelledError


class CancelToken:
    """Thread-safe cancellation flag checked between records."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise JobCancelledError("Job was cancelled")
