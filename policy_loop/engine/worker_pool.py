"""Thread pool running the encode + predict phase of each task."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from policy_loop.errors import DispatchError

logger = logging.getLogger(__name__)


class WorkerPool:
    """Wraps a ThreadPoolExecutor. Submission never blocks the caller."""

    __slots__ = ("_executor", "_num_workers", "_closed")

    def __init__(self, num_workers: int) -> None:
        self._num_workers = max(1, num_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=self._num_workers,
            thread_name_prefix="ai-worker",
        )
        self._closed = False

    @property
    def num_workers(self) -> int:
        return self._num_workers

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        if self._closed:
            raise DispatchError("Worker pool is shut down")
        try:
            return self._executor.submit(fn, *args)
        except RuntimeError as exc:
            raise DispatchError(f"Cannot schedule task: {exc}") from exc

    def shutdown(self, wait: bool = False) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.debug("Worker pool shut down")
