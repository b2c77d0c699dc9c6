"""Best-effort background execution with a separate failure channel.

Work submitted here is detached from the request that scheduled it: the
caller never waits on it and its exceptions never reach the caller. Failures
are logged, counted and forwarded to an optional ``on_failure`` callback.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from loguru import logger

FailureHandler = Callable[[str, BaseException], None]


class BestEffortRunner:
    def __init__(
        self,
        max_workers: int = 2,
        *,
        on_failure: FailureHandler | None = None,
        thread_name_prefix: str = "best-effort",
    ) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._on_failure = on_failure
        self._lock = threading.Lock()
        self._failures = 0

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failures

    def submit(self, name: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future = self._executor.submit(func, *args, **kwargs)
        future.add_done_callback(lambda done: self._observe(name, done))
        return future

    def _observe(self, name: str, future: Future) -> None:
        if future.cancelled():
            logger.warning("Background task {} was cancelled", name)
            return
        exc = future.exception()
        if exc is None:
            return

        with self._lock:
            self._failures += 1
        logger.opt(exception=exc).warning("Background task {} failed", name)
        if self._on_failure is not None:
            try:
                self._on_failure(name, exc)
            except Exception:
                logger.exception("Failure handler raised for background task {}", name)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["BestEffortRunner", "FailureHandler"]
