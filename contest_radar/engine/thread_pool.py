"""Thread pool abstraction used for the adapter fan-out."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Lock


class ThreadPoolManager:
    """Lazily create and own the worker pool shared by ingestion runs."""

    def __init__(self, workers: int = 3) -> None:
        self.workers = workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = Lock()

    def get(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.workers, thread_name_prefix="radar-adapter"
                )
            return self._executor

    def shutdown(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None


__all__ = ["ThreadPoolManager"]
