"""Fan out source adapters on the worker pool and gather their results."""

from __future__ import annotations

from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

import structlog

from .adapters import AdapterResult, SourceAdapter
from .engine import Fetcher, ThreadPoolManager
from .logging_conf import configure_logging
from .records import ContestRecord

DEADLINE_EXCEEDED = "deadline_exceeded"


@dataclass(slots=True)
class CollectionResult:
    """Per-adapter outcomes plus the concatenated record batch."""

    results: list[AdapterResult] = field(default_factory=list)
    records: list[ContestRecord] = field(default_factory=list)

    @property
    def per_source(self) -> dict[str, int]:
        return {result.source: len(result.records) for result in self.results}

    @property
    def failed_sources(self) -> dict[str, str]:
        return {result.source: result.error or "" for result in self.results if not result.ok}

    @property
    def warnings(self) -> dict[str, list[str]]:
        return {result.source: list(result.warnings) for result in self.results if result.warnings}


class Orchestrator:
    """Run every adapter concurrently, bounded by an overall deadline."""

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        fetcher: Fetcher,
        thread_pool: ThreadPoolManager,
        deadline_seconds: float = 120.0,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.adapters = list(adapters)
        self.fetcher = fetcher
        self.thread_pool = thread_pool
        self.deadline_seconds = deadline_seconds
        self.logger = logger or configure_logging().bind(component="orchestrator")

    def collect(self) -> CollectionResult:
        started = datetime.now(timezone.utc)
        executor = self.thread_pool.get()
        submitted: list[tuple[SourceAdapter, Future[AdapterResult]]] = [
            (adapter, executor.submit(adapter.run, self.fetcher)) for adapter in self.adapters
        ]
        done, _ = wait([future for _, future in submitted], timeout=self.deadline_seconds)

        collection = CollectionResult()
        for adapter, future in submitted:
            result = self._resolve(adapter, future, done, started)
            collection.results.append(result)
            if result.ok:
                collection.records.extend(result.records)
            else:
                self.logger.warning(
                    "adapter_failed",
                    source=result.source,
                    error_type=result.error_type,
                    error=result.error,
                )

        self.logger.info(
            "collection_completed",
            per_source=collection.per_source,
            failed=sorted(collection.failed_sources),
            total=len(collection.records),
        )
        return collection

    def _resolve(
        self,
        adapter: SourceAdapter,
        future: Future[AdapterResult],
        done: set[Future[AdapterResult]],
        started: datetime,
    ) -> AdapterResult:
        if future not in done:
            # Left running; its records are discarded when it eventually finishes.
            return AdapterResult.failure(
                adapter.name,
                adapter.platform,
                DEADLINE_EXCEEDED,
                started_at=started,
                error_type=DEADLINE_EXCEEDED,
            )
        try:
            return future.result()
        except Exception as exc:  # noqa: BLE001
            return AdapterResult.failure(adapter.name, adapter.platform, exc, started_at=started)


__all__ = ["CollectionResult", "DEADLINE_EXCEEDED", "Orchestrator"]
