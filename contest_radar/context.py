"""Explicit runtime context wiring configuration, store, pipeline and scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from .adapters import CodeChefAdapter, CodeforcesAdapter, LeetCodeAdapter, SourceAdapter
from .config import ConfigRepository, RadarConfig
from .engine import (
    Fetcher,
    ReconciliationEngine,
    RetentionPolicy,
    ThreadPoolManager,
)
from .infra import SQLiteManager
from .logging_conf import configure_logging
from .orchestrator import Orchestrator
from .pipeline import IngestionPipeline, IngestionSummary
from .scheduler import APSchedulerAdapter
from .store import ContestStore, MongoContestStore, SQLiteContestStore


def build_adapters(config: RadarConfig) -> list[SourceAdapter]:
    """Instantiate enabled adapters in declaration order."""

    sources = config.sources
    adapters: list[SourceAdapter] = []
    if sources.codeforces.enabled:
        adapters.append(CodeforcesAdapter(sources.codeforces))
    if sources.codechef.enabled:
        adapters.append(CodeChefAdapter(sources.codechef))
    if sources.leetcode.enabled:
        adapters.append(LeetCodeAdapter(sources.leetcode))
    return adapters


def build_store(
    repository: ConfigRepository, sqlite_manager: SQLiteManager | None = None
) -> ContestStore:
    store_config = repository.load().store
    if store_config.backend == "mongodb":
        return MongoContestStore(store_config.mongo_uri, store_config.mongo_database)
    return SQLiteContestStore(sqlite_manager or SQLiteManager(), repository.sqlite_path())


@dataclass
class RadarContext:
    """Everything one running instance needs, constructed once and closed once."""

    config_repository: ConfigRepository
    config: RadarConfig
    store: ContestStore
    fetcher: Fetcher
    thread_pool: ThreadPoolManager
    pipeline: IngestionPipeline
    scheduler: APSchedulerAdapter
    logger: Any = field(default=None, repr=False)
    closed: bool = False

    @classmethod
    def open(
        cls,
        config_repository: ConfigRepository | None = None,
        *,
        store: ContestStore | None = None,
        fetcher: Fetcher | None = None,
        adapters: list[SourceAdapter] | None = None,
        scheduler: APSchedulerAdapter | None = None,
        verbose: bool = False,
    ) -> "RadarContext":
        logger = configure_logging(verbose).bind(component="context")
        repository = config_repository or ConfigRepository()
        config = repository.load()
        store = store or build_store(repository)
        fetcher = fetcher or Fetcher(
            config.http, logger=structlog.get_logger("contest_radar.fetcher")
        )
        thread_pool = ThreadPoolManager(workers=config.worker_count)
        orchestrator = Orchestrator(
            adapters if adapters is not None else build_adapters(config),
            fetcher,
            thread_pool,
            deadline_seconds=config.run_deadline_seconds,
        )
        pipeline = IngestionPipeline(
            orchestrator,
            ReconciliationEngine(store),
            RetentionPolicy.from_config(store, config.retention),
            store,
        )
        logger.info(
            "context_opened",
            backend=config.store.backend,
            sources=[adapter.name for adapter in orchestrator.adapters],
        )
        return cls(
            config_repository=repository,
            config=config,
            store=store,
            fetcher=fetcher,
            thread_pool=thread_pool,
            pipeline=pipeline,
            scheduler=scheduler or APSchedulerAdapter(),
            logger=logger,
        )

    def run_ingestion(self, blocking: bool = True) -> IngestionSummary:
        return self.pipeline.run_ingestion(blocking=blocking)

    def run_scheduled_ingestion(self) -> IngestionSummary:
        return self.pipeline.run_ingestion(blocking=False)

    def health(self) -> dict[str, Any]:
        return self.pipeline.health()

    def start_scheduler(self) -> None:
        self.scheduler.schedule_ingestion(
            self.run_scheduled_ingestion,
            self.config.schedule,
            startup_delay_seconds=self.config.startup_delay_seconds,
        )
        self.scheduler.start()

    def trigger_ingestion(self) -> None:
        """Queue a manual run on the scheduler; it waits behind an active run."""

        self.scheduler.trigger_now(self.run_ingestion)

    def close(self) -> None:
        if self.closed:
            return
        self.scheduler.shutdown()
        self.pipeline.shutdown()
        self.thread_pool.shutdown()
        self.fetcher.close()
        self.store.close()
        self.closed = True
        if self.logger is not None:
            self.logger.info("context_closed")

    def __enter__(self) -> "RadarContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["RadarContext", "build_adapters", "build_store"]
