"""Ingestion pipeline: collect, reconcile, then sweep expired records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any

import structlog

from .engine import ReconciliationEngine, RetentionPolicy
from .errors import IngestionBusyError, IngestionRunError, StoreError
from .logging_conf import configure_logging
from .orchestrator import Orchestrator
from .store import ContestStore


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class IngestionSummary:
    """Outcome of one ingestion run."""

    new_count: int = 0
    updated_count: int = 0
    total_fetched: int = 0
    deleted_count: int = 0
    per_source: dict[str, int] = field(default_factory=dict)
    failed_sources: dict[str, str] = field(default_factory=dict)
    warnings: dict[str, list[str]] = field(default_factory=dict)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "new_count": self.new_count,
            "updated_count": self.updated_count,
            "total_fetched": self.total_fetched,
            "deleted_count": self.deleted_count,
            "per_source": dict(self.per_source),
            "failed_sources": dict(self.failed_sources),
            "warnings": {name: list(items) for name, items in self.warnings.items()},
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class IngestionPipeline:
    """Run Orchestrator, ReconciliationEngine and RetentionPolicy as one unit.

    At most one run executes at a time. ``run_ingestion(blocking=True)`` waits
    for an active run to finish; ``blocking=False`` raises
    :class:`IngestionBusyError` instead.
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        reconciler: ReconciliationEngine,
        retention: RetentionPolicy,
        store: ContestStore,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.reconciler = reconciler
        self.retention = retention
        self.store = store
        self.logger = logger or configure_logging().bind(component="pipeline")
        self._run_lock = Lock()
        self._state = RunState.IDLE
        self._closed = False
        self.last_summary: IngestionSummary | None = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def run_ingestion(self, blocking: bool = True) -> IngestionSummary:
        if not self._run_lock.acquire(blocking=blocking):
            raise IngestionBusyError("an ingestion run is already in progress")
        if self._closed:
            self._run_lock.release()
            raise IngestionBusyError("ingestion pipeline is closed")
        try:
            self._state = RunState.RUNNING
            return self._execute()
        finally:
            self._state = RunState.IDLE
            self._run_lock.release()

    def shutdown(self, timeout: float | None = None) -> bool:
        """Wait for an active run to finish, then refuse further runs.

        Returns ``False`` when ``timeout`` elapsed with a run still active.
        """

        if self._state is RunState.RUNNING:
            self.logger.info("ingestion_draining")
        acquired = self._run_lock.acquire(timeout=-1 if timeout is None else timeout)
        self._closed = True
        if acquired:
            self._run_lock.release()
        else:
            self.logger.warning("ingestion_drain_timeout", timeout=timeout)
        return acquired

    def _execute(self) -> IngestionSummary:
        summary = IngestionSummary(started_at=datetime.now(timezone.utc))
        self.logger.info("ingestion_started")

        collection = self.orchestrator.collect()
        summary.total_fetched = len(collection.records)
        summary.per_source = collection.per_source
        summary.failed_sources = collection.failed_sources
        summary.warnings = collection.warnings

        try:
            reconciled = self.reconciler.reconcile(collection.records)
        except StoreError as exc:
            raise self._failed("reconciliation", summary, exc) from exc
        summary.new_count = reconciled.new_count
        summary.updated_count = reconciled.updated_count

        try:
            summary.deleted_count = self.retention.sweep()
        except StoreError as exc:
            raise self._failed("retention", summary, exc) from exc

        summary.finished_at = datetime.now(timezone.utc)
        self.last_summary = summary
        self.logger.info("ingestion_completed", **summary.as_dict())
        return summary

    def _failed(
        self, step: str, summary: IngestionSummary, exc: StoreError
    ) -> IngestionRunError:
        summary.finished_at = datetime.now(timezone.utc)
        self.last_summary = summary
        self.logger.error("ingestion_failed", step=step, error=str(exc), **summary.as_dict())
        return IngestionRunError(step, summary, str(exc))

    def health(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "state": self.state.value,
            "last_run": self.last_summary.as_dict() if self.last_summary else None,
        }
        try:
            payload["contests"] = self.store.count()
        except StoreError as exc:
            payload["status"] = "degraded"
            payload["contests"] = None
            payload["error"] = str(exc)
        return payload


__all__ = ["IngestionPipeline", "IngestionSummary", "RunState"]
