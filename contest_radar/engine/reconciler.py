"""Reconcile a fetched batch against the canonical store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import structlog

from ..records import ContestRecord
from ..store.base import ContestStore, UpsertOutcome


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    new_count: int = 0
    updated_count: int = 0
    total_fetched: int = 0


class ReconciliationEngine:
    """Upsert every record in order and count which branch each one took."""

    def __init__(self, store: ContestStore, logger: structlog.BoundLogger | None = None) -> None:
        self.store = store
        self.logger = logger or structlog.get_logger("contest_radar.reconciler")

    def reconcile(self, records: Iterable[ContestRecord]) -> ReconciliationResult:
        new_count = updated_count = total = 0
        for record in records:
            total += 1
            if self.store.upsert(record) is UpsertOutcome.INSERTED:
                new_count += 1
            else:
                updated_count += 1
        result = ReconciliationResult(
            new_count=new_count, updated_count=updated_count, total_fetched=total
        )
        self.logger.info(
            "reconciliation_completed",
            new=new_count,
            updated=updated_count,
            total=total,
        )
        return result


__all__ = ["ReconciliationEngine", "ReconciliationResult"]
