"""Contest store Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable

from ..records import ContestRecord, Platform


class UpsertOutcome(str, Enum):
    """Which branch an atomic upsert took."""

    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class StoredContest:
    record: ContestRecord
    created_at: datetime
    updated_at: datetime


def resolve_platform(platform: Platform | str | None) -> Platform | None:
    if platform is None:
        return None
    try:
        return Platform(platform)
    except ValueError as exc:
        raise ValueError(f"Invalid platform: {platform}") from exc


class ContestStore(ABC):
    """Uniform contract for the canonical contest store."""

    @abstractmethod
    def upsert(self, record: ContestRecord) -> UpsertOutcome:
        """Insert or fully replace ``record`` keyed by its id, reporting the branch taken."""

    @abstractmethod
    def delete_expired(self, cutoff: datetime, platforms: Iterable[Platform]) -> int:
        """Delete records on ``platforms`` whose end time is before ``cutoff``."""

    @abstractmethod
    def list_contests(self, platform: Platform | str | None = None) -> list[ContestRecord]:
        """Return stored contests sorted ascending by start time."""

    @abstractmethod
    def get_contest(self, contest_id: str) -> StoredContest | None:
        """Return one stored contest with its bookkeeping timestamps."""

    @abstractmethod
    def contests_by_ids(self, contest_ids: Iterable[str]) -> list[ContestRecord]:
        """Return the stored contests among ``contest_ids`` sorted by start time."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored contests."""

    @abstractmethod
    def toggle_bookmark(self, email: str, contest_id: str) -> list[str]:
        """Add or remove ``contest_id`` for ``email`` and return the resulting ids."""

    @abstractmethod
    def bookmarks(self, email: str) -> list[str]:
        """Bookmarked contest ids for ``email`` in insertion order."""

    def bookmarked_contests(self, email: str) -> list[ContestRecord]:
        ids = self.bookmarks(email)
        if not ids:
            return []
        return self.contests_by_ids(ids)

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["ContestStore", "StoredContest", "UpsertOutcome", "resolve_platform"]
