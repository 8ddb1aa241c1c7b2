"""In-pass deduplication of contest records."""

from __future__ import annotations

from typing import Callable, Hashable, Iterable

from ..records import ContestRecord, epoch_seconds


def default_key(record: ContestRecord) -> tuple[str, int]:
    return record.name, epoch_seconds(record.start_time)


class Deduplicator:
    """Keep the first record per key in encounter order."""

    def __init__(self, key: Callable[[ContestRecord], Hashable] = default_key) -> None:
        self.key = key

    def apply(self, records: Iterable[ContestRecord]) -> list[ContestRecord]:
        seen: set[Hashable] = set()
        unique: list[ContestRecord] = []
        for record in records:
            marker = self.key(record)
            if marker in seen:
                continue
            seen.add(marker)
            unique.append(record)
        return unique

    __call__ = apply


__all__ = ["Deduplicator", "default_key"]
