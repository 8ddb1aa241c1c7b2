"""Canonical contest record produced by every source adapter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Platform(str, Enum):
    """Supported contest platforms."""

    CODEFORCES = "codeforces"
    CODECHEF = "codechef"
    LEETCODE = "leetcode"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]


_PREFIXES = {
    Platform.CODEFORCES: "cf",
    Platform.CODECHEF: "cc",
    Platform.LEETCODE: "lc",
}


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime truncated to whole seconds."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=0)


def from_epoch(seconds: int | float) -> datetime:
    return to_utc(datetime.fromtimestamp(float(seconds), tz=timezone.utc))


def epoch_seconds(value: datetime) -> int:
    return int(to_utc(value).timestamp())


@dataclass(frozen=True, slots=True)
class ContestRecord:
    """One normalised contest event.

    ``duration`` is derived from ``end_time`` whenever an end is known; a
    supplied duration that disagrees with the two timestamps is rejected.
    """

    id: str
    name: str
    url: str
    platform: Platform
    start_time: datetime
    end_time: datetime | None = None
    duration: int | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ContestRecord id cannot be empty")
        if not self.name or not self.name.strip():
            raise ValueError("ContestRecord name cannot be empty")
        object.__setattr__(self, "platform", Platform(self.platform))
        start = to_utc(self.start_time)
        object.__setattr__(self, "start_time", start)
        if self.end_time is None:
            if self.duration is not None:
                object.__setattr__(self, "duration", int(self.duration))
            return
        end = to_utc(self.end_time)
        if end < start:
            raise ValueError(f"ContestRecord {self.id}: end_time precedes start_time")
        derived = int((end - start).total_seconds())
        if self.duration is not None and int(self.duration) != derived:
            raise ValueError(
                f"ContestRecord {self.id}: duration {self.duration} != end - start ({derived})"
            )
        object.__setattr__(self, "end_time", end)
        object.__setattr__(self, "duration", derived)

    def to_document(self) -> dict[str, Any]:
        """Mutable fields in storage form (everything except bookkeeping timestamps)."""

        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "platform": self.platform.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }

    def to_json(self) -> dict[str, Any]:
        payload = self.to_document()
        payload["start_time"] = self.start_time.isoformat()
        payload["end_time"] = self.end_time.isoformat() if self.end_time else None
        return payload

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "ContestRecord":
        start = document["start_time"]
        end = document.get("end_time")
        if isinstance(start, str):
            start = datetime.fromisoformat(start)
        if isinstance(end, str):
            end = datetime.fromisoformat(end)
        return cls(
            id=document["id"],
            name=document["name"],
            url=document["url"],
            platform=Platform(document["platform"]),
            start_time=start,
            end_time=end,
            duration=document.get("duration"),
        )


__all__ = ["ContestRecord", "Platform", "epoch_seconds", "from_epoch", "to_utc"]
