"""Codeforces adapter: flat JSON contest list with epoch start and duration."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import structlog

from ..config import CodeforcesSourceConfig
from ..engine.fetcher import Fetcher
from ..errors import ShapeError
from ..records import ContestRecord, Platform, from_epoch
from .base import SourceAdapter


class CodeforcesAdapter(SourceAdapter):
    name = "codeforces"
    platform = Platform.CODEFORCES

    def __init__(
        self,
        config: CodeforcesSourceConfig | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config or CodeforcesSourceConfig()
        super().__init__(logger)

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/api/contest.list"

    def collect(self, fetcher: Fetcher, warnings: list[str]) -> list[ContestRecord]:
        return self.parse(fetcher.get_json(self.endpoint))

    def parse(self, payload: Any) -> list[ContestRecord]:
        if not isinstance(payload, dict):
            raise ShapeError("codeforces payload is not an object")
        if payload.get("status") != "OK":
            raise ShapeError(f"codeforces status {payload.get('status')!r}")
        contests = payload.get("result")
        if not isinstance(contests, list):
            raise ShapeError("codeforces payload has no result list")
        return [self._to_record(item) for item in contests]

    def _to_record(self, item: Any) -> ContestRecord:
        try:
            contest_id = item["id"]
            start = from_epoch(item["startTimeSeconds"])
            duration = int(item["durationSeconds"])
            return ContestRecord(
                id=f"{self.platform.prefix}-{contest_id}",
                name=str(item["name"]),
                url=f"{self.config.base_url.rstrip('/')}/contest/{contest_id}",
                platform=self.platform,
                start_time=start,
                end_time=start + timedelta(seconds=duration),
                duration=duration,
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise ShapeError(f"malformed codeforces contest {item!r}: {exc}") from exc


__all__ = ["CodeforcesAdapter"]
