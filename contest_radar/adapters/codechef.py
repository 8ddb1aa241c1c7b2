"""CodeChef adapter: future/present/past partitioned JSON lists."""

from __future__ import annotations

from typing import Any

import structlog

from ..config import CodeChefSourceConfig
from ..engine.fetcher import Fetcher
from ..engine.parser import coerce_datetime
from ..errors import ShapeError
from ..records import ContestRecord, Platform
from .base import SourceAdapter

LIST_PARAMS = {
    "sort_by": "START",
    "sorting_order": "asc",
    "offset": "0",
    "mode": "all",
}


class CodeChefAdapter(SourceAdapter):
    name = "codechef"
    platform = Platform.CODECHEF

    def __init__(
        self,
        config: CodeChefSourceConfig | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config or CodeChefSourceConfig()
        super().__init__(logger)

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/api/list/contests/all"

    def collect(self, fetcher: Fetcher, warnings: list[str]) -> list[ContestRecord]:
        return self.parse(fetcher.get_json(self.endpoint, params=dict(LIST_PARAMS)))

    def parse(self, payload: Any) -> list[ContestRecord]:
        if not isinstance(payload, dict):
            raise ShapeError("codechef payload is not an object")
        if payload.get("status") != "success":
            raise ShapeError(f"codechef status {payload.get('status')!r}")
        future = self._section(payload, "future_contests")
        present = self._section(payload, "present_contests")
        # Past list arrives most recent first; only a bounded slice is kept.
        past = self._section(payload, "past_contests")[: self.config.past_limit]
        return [self._to_record(item) for item in (*future, *present, *past)]

    @staticmethod
    def _section(payload: dict[str, Any], key: str) -> list[Any]:
        section = payload.get(key) or []
        if not isinstance(section, list):
            raise ShapeError(f"codechef {key} is not a list")
        return section

    def _to_record(self, item: Any) -> ContestRecord:
        try:
            code = item["contest_code"]
            start = coerce_datetime(item["contest_start_date_iso"])
            end = coerce_datetime(item["contest_end_date_iso"])
            if start is None or end is None:
                raise ValueError("unparseable ISO timestamp")
            return ContestRecord(
                id=f"{self.platform.prefix}-{code}",
                name=str(item["contest_name"]),
                url=f"{self.config.base_url.rstrip('/')}/{code}",
                platform=self.platform,
                start_time=start,
                end_time=end,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ShapeError(f"malformed codechef contest {item!r}: {exc}") from exc


__all__ = ["CodeChefAdapter", "LIST_PARAMS"]
