"""LeetCode adapter: scraped contest page merged with the GraphQL contest list."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import structlog

from ..config import LeetCodeSourceConfig
from ..engine.dedup import Deduplicator
from ..engine.fetcher import Fetcher
from ..engine.parser import ContestPageParser, parse_time_span, slugify_name
from ..errors import ExtractionDriftError, ShapeError, SourceError
from ..records import ContestRecord, Platform, epoch_seconds, from_epoch
from .base import SourceAdapter

GRAPHQL_QUERY = """
query getContestList {
  allContests {
    title
    titleSlug
    startTime
    duration
    description
  }
  currentContests: allContests(status: Active) {
    title
    titleSlug
    startTime
    duration
  }
  pastContests: allContests(status: Past) {
    title
    titleSlug
    startTime
    duration
  }
}
"""


class LeetCodeAdapter(SourceAdapter):
    """Scrape ``/contest/`` cards, then supplement them from GraphQL.

    The page scrape is the primary path: if it cannot be fetched the adapter
    fails. The GraphQL query only adds records, so its failure is recorded as
    a warning and the scraped records are kept.
    """

    name = "leetcode"
    platform = Platform.LEETCODE

    def __init__(
        self,
        config: LeetCodeSourceConfig | None = None,
        parser: ContestPageParser | None = None,
        deduplicator: Deduplicator | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config or LeetCodeSourceConfig()
        self.parser = parser or ContestPageParser()
        self.deduplicator = deduplicator or Deduplicator()
        super().__init__(logger)

    @property
    def contest_page_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/contest/"

    @property
    def default_duration(self) -> timedelta:
        return timedelta(minutes=self.config.default_duration_minutes)

    def collect(self, fetcher: Fetcher, warnings: list[str]) -> list[ContestRecord]:
        html = fetcher.get_text(
            self.contest_page_url,
            render_with_browser=self.config.render_with_browser,
            wait_selector=self.parser.card_selector,
        )
        scraped, drift = self.parse_page(html)
        if drift is not None:
            warnings.append(f"{type(drift).__name__}: {drift}")
            self.logger.warning("extraction_drift", error=str(drift))

        try:
            payload = fetcher.post_json(self.config.graphql_url, {"query": GRAPHQL_QUERY})
            supplementary = self.parse_graphql(payload)
        except SourceError as exc:
            warnings.append(f"graphql {type(exc).__name__}: {exc}")
            self.logger.warning(
                "supplementary_query_failed", error_type=type(exc).__name__, error=str(exc)
            )
            supplementary = []

        merged = self.deduplicator.apply([*scraped, *supplementary])
        if drift is not None and not merged:
            raise drift
        return merged

    def parse_page(
        self, html: str
    ) -> tuple[list[ContestRecord], ExtractionDriftError | None]:
        """Return the scraped records and a drift error when nothing usable matched."""

        blocks = self.parser.extract_blocks(html)
        if not blocks:
            return [], ExtractionDriftError(
                f"no elements matched {self.parser.card_selector!r} on {self.contest_page_url}"
            )

        records: list[ContestRecord] = []
        for block in blocks:
            if not block.name:
                continue
            span = parse_time_span(block.time_text, self.default_duration)
            if span is None:
                self.logger.debug("contest_block_skipped", name=block.name, text=block.time_text)
                continue
            try:
                record = ContestRecord(
                    id=f"{self.platform.prefix}-{slugify_name(block.name)}-"
                    f"{epoch_seconds(span.start) * 1000}",
                    name=block.name,
                    url=self.contest_page_url,
                    platform=self.platform,
                    start_time=span.start,
                    end_time=span.end,
                )
            except ValueError as exc:
                self.logger.debug("contest_block_skipped", name=block.name, error=str(exc))
                continue
            records.append(record)

        if not records:
            return [], ExtractionDriftError(
                f"{len(blocks)} contest cards matched but none carried a parseable start time"
            )
        return records, None

    def parse_graphql(self, payload: Any) -> list[ContestRecord]:
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ShapeError("graphql response has no data object")
        current = data.get("currentContests") or []
        past = data.get("pastContests") or []
        if not isinstance(current, list) or not isinstance(past, list):
            raise ShapeError("graphql contest lists are not arrays")
        return [
            self._graphql_record(item)
            for item in (*current, *past[: self.config.past_limit])
        ]

    def _graphql_record(self, item: Any) -> ContestRecord:
        try:
            slug = item["titleSlug"]
            start = from_epoch(item["startTime"])
            duration = int(item["duration"])
            return ContestRecord(
                id=f"{self.platform.prefix}-{slug}",
                name=str(item["title"]),
                url=f"{self.contest_page_url}{slug}",
                platform=self.platform,
                start_time=start,
                end_time=start + timedelta(seconds=duration),
                duration=duration,
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise ShapeError(f"malformed leetcode contest {item!r}: {exc}") from exc


__all__ = ["GRAPHQL_QUERY", "LeetCodeAdapter"]
