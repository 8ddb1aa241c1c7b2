"""Shared fixtures for contest_radar tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from contest_radar.config import (
    ConfigLocator,
    ConfigRepository,
    HttpConfig,
    RadarConfig,
    RetryConfig,
)
from contest_radar.infra import SQLiteManager
from contest_radar.records import ContestRecord, Platform
from contest_radar.store import SQLiteContestStore


@pytest.fixture(autouse=True)
def radar_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("CONTEST_RADAR_HOME", str(tmp_path))
    monkeypatch.delenv("CONTEST_RADAR_MONGO_URI", raising=False)
    return tmp_path


@pytest.fixture
def http_config() -> HttpConfig:
    return HttpConfig(
        request_timeout_seconds=5,
        retry=RetryConfig(max_retries=2, base_delay_seconds=0.5, max_delay_seconds=8, jitter=0),
    )


@pytest.fixture
def sample_config(http_config: HttpConfig) -> RadarConfig:
    return RadarConfig(http=http_config, run_deadline_seconds=5)


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator(project_root=tmp_path))


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterable[SQLiteContestStore]:
    store = SQLiteContestStore(SQLiteManager(), tmp_path / "data" / "contests.db")
    yield store
    store.close()


@pytest.fixture
def make_record() -> Callable[..., ContestRecord]:
    def _builder(
        contest_id: str = "cf-1",
        name: str = "Round 1",
        platform: Platform | str = Platform.CODEFORCES,
        start: datetime = datetime(2024, 1, 1, 14, 35, tzinfo=timezone.utc),
        minutes: int | None = 120,
        url: str | None = None,
    ) -> ContestRecord:
        end = start + timedelta(minutes=minutes) if minutes is not None else None
        return ContestRecord(
            id=contest_id,
            name=name,
            url=url or f"https://example.com/{contest_id}",
            platform=platform,
            start_time=start,
            end_time=end,
        )

    return _builder


class StubFetcher:
    """Fetcher double serving canned payloads keyed by URL."""

    def __init__(
        self,
        json_responses: dict[str, Any] | None = None,
        text_responses: dict[str, Any] | None = None,
        post_responses: dict[str, Any] | None = None,
    ) -> None:
        self.json_responses = json_responses or {}
        self.text_responses = text_responses or {}
        self.post_responses = post_responses or {}
        self.calls: list[tuple[str, str, Any]] = []
        self.closed = False

    @staticmethod
    def _resolve(responses: dict[str, Any], url: str) -> Any:
        value = responses[url]
        if isinstance(value, BaseException):
            raise value
        return value

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append(("GET", url, params))
        return self._resolve(self.json_responses, url)

    def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        self.calls.append(("POST", url, payload))
        return self._resolve(self.post_responses, url)

    def get_text(
        self, url: str, *, render_with_browser: bool = False, wait_selector: str | None = None
    ) -> str:
        self.calls.append(("TEXT", url, {"render": render_with_browser, "wait": wait_selector}))
        return self._resolve(self.text_responses, url)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_fetcher() -> Callable[..., StubFetcher]:
    return StubFetcher
