from __future__ import annotations

from datetime import datetime, timezone

from contest_radar.adapters import CodeChefAdapter
from contest_radar.adapters.codechef import LIST_PARAMS
from contest_radar.config import CodeChefSourceConfig

ENDPOINT = "https://www.codechef.com/api/list/contests/all"


def _contest(code: str, day: int) -> dict:
    return {
        "contest_code": code,
        "contest_name": f"Starters {code}",
        "contest_start_date_iso": f"2024-01-{day:02d}T20:00:00+05:30",
        "contest_end_date_iso": f"2024-01-{day:02d}T22:00:00+05:30",
    }


def test_future_present_and_bounded_past(stub_fetcher) -> None:
    payload = {
        "status": "success",
        "future_contests": [],
        "present_contests": [_contest("LIVE", 20)],
        "past_contests": [_contest(f"P{index}", index + 1) for index in range(15)],
    }
    fetcher = stub_fetcher(json_responses={ENDPOINT: payload})
    result = CodeChefAdapter().run(fetcher)

    assert result.ok
    assert len(result.records) == 11
    assert [record.id for record in result.records[:3]] == ["cc-LIVE", "cc-P0", "cc-P1"]
    assert result.records[-1].id == "cc-P9"
    assert fetcher.calls == [("GET", ENDPOINT, LIST_PARAMS)]


def test_iso_times_are_converted(stub_fetcher) -> None:
    payload = {"status": "success", "future_contests": [_contest("START120", 3)]}
    record = CodeChefAdapter().run(stub_fetcher(json_responses={ENDPOINT: payload})).records[0]
    assert record.url == "https://www.codechef.com/START120"
    assert record.start_time == datetime(2024, 1, 3, 14, 30, tzinfo=timezone.utc)
    assert record.duration == 7200


def test_missing_lists_are_empty(stub_fetcher) -> None:
    result = CodeChefAdapter().run(stub_fetcher(json_responses={ENDPOINT: {"status": "success"}}))
    assert result.ok
    assert result.records == []


def test_past_limit_is_configurable(stub_fetcher) -> None:
    payload = {"status": "success", "past_contests": [_contest(f"P{index}", index + 1) for index in range(5)]}
    adapter = CodeChefAdapter(CodeChefSourceConfig(past_limit=2))
    assert len(adapter.run(stub_fetcher(json_responses={ENDPOINT: payload})).records) == 2


def test_status_must_be_success(stub_fetcher) -> None:
    result = CodeChefAdapter().run(stub_fetcher(json_responses={ENDPOINT: {"status": "error"}}))
    assert result.error_type == "ShapeError"


def test_malformed_item_fails_adapter(stub_fetcher) -> None:
    broken = _contest("BAD", 4)
    broken["contest_end_date_iso"] = "soon"
    payload = {"status": "success", "future_contests": [_contest("OK", 3), broken]}
    result = CodeChefAdapter().run(stub_fetcher(json_responses={ENDPOINT: payload}))
    assert not result.ok
    assert result.records == []
