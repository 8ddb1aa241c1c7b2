from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from contest_radar.records import ContestRecord, Platform, epoch_seconds, from_epoch


def test_duration_is_derived_from_end_time() -> None:
    start = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    record = ContestRecord(
        id="cc-START1",
        name="Starters 1",
        url="https://www.codechef.com/START1",
        platform="codechef",
        start_time=start,
        end_time=start + timedelta(hours=2),
    )
    assert record.platform is Platform.CODECHEF
    assert record.duration == 7200


def test_naive_datetimes_are_utc_and_truncated() -> None:
    record = ContestRecord(
        id="cf-9",
        name="Round 9",
        url="https://codeforces.com/contest/9",
        platform=Platform.CODEFORCES,
        start_time=datetime(2024, 1, 1, 12, 0, 0, 987654),
    )
    assert record.start_time == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert record.end_time is None
    assert record.duration is None


def test_offset_datetimes_are_converted_to_utc() -> None:
    ist = timezone(timedelta(hours=5, minutes=30))
    record = ContestRecord(
        id="cc-X",
        name="X",
        url="u",
        platform=Platform.CODECHEF,
        start_time=datetime(2024, 1, 3, 20, 0, tzinfo=ist),
        end_time=datetime(2024, 1, 3, 22, 0, tzinfo=ist),
    )
    assert record.start_time == datetime(2024, 1, 3, 14, 30, tzinfo=timezone.utc)
    assert record.duration == 7200


def test_end_before_start_is_rejected() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        ContestRecord(
            id="lc-a",
            name="A",
            url="u",
            platform=Platform.LEETCODE,
            start_time=start,
            end_time=start - timedelta(minutes=1),
        )


def test_conflicting_duration_is_rejected() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    with pytest.raises(ValueError, match="duration"):
        ContestRecord(
            id="cf-1",
            name="Round",
            url="u",
            platform=Platform.CODEFORCES,
            start_time=start,
            end_time=start + timedelta(hours=2),
            duration=60,
        )


@pytest.mark.parametrize("field,value", [("id", ""), ("name", "   ")])
def test_empty_identity_fields_are_rejected(field: str, value: str) -> None:
    payload = {
        "id": "cf-1",
        "name": "Round",
        "url": "u",
        "platform": Platform.CODEFORCES,
        "start_time": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    payload[field] = value
    with pytest.raises(ValueError):
        ContestRecord(**payload)


def test_unknown_platform_is_rejected() -> None:
    with pytest.raises(ValueError):
        ContestRecord(
            id="hr-1",
            name="Hackerrank",
            url="u",
            platform="hackerrank",
            start_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )


def test_from_document_accepts_iso_strings(make_record) -> None:
    original = make_record()
    restored = ContestRecord.from_document({**original.to_json(), "revision": 3})
    assert restored == original


def test_platform_prefixes() -> None:
    assert [platform.prefix for platform in Platform] == ["cf", "cc", "lc"]


def test_epoch_helpers() -> None:
    moment = from_epoch(1_700_000_000)
    assert moment == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert epoch_seconds(moment) == 1_700_000_000
