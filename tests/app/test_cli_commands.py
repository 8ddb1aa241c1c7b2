from __future__ import annotations

import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from contest_radar import app as app_module
from contest_radar.app import AppState, app
from contest_radar.errors import IngestionRunError
from contest_radar.pipeline import IngestionSummary
from contest_radar.records import Platform


class StubContext:
    def __init__(self, store, summary=None, error=None, health=None) -> None:
        self.store = store
        self.summary = summary or IngestionSummary()
        self.error = error
        self.health_payload = health or {"status": "ok", "contests": 0}
        self.ingestions = 0
        self.scheduler_started = False
        self.manual_triggers = 0
        self.closed = False
        self.scheduler = SimpleNamespace(
            list_jobs=lambda: [{"id": "ingestion::interval", "next_run_time": "soon", "trigger": "interval[6:00:00]"}]
        )

    def run_ingestion(self, blocking: bool = True) -> IngestionSummary:
        self.ingestions += 1
        if self.error is not None:
            raise self.error
        return self.summary

    def health(self) -> dict:
        return self.health_payload

    def start_scheduler(self) -> None:
        self.scheduler_started = True

    def trigger_ingestion(self) -> None:
        self.manual_triggers += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def use_context(monkeypatch):
    def _install(context: StubContext) -> StubContext:
        state = AppState(context=context)  # type: ignore[arg-type]
        monkeypatch.setattr("contest_radar.app.build_state", lambda verbose: state)
        return context

    return _install


@pytest.fixture
def seeded_store(sqlite_store, make_record):
    sqlite_store.upsert(make_record("cc-S1", "Starters", Platform.CODECHEF, datetime(2024, 2, 1, tzinfo=timezone.utc)))
    sqlite_store.upsert(make_record("cf-7", "Round 7", Platform.CODEFORCES, datetime(2024, 1, 1, tzinfo=timezone.utc)))
    return sqlite_store


def test_contests_list_table(use_context, seeded_store) -> None:
    context = use_context(StubContext(seeded_store))
    result = CliRunner().invoke(app, ["contests", "list"])
    assert result.exit_code == 0, result.stdout
    assert "Round 7" in result.stdout
    assert "Starters" in result.stdout
    assert context.closed


def test_contests_list_json_with_platform(use_context, seeded_store) -> None:
    use_context(StubContext(seeded_store))
    result = CliRunner().invoke(app, ["contests", "list", "--platform", "codeforces", "--json"])
    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert [item["id"] for item in payload] == ["cf-7"]
    assert payload[0]["start_time"] == "2024-01-01T00:00:00+00:00"


def test_contests_list_rejects_unknown_platform(use_context, sqlite_store) -> None:
    use_context(StubContext(sqlite_store))
    result = CliRunner().invoke(app, ["contests", "list", "--platform", "atcoder"])
    assert result.exit_code == 1
    assert "Invalid platform" in result.stdout


def test_contests_refresh_prints_summary(use_context, sqlite_store) -> None:
    summary = IngestionSummary(
        new_count=4,
        updated_count=1,
        total_fetched=5,
        per_source={"codeforces": 5, "codechef": 0},
        failed_sources={"codechef": "timed out"},
    )
    context = use_context(StubContext(sqlite_store, summary=summary))
    result = CliRunner().invoke(app, ["contests", "refresh"])
    assert result.exit_code == 0, result.stdout
    assert context.ingestions == 1
    assert "Ingestion result" in result.stdout
    assert "codechef failed: timed out" in result.stdout


def test_contests_refresh_failure_exits_nonzero(use_context, sqlite_store) -> None:
    error = IngestionRunError("reconciliation", IngestionSummary(total_fetched=3), "database is locked")
    use_context(StubContext(sqlite_store, error=error))
    result = CliRunner().invoke(app, ["contests", "refresh"])
    assert result.exit_code == 1
    assert "reconciliation" in result.stdout


def test_bookmark_commands(use_context, seeded_store) -> None:
    use_context(StubContext(seeded_store))
    runner = CliRunner()

    added = runner.invoke(app, ["bookmark", "toggle", "me@example.com", "cf-7"])
    assert added.exit_code == 0, added.stdout
    assert "added" in added.stdout

    runner.invoke(app, ["bookmark", "toggle", "me@example.com", "cc-S1"])
    listed = runner.invoke(app, ["bookmark", "list", "me@example.com"])
    assert json.loads(listed.stdout) == ["cf-7", "cc-S1"]

    contests = runner.invoke(app, ["bookmark", "contests", "me@example.com", "--json"])
    assert [item["id"] for item in json.loads(contests.stdout)] == ["cf-7", "cc-S1"]

    removed = runner.invoke(app, ["bookmark", "toggle", "me@example.com", "cf-7"])
    assert "removed" in removed.stdout


def test_health_outputs_json(use_context, sqlite_store) -> None:
    use_context(StubContext(sqlite_store, health={"status": "ok", "contests": 12, "state": "idle"}))
    result = CliRunner().invoke(app, ["health"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["contests"] == 12


def test_health_degraded_exits_nonzero(use_context, sqlite_store) -> None:
    use_context(StubContext(sqlite_store, health={"status": "degraded", "contests": None}))
    assert CliRunner().invoke(app, ["health"]).exit_code == 1


def test_serve_starts_scheduler_until_interrupted(use_context, sqlite_store, monkeypatch) -> None:
    context = use_context(StubContext(sqlite_store))

    def interrupt() -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(app_module, "_wait_for_interrupt", interrupt)
    result = CliRunner().invoke(app, ["serve"])
    assert result.exit_code == 0, result.stdout
    assert context.scheduler_started
    assert "ingestion::interval" in result.stdout
    assert context.closed
    assert context.manual_triggers == 0


def test_serve_now_queues_manual_run(use_context, sqlite_store, monkeypatch) -> None:
    context = use_context(StubContext(sqlite_store))

    def interrupt() -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(app_module, "_wait_for_interrupt", interrupt)
    result = CliRunner().invoke(app, ["serve", "--now"])
    assert result.exit_code == 0, result.stdout
    assert context.scheduler_started
    assert context.manual_triggers == 1


def test_log_commands(use_context, sqlite_store, radar_home) -> None:
    use_context(StubContext(sqlite_store))
    sources_dir = radar_home / "logs" / "sources"
    sources_dir.mkdir(parents=True, exist_ok=True)
    (sources_dir / "leetcode.log").write_text("line one\nline two\nline three\n", encoding="utf-8")
    runner = CliRunner()

    listed = runner.invoke(app, ["log", "list"])
    assert "leetcode.log" in listed.stdout

    shown = runner.invoke(app, ["log", "show", "leetcode", "--lines", "2"])
    assert shown.exit_code == 0
    assert "line two" in shown.stdout
    assert "line one" not in shown.stdout
