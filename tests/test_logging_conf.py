from __future__ import annotations

from contest_radar.logging_conf import (
    LogPaths,
    available_source_logs,
    log_paths,
    source_logger,
    tail_log,
)


def test_log_paths_follow_radar_home(radar_home) -> None:
    paths = log_paths().ensure()

    assert paths.root == (radar_home / "logs").resolve()
    assert paths.main.name == "radar.log"
    assert paths.errors.exists()
    assert paths.source("leetcode") == paths.root / "sources" / "leetcode.log"


def test_tail_log_returns_last_lines(tmp_path) -> None:
    path = tmp_path / "radar.log"
    path.write_text("".join(f"line {index}\n" for index in range(10)), encoding="utf-8")

    assert tail_log(path, 3) == ["line 7\n", "line 8\n", "line 9\n"]
    assert tail_log(path, 0) == []
    assert tail_log(tmp_path / "missing.log") == []


def test_source_logger_writes_its_own_file(radar_home) -> None:
    logger = source_logger("codechef")
    logger.info("adapter_started")

    paths = LogPaths((radar_home / "logs").resolve())
    assert paths.source("codechef") in available_source_logs()
    assert "adapter_started" in paths.source("codechef").read_text(encoding="utf-8")
