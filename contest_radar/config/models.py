"""Pydantic models used across contest_radar configuration flow."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from ..records import Platform


class ScheduleType(str, Enum):
    """Scheduler modes for the recurring ingestion job."""

    CRON = "cron"
    INTERVAL = "interval"
    ONCE = "once"


class ScheduleConfig(BaseModel):
    """Configuration describing when the recurring ingestion runs."""

    type: ScheduleType = Field(default=ScheduleType.INTERVAL)
    value: Any = Field(
        default_factory=lambda: {"hours": 6},
        description="Cron expression, interval seconds/kwargs or ISO datetime, depending on type.",
    )

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON and not isinstance(self.value, str):
            raise ValueError("Cron schedule requires string expression")
        if self.type is ScheduleType.INTERVAL and not isinstance(self.value, (int, float, dict)):
            raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
        if (
            self.type is ScheduleType.ONCE
            and self.value is not None
            and not isinstance(self.value, str)
        ):
            raise ValueError("Once schedule expects ISO datetime string or null")
        return self


class RetryConfig(BaseModel):
    """Bounded exponential backoff applied to network failures only."""

    max_retries: int = 2
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 8.0
    jitter: float = 0.25

    @model_validator(mode="after")
    def _validate_bounds(self) -> "RetryConfig":
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("retry delays must be non-negative")
        if not 0 <= self.jitter <= 1:
            raise ValueError("jitter must be within [0, 1]")
        return self


class HttpConfig(BaseModel):
    request_timeout_seconds: float = 20.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("request_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout_seconds must be > 0")
        return value


class CodeforcesSourceConfig(BaseModel):
    enabled: bool = True
    base_url: str = "https://codeforces.com"


class CodeChefSourceConfig(BaseModel):
    enabled: bool = True
    base_url: str = "https://www.codechef.com"
    past_limit: int = 10


class LeetCodeSourceConfig(BaseModel):
    enabled: bool = True
    base_url: str = "https://leetcode.com"
    graphql_url: str = "https://leetcode.com/graphql"
    render_with_browser: bool = False
    default_duration_minutes: int = 90
    past_limit: int = 5


class SourcesConfig(BaseModel):
    """Per-source endpoint settings, declared in fan-out order."""

    codeforces: CodeforcesSourceConfig = Field(default_factory=CodeforcesSourceConfig)
    codechef: CodeChefSourceConfig = Field(default_factory=CodeChefSourceConfig)
    leetcode: LeetCodeSourceConfig = Field(default_factory=LeetCodeSourceConfig)


class StoreConfig(BaseModel):
    backend: Literal["sqlite", "mongodb"] = "sqlite"
    sqlite_path: Path = Field(default=Path("data/contests.db"))
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "contest_radar"

    @field_validator("sqlite_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def resolved_sqlite_path(self, base_dir: Path) -> Path:
        if not self.sqlite_path.is_absolute():
            return (base_dir / self.sqlite_path).resolve()
        return self.sqlite_path


class RetentionConfig(BaseModel):
    """Age rule for the retention sweep; Codeforces history is always kept."""

    max_age_months: int = 2
    platforms: list[Platform] = Field(
        default_factory=lambda: [Platform.CODECHEF, Platform.LEETCODE]
    )

    @model_validator(mode="after")
    def _validate_platforms(self) -> "RetentionConfig":
        if self.max_age_months < 1:
            raise ValueError("max_age_months must be >= 1")
        if Platform.CODEFORCES in self.platforms:
            raise ValueError("codeforces history is exempt from retention")
        return self


class RadarConfig(BaseModel):
    """Top-level settings for one contest_radar deployment."""

    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    startup_delay_seconds: float = 5.0
    run_deadline_seconds: float = 120.0
    worker_count: int = 3

    @model_validator(mode="after")
    def _validate_runtime(self) -> "RadarConfig":
        if self.startup_delay_seconds < 0:
            raise ValueError("startup_delay_seconds must be >= 0")
        if self.run_deadline_seconds <= 0:
            raise ValueError("run_deadline_seconds must be > 0")
        if self.worker_count < 1:
            raise ValueError("worker_count must be >= 1")
        return self


__all__ = [
    "CodeChefSourceConfig",
    "CodeforcesSourceConfig",
    "HttpConfig",
    "LeetCodeSourceConfig",
    "RadarConfig",
    "RetentionConfig",
    "RetryConfig",
    "ScheduleConfig",
    "ScheduleType",
    "SourcesConfig",
    "StoreConfig",
]
