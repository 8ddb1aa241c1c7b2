"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    CodeChefSourceConfig,
    CodeforcesSourceConfig,
    HttpConfig,
    LeetCodeSourceConfig,
    RadarConfig,
    RetentionConfig,
    RetryConfig,
    ScheduleConfig,
    ScheduleType,
    SourcesConfig,
    StoreConfig,
)

__all__ = [
    "CodeChefSourceConfig",
    "CodeforcesSourceConfig",
    "ConfigLocator",
    "ConfigRepository",
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
