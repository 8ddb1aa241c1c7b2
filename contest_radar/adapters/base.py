"""Source adapter contract and the explicit per-adapter result type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from ..engine.fetcher import Fetcher
from ..errors import SourceError
from ..logging_conf import source_logger
from ..records import ContestRecord, Platform


@dataclass
class AdapterResult:
    """Outcome of one adapter invocation: records on success, a reason on failure."""

    source: str
    platform: Platform
    records: list[ContestRecord] = field(default_factory=list)
    error: str | None = None
    error_type: str | None = None
    warnings: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0.0

    @classmethod
    def success(
        cls,
        source: str,
        platform: Platform,
        records: list[ContestRecord],
        warnings: list[str] | None = None,
        started_at: datetime | None = None,
    ) -> "AdapterResult":
        return cls(
            source=source,
            platform=platform,
            records=list(records),
            warnings=list(warnings or []),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

    @classmethod
    def failure(
        cls,
        source: str,
        platform: Platform,
        error: BaseException | str,
        warnings: list[str] | None = None,
        started_at: datetime | None = None,
        error_type: str | None = None,
    ) -> "AdapterResult":
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
            error_type = error_type or type(error).__name__
        else:
            message = error
        return cls(
            source=source,
            platform=platform,
            error=message,
            error_type=error_type,
            warnings=list(warnings or []),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )


class SourceAdapter(ABC):
    """Fetch one external source and normalise it into contest records.

    Subclasses implement :meth:`collect` and may raise any
    :class:`~contest_radar.errors.SourceError`; :meth:`run` converts every
    failure into an :class:`AdapterResult` so callers never see an exception.
    """

    name: str
    platform: Platform

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self.logger = logger or source_logger(self.name)

    @abstractmethod
    def collect(self, fetcher: Fetcher, warnings: list[str]) -> list[ContestRecord]:
        """Fetch and parse the source; append non-fatal issues to ``warnings``."""

    def run(self, fetcher: Fetcher) -> AdapterResult:
        started = datetime.now(timezone.utc)
        warnings: list[str] = []
        self.logger.info("adapter_started")
        try:
            records = self.collect(fetcher, warnings)
        except SourceError as exc:
            result = AdapterResult.failure(
                self.name, self.platform, exc, warnings=warnings, started_at=started
            )
            self.logger.warning(
                "adapter_error",
                error_type=result.error_type,
                error=result.error,
                duration_seconds=result.duration_seconds,
            )
            return result
        except Exception as exc:  # noqa: BLE001
            result = AdapterResult.failure(
                self.name, self.platform, exc, warnings=warnings, started_at=started
            )
            self.logger.exception(
                "adapter_crashed", error=result.error, duration_seconds=result.duration_seconds
            )
            return result
        result = AdapterResult.success(
            self.name, self.platform, records, warnings=warnings, started_at=started
        )
        self.logger.info(
            "adapter_completed",
            records=len(records),
            warnings=len(warnings),
            duration_seconds=result.duration_seconds,
        )
        return result


__all__ = ["AdapterResult", "SourceAdapter"]
