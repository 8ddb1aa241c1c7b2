"""Age-based retention sweep over the canonical store."""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Callable, Iterable

import structlog

from ..config import RetentionConfig
from ..records import Platform, to_utc
from ..store.base import ContestStore


def months_ago(moment: datetime, months: int) -> datetime:
    """Subtract calendar months, clamping the day to the target month's length."""

    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class RetentionPolicy:
    """Delete records that ended more than ``max_age_months`` ago.

    Codeforces history is never swept, even if it is passed in explicitly.
    """

    def __init__(
        self,
        store: ContestStore,
        max_age_months: int = 2,
        platforms: Iterable[Platform | str] = (Platform.CODECHEF, Platform.LEETCODE),
        clock: Callable[[], datetime] | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.max_age_months = max_age_months
        self.platforms = [
            platform
            for platform in (Platform(item) for item in platforms)
            if platform is not Platform.CODEFORCES
        ]
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger or structlog.get_logger("contest_radar.retention")

    @classmethod
    def from_config(
        cls,
        store: ContestStore,
        config: RetentionConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> "RetentionPolicy":
        return cls(
            store,
            max_age_months=config.max_age_months,
            platforms=config.platforms,
            clock=clock,
        )

    def cutoff(self) -> datetime:
        return months_ago(to_utc(self._clock()), self.max_age_months)

    def sweep(self) -> int:
        cutoff = self.cutoff()
        if not self.platforms:
            deleted = 0
        else:
            deleted = self.store.delete_expired(cutoff, self.platforms)
        self.logger.info(
            "retention_completed",
            deleted=deleted,
            cutoff=cutoff.isoformat(),
            platforms=[platform.value for platform in self.platforms],
        )
        return deleted


__all__ = ["RetentionPolicy", "months_ago"]
