"""DOM and text parsing helpers for rendered contest pages."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from selectolax.parser import HTMLParser

from ..records import to_utc

STARTS_PATTERN = re.compile(r"Starts: (.*?)(?:Ends|$)", re.S)
ENDS_PATTERN = re.compile(r"Ends: (.*?)$", re.S)
_WHITESPACE = re.compile(r"\s+")
_TZ_SUFFIX = re.compile(r"\s*(?:UTC|GMT|Z)$", re.IGNORECASE)

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%b %d, %Y %I:%M %p",
    "%B %d, %Y %I:%M %p",
    "%b %d, %Y %H:%M",
    "%B %d, %Y %H:%M",
    "%a %b %d %Y %H:%M:%S",
    "%d %b %Y %H:%M",
    "%Y-%m-%d",
)


@dataclass(slots=True)
class ContestBlock:
    """Raw text pulled out of one contest card."""

    name: str
    time_text: str


@dataclass(slots=True)
class TimeSpan:
    start: datetime
    end: datetime | None
    end_defaulted: bool = False


class ContestPageParser:
    """Extract contest cards from a rendered listing page."""

    def __init__(
        self,
        card_selector: str = ".contest-card",
        title_selector: str = ".contest-title",
        time_selector: str = ".contest-time-info",
    ) -> None:
        self.card_selector = card_selector
        self.title_selector = title_selector
        self.time_selector = time_selector

    def extract_blocks(self, html: str) -> list[ContestBlock]:
        parser = HTMLParser(html)
        blocks: list[ContestBlock] = []
        for node in parser.css(self.card_selector):
            title_node = node.css_first(self.title_selector)
            time_node = node.css_first(self.time_selector)
            name = title_node.text(separator=" ", strip=True) if title_node else ""
            time_text = time_node.text(separator=" ", strip=True) if time_node else ""
            blocks.append(ContestBlock(name=name, time_text=time_text))
        return blocks


def parse_time_span(text: str, default_duration: timedelta) -> TimeSpan | None:
    """Read a "Starts: ... Ends: ..." span; a missing end falls back to ``default_duration``."""

    start_match = STARTS_PATTERN.search(text)
    if not start_match or not start_match.group(1).strip():
        return None
    start = coerce_datetime(start_match.group(1).strip())
    if start is None:
        return None
    end_match = ENDS_PATTERN.search(text)
    end = coerce_datetime(end_match.group(1).strip()) if end_match and end_match.group(1).strip() else None
    if end is None:
        return TimeSpan(start=start, end=start + default_duration, end_defaulted=True)
    return TimeSpan(start=start, end=end)


def coerce_datetime(value: object) -> datetime | None:
    """Best-effort conversion of epoch numbers and date strings to aware UTC datetimes."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, (int, float)):
        numeric = float(value)
        if numeric > 1_000_000_000_000:  # assume milliseconds
            numeric /= 1000.0
        return to_utc(datetime.fromtimestamp(numeric, tz=timezone.utc))
    if not isinstance(value, str):
        return None
    text = _WHITESPACE.sub(" ", value).strip()
    if not text:
        return None
    normalised = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return to_utc(datetime.fromisoformat(normalised))
    except ValueError:
        pass
    stripped = _TZ_SUFFIX.sub("", text)
    for fmt in _DATETIME_FORMATS:
        try:
            parsed = datetime.strptime(stripped, fmt)
        except ValueError:
            continue
        return to_utc(parsed)
    return None


def slugify_name(name: str) -> str:
    return _WHITESPACE.sub("-", name.lower())


__all__ = [
    "ContestBlock",
    "ContestPageParser",
    "TimeSpan",
    "coerce_datetime",
    "parse_time_span",
    "slugify_name",
]
