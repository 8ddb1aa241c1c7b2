"""Fetching, parsing and reconciliation building blocks."""

from .dedup import Deduplicator, default_key
from .fetcher import FetchRequest, FetchResponse, Fetcher, RetryPolicy
from .parser import ContestPageParser, coerce_datetime, parse_time_span, slugify_name
from .reconciler import ReconciliationEngine, ReconciliationResult
from .retention import RetentionPolicy, months_ago
from .thread_pool import ThreadPoolManager

__all__ = [
    "ContestPageParser",
    "Deduplicator",
    "FetchRequest",
    "FetchResponse",
    "Fetcher",
    "ReconciliationEngine",
    "ReconciliationResult",
    "RetentionPolicy",
    "RetryPolicy",
    "ThreadPoolManager",
    "coerce_datetime",
    "default_key",
    "months_ago",
    "parse_time_span",
    "slugify_name",
]
