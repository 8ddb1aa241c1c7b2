"""Source adapters that normalise external contest listings."""

from .base import AdapterResult, SourceAdapter
from .codechef import CodeChefAdapter
from .codeforces import CodeforcesAdapter
from .leetcode import LeetCodeAdapter

__all__ = [
    "AdapterResult",
    "CodeChefAdapter",
    "CodeforcesAdapter",
    "LeetCodeAdapter",
    "SourceAdapter",
]
