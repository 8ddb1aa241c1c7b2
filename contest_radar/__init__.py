"""Aggregate programming contests from Codeforces, CodeChef and LeetCode."""

__version__ = "0.1.0"
