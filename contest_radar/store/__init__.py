"""Contest store SPI and implementations."""

from .base import ContestStore, StoredContest, UpsertOutcome
from .mongo_store import MongoContestStore
from .sqlite_store import SQLiteContestStore

__all__ = [
    "ContestStore",
    "MongoContestStore",
    "SQLiteContestStore",
    "StoredContest",
    "UpsertOutcome",
]
