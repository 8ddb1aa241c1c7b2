"""Contest store backed by a local SQLite database."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager, suppress
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Iterable, Iterator

from ..errors import StoreError
from ..infra.storage import SQLiteManager
from ..records import ContestRecord, Platform, to_utc
from .base import ContestStore, StoredContest, UpsertOutcome, resolve_platform

_COLUMNS = "id, name, url, platform, start_time, end_time, duration"

_UPSERT_SQL = f"""
    INSERT INTO contests ({_COLUMNS}, revision, created_at, updated_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        name = excluded.name,
        url = excluded.url,
        platform = excluded.platform,
        start_time = excluded.start_time,
        end_time = excluded.end_time,
        duration = excluded.duration,
        revision = contests.revision + 1,
        updated_at = excluded.updated_at
    RETURNING revision
"""


def _stamp(value: datetime) -> str:
    return to_utc(value).isoformat()


def _now() -> str:
    return _stamp(datetime.now(timezone.utc))


def _row_to_record(row: sqlite3.Row) -> ContestRecord:
    return ContestRecord.from_document(dict(row))


class SQLiteContestStore(ContestStore):
    """Persist contests and bookmarks in SQLite.

    Datetimes are stored as UTC ISO-8601 strings truncated to seconds, so
    lexical ordering matches chronological ordering.
    """

    def __init__(self, manager: SQLiteManager, path: Path) -> None:
        self.manager = manager
        self.path = path
        self._lock = Lock()
        self._conn = self.manager.connect(path)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                with suppress(sqlite3.Error):
                    self._conn.rollback()
                raise StoreError(f"sqlite {operation} failed: {exc}") from exc

    def upsert(self, record: ContestRecord) -> UpsertOutcome:
        now = _now()
        params = (
            record.id,
            record.name,
            record.url,
            record.platform.value,
            _stamp(record.start_time),
            _stamp(record.end_time) if record.end_time else None,
            record.duration,
            now,
            now,
        )
        with self._guard("upsert") as conn:
            rows = conn.execute(_UPSERT_SQL, params).fetchall()
            conn.commit()
        revision = rows[0][0]
        return UpsertOutcome.INSERTED if revision == 0 else UpsertOutcome.UPDATED

    def delete_expired(self, cutoff: datetime, platforms: Iterable[Platform]) -> int:
        names = [Platform(platform).value for platform in platforms]
        if not names:
            return 0
        placeholders = ", ".join("?" for _ in names)
        with self._guard("delete_expired") as conn:
            cursor = conn.execute(
                f"DELETE FROM contests WHERE end_time IS NOT NULL AND end_time < ? "
                f"AND platform IN ({placeholders})",
                (_stamp(cutoff), *names),
            )
            conn.commit()
        return cursor.rowcount

    def list_contests(self, platform: Platform | str | None = None) -> list[ContestRecord]:
        resolved = resolve_platform(platform)
        with self._guard("list_contests") as conn:
            if resolved is None:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM contests ORDER BY start_time ASC, id ASC"
                ).fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM contests WHERE platform = ? "
                    "ORDER BY start_time ASC, id ASC",
                    (resolved.value,),
                ).fetchall()
        return [_row_to_record(row) for row in rows]

    def get_contest(self, contest_id: str) -> StoredContest | None:
        with self._guard("get_contest") as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS}, created_at, updated_at FROM contests WHERE id = ?",
                (contest_id,),
            ).fetchone()
        if row is None:
            return None
        return StoredContest(
            record=_row_to_record(row),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def contests_by_ids(self, contest_ids: Iterable[str]) -> list[ContestRecord]:
        ids = list(dict.fromkeys(contest_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        with self._guard("contests_by_ids") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM contests WHERE id IN ({placeholders}) "
                "ORDER BY start_time ASC, id ASC",
                ids,
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def count(self) -> int:
        with self._guard("count") as conn:
            return conn.execute("SELECT count(*) FROM contests").fetchone()[0]

    def toggle_bookmark(self, email: str, contest_id: str) -> list[str]:
        with self._guard("toggle_bookmark") as conn:
            conn.execute(
                "INSERT OR IGNORE INTO users(email, created_at) VALUES (?, ?)", (email, _now())
            )
            removed = conn.execute(
                "DELETE FROM bookmarks WHERE email = ? AND contest_id = ?", (email, contest_id)
            ).rowcount
            if not removed:
                conn.execute(
                    "INSERT INTO bookmarks(email, contest_id) VALUES (?, ?)", (email, contest_id)
                )
            conn.commit()
        return self.bookmarks(email)

    def bookmarks(self, email: str) -> list[str]:
        with self._guard("bookmarks") as conn:
            rows = conn.execute(
                "SELECT contest_id FROM bookmarks WHERE email = ? ORDER BY seq ASC", (email,)
            ).fetchall()
        return [row["contest_id"] for row in rows]

    def close(self) -> None:
        self.manager.close(self.path)


__all__ = ["SQLiteContestStore"]
