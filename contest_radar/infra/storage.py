"""SQLite connection management with schema guarantees."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS contests (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        url TEXT NOT NULL,
        platform TEXT NOT NULL CHECK (platform IN ('codeforces', 'codechef', 'leetcode')),
        start_time TEXT NOT NULL,
        end_time TEXT,
        duration INTEGER,
        revision INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_contests_platform_start ON contests(platform, start_time)",
    """
    CREATE TABLE IF NOT EXISTS users (
        email TEXT PRIMARY KEY,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS bookmarks (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT NOT NULL,
        contest_id TEXT NOT NULL,
        UNIQUE (email, contest_id)
    )
    """,
)


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if path not in self._connections:
                conn = sqlite3.connect(path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._connections[path] = conn
                self._ensure_schema(conn)
            return self._connections[path]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()

    def close(self, path: Path) -> None:
        with self._lock:
            conn = self._connections.pop(path, None)
        if conn is not None:
            conn.close()


__all__ = ["SQLiteManager"]
