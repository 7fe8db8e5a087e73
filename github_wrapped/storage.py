"""
SQLite persistence for users and their wrapped summaries.

Summaries are keyed by (user_id, year); storing one again replaces the
previous data but keeps its id, so shared links stay valid.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id           TEXT PRIMARY KEY,
    github_id    INTEGER NOT NULL UNIQUE,
    login        TEXT NOT NULL,
    name         TEXT,
    avatar_url   TEXT,
    access_token TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS wrapped (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    year       INTEGER NOT NULL,
    is_public  INTEGER NOT NULL DEFAULT 1,
    data       TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (user_id, year)
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def connect(db_path: str | Path) -> sqlite3.Connection:
    target = str(db_path)
    if target != ":memory:":
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(target)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.executescript(SCHEMA)
    return conn


class WrappedStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: str | Path) -> "WrappedStore":
        return cls(connect(db_path))

    def close(self) -> None:
        self.conn.close()

    def upsert_user(
        self,
        github_id: int,
        login: str,
        access_token: str,
        name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> str:
        """Create or refresh the user for a GitHub account and return its id."""
        self.conn.execute(
            """
            INSERT INTO users (id, github_id, login, name, avatar_url, access_token)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(github_id) DO UPDATE SET
                login = excluded.login,
                name = excluded.name,
                avatar_url = excluded.avatar_url,
                access_token = excluded.access_token
            """,
            (str(uuid.uuid4()), github_id, login, name, avatar_url, access_token),
        )
        self.conn.commit()
        row = self.conn.execute("SELECT id FROM users WHERE github_id = ?", (github_id,)).fetchone()
        return row["id"]

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(
            "SELECT id, github_id, login, name, avatar_url, access_token FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
        return dict(row) if row else None

    def upsert_wrapped(self, user_id: str, year: int, data: Dict[str, Any], is_public: bool) -> str:
        now = _now()
        self.conn.execute(
            """
            INSERT INTO wrapped (id, user_id, year, is_public, data, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, year) DO UPDATE SET
                is_public = excluded.is_public,
                data = excluded.data,
                updated_at = excluded.updated_at
            """,
            (str(uuid.uuid4()), user_id, year, int(is_public), json.dumps(data), now, now),
        )
        self.conn.commit()
        row = self.conn.execute(
            "SELECT id FROM wrapped WHERE user_id = ? AND year = ?",
            (user_id, year),
        ).fetchone()
        logger.info("Stored wrapped %s for user %s (%s)", row["id"], user_id, year)
        return row["id"]

    def get_wrapped(self, wrapped_id: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(
            """
            SELECT id, user_id, year, is_public, data, created_at, updated_at
            FROM wrapped
            WHERE id = ?
            """,
            (wrapped_id,),
        ).fetchone()
        if row is None:
            return None
        record = dict(row)
        record["is_public"] = bool(record["is_public"])
        record["data"] = json.loads(record["data"])
        return record
