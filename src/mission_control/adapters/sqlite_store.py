"""SQLite storage adapter for the event log and local scheduled tasks."""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from mission_control.core.activity import Activity
from mission_control.core.schedule import LocalTask

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS activities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    metadata TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_activities_created_at ON activities(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_activities_type ON activities(type);

CREATE TABLE IF NOT EXISTS scheduled_tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id TEXT,
    name TEXT,
    schedule_type TEXT,
    schedule_expr TEXT,
    next_run_at DATETIME,
    last_run_at DATETIME,
    status TEXT DEFAULT 'active',
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteStore:
    """
    SQLite-backed store.

    Implements EventLog and TaskStore protocols. The connection is opened on
    first use and held until close(). Every operation is a single statement.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(SCHEMA)
            self._conn = conn
            logger.debug(f"Opened store at {self.db_path}")
        return self._conn

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            conn = self._connection()
            with conn:
                return conn.execute(sql, params)

    def _fetch(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._connection().execute(sql, params).fetchall()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ============== Event log ==============

    def append(
        self,
        activity_type: str,
        title: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Append an activity. Returns its id."""
        cursor = self._execute(
            "INSERT INTO activities (type, title, description, metadata) VALUES (?, ?, ?, ?)",
            (activity_type, title, description or None, json.dumps(metadata) if metadata else None),
        )
        return cursor.lastrowid

    def query(self, filter_type: str | None = None, limit: int = 50, offset: int = 0) -> list[Activity]:
        """Activities, most recent first."""
        sql = "SELECT * FROM activities"
        params: list = []
        if filter_type:
            sql += " WHERE type = ?"
            params.append(filter_type)
        sql += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        return [self._row_to_activity(row) for row in self._fetch(sql, tuple(params))]

    def find(self, text: str, limit: int = 20) -> list[Activity]:
        """Activities whose title or description contains `text` (case-insensitive)."""
        pattern = f"%{text.lower()}%"
        rows = self._fetch(
            "SELECT * FROM activities "
            "WHERE LOWER(title) LIKE ? OR LOWER(description) LIKE ? "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            (pattern, pattern, limit),
        )
        return [self._row_to_activity(row) for row in rows]

    def _row_to_activity(self, row: sqlite3.Row) -> Activity:
        metadata = None
        if row["metadata"]:
            try:
                metadata = json.loads(row["metadata"])
            except json.JSONDecodeError:
                logger.debug(f"Ignoring malformed metadata on activity {row['id']}")
        return Activity(
            id=row["id"],
            type=row["type"],
            title=row["title"],
            description=row["description"],
            metadata=metadata,
            created_at=row["created_at"],
        )

    # ============== Scheduled tasks ==============

    def scheduled_tasks(self) -> list[LocalTask]:
        """All local tasks, soonest stored next run first."""
        rows = self._fetch("SELECT * FROM scheduled_tasks ORDER BY next_run_at ASC, id ASC")
        return [
            LocalTask(
                id=row["id"],
                job_id=row["job_id"],
                name=row["name"],
                schedule_type=row["schedule_type"],
                schedule_expr=row["schedule_expr"],
                next_run_at=row["next_run_at"],
                last_run_at=row["last_run_at"],
                status=row["status"] or "active",
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def add_scheduled_task(
        self,
        name: str,
        schedule_type: str,
        schedule_expr: str,
        job_id: str | None = None,
        next_run_at: str | None = None,
        status: str = "active",
    ) -> int:
        """Persist a local task. Returns its id."""
        cursor = self._execute(
            "INSERT INTO scheduled_tasks (job_id, name, schedule_type, schedule_expr, next_run_at, status) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (job_id, name, schedule_type, schedule_expr, next_run_at, status),
        )
        return cursor.lastrowid
