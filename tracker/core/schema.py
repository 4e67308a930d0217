"""SQLite schema management (code-first approach)."""

import logging

from tracker.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema
COLLECTIONS = [
    "users",
    "tasks",
    "daily_completions",
    "progress_entries",
]


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    display_name TEXT NOT NULL DEFAULT '',
    is_public INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    type TEXT NOT NULL CHECK (type IN ('daily', 'progress', 'one-time')),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    check_in_enabled INTEGER NOT NULL DEFAULT 0,
    target_days INTEGER,
    target_value REAL,
    current_value REAL,
    unit TEXT,
    completed_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks (owner_id);

CREATE TABLE IF NOT EXISTS daily_completions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id TEXT NOT NULL REFERENCES tasks (id) ON DELETE CASCADE,
    completed_date TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_daily_completions_task_date
    ON daily_completions (task_id, completed_date);

CREATE TABLE IF NOT EXISTS progress_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id TEXT NOT NULL REFERENCES tasks (id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    value REAL NOT NULL CHECK (value > 0),
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_progress_entries_task ON progress_entries (task_id);
"""


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist yet."""
    conn = await db_client.get_connection(db_path=db_path)
    await conn.executescript(SCHEMA_SQL)
    await conn.commit()
    logger.info("Schema initialized", extra={"collections": COLLECTIONS})
