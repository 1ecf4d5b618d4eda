"""SQLite schema for the task store (code-first approach)."""

import logging

from opsboard.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema
COLLECTIONS = [
    "locations",
    "tasks",
    "task_completions",
    "streaks",
]


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS locations (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    store_number TEXT NOT NULL DEFAULT '',
    tenant_id TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    type TEXT NOT NULL DEFAULT 'task',
    priority TEXT NOT NULL DEFAULT 'normal',
    tenant_id TEXT,
    location_id TEXT,
    due_time TEXT NOT NULL DEFAULT '00:00',
    due_date TEXT,
    is_recurring INTEGER NOT NULL DEFAULT 0,
    recurring_type TEXT,
    recurring_days TEXT,
    biweekly_start TEXT,
    is_hidden INTEGER NOT NULL DEFAULT 0,
    show_in_today INTEGER NOT NULL DEFAULT 1,
    points INTEGER NOT NULL DEFAULT 10,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS task_completions (
    id TEXT PRIMARY KEY,
    task_id TEXT NOT NULL,
    location_id TEXT NOT NULL,
    completed_at TEXT,
    completed_date TEXT NOT NULL,
    notes TEXT,
    points_earned INTEGER NOT NULL DEFAULT 0,
    bonus_points INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_task_completions_location_date
    ON task_completions (location_id, completed_date);

CREATE TABLE IF NOT EXISTS streaks (
    location_id TEXT PRIMARY KEY,
    current_streak INTEGER NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_completion_date TEXT,
    streak_freeze_available INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);
"""


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist yet."""
    conn = await db_client.get_connection(db_path=db_path)
    await conn.executescript(SCHEMA_SQL)
    await conn.commit()
    logger.info("Database schema initialized", extra={"collections": COLLECTIONS})
