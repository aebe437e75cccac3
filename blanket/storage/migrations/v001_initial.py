"""Initial schema: scalar preferences and the refresh log."""

import sqlite3

DDL = [
    # Key-value preferences (postal_code, reminder_time)
    """
    CREATE TABLE IF NOT EXISTS preferences (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,

    # One row per completed fetch cycle
    """
    CREATE TABLE IF NOT EXISTS refresh_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        postal_code TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL,
        record_count INTEGER NOT NULL DEFAULT 0,
        error_message TEXT,
        duration_seconds REAL NOT NULL DEFAULT 0.0,
        completed_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_refresh_log_completed ON refresh_log(completed_at)",
]


def up(conn: sqlite3.Connection) -> None:
    for stmt in DDL:
        conn.execute(stmt)
