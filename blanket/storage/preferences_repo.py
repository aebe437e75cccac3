"""Repository for the two persisted scalar preferences."""

import logging
import sqlite3
from datetime import time

logger = logging.getLogger(__name__)

POSTAL_CODE_KEY = "postal_code"
REMINDER_TIME_KEY = "reminder_time"
KNOWN_KEYS = (POSTAL_CODE_KEY, REMINDER_TIME_KEY)


def get_preference(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute(
        "SELECT value FROM preferences WHERE key = ?", (key,)
    ).fetchone()
    if row is None:
        return None
    return row[0]


def set_preference(conn: sqlite3.Connection, key: str, value: str) -> None:
    if key not in KNOWN_KEYS:
        raise KeyError(f"Unknown preference: {key}")
    conn.execute(
        "INSERT INTO preferences (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP",
        (key, value),
    )
    conn.commit()


def get_all_preferences(conn: sqlite3.Connection) -> dict[str, str]:
    rows = conn.execute("SELECT key, value FROM preferences").fetchall()
    return {r["key"]: r["value"] for r in rows}


def get_postal_code(conn: sqlite3.Connection) -> str:
    return get_preference(conn, POSTAL_CODE_KEY) or ""


def set_postal_code(conn: sqlite3.Connection, postal_code: str) -> None:
    set_preference(conn, POSTAL_CODE_KEY, postal_code.strip())


def get_reminder_time(conn: sqlite3.Connection) -> time | None:
    raw = get_preference(conn, REMINDER_TIME_KEY)
    if raw is None:
        return None
    try:
        return parse_time_of_day(raw)
    except ValueError:
        logger.warning("Ignoring unreadable reminder_time preference %r", raw)
        return None


def set_reminder_time(conn: sqlite3.Connection, at: time) -> None:
    set_preference(conn, REMINDER_TIME_KEY, at.strftime("%H:%M"))


def parse_time_of_day(value: str) -> time:
    """Parse 'HH:MM' (or 'HH:MM:SS') into a time with seconds dropped."""
    return time.fromisoformat(value.strip()).replace(second=0, microsecond=0)
