"""Repository for the fetch-cycle log."""

import sqlite3


def log_refresh(
    conn: sqlite3.Connection,
    postal_code: str,
    status: str,
    record_count: int = 0,
    error_message: str | None = None,
    duration_seconds: float = 0.0,
) -> int:
    """Record one completed fetch cycle. Returns the row id."""
    cursor = conn.execute(
        "INSERT INTO refresh_log "
        "(postal_code, status, record_count, error_message, duration_seconds) "
        "VALUES (?, ?, ?, ?, ?)",
        (postal_code, status, record_count, error_message, duration_seconds),
    )
    conn.commit()
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def get_recent_refreshes(conn: sqlite3.Connection, limit: int = 20) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM refresh_log ORDER BY id DESC LIMIT ?", (limit,)
    ).fetchall()
    return [dict(r) for r in rows]


def get_latest_refresh(conn: sqlite3.Connection) -> dict | None:
    row = conn.execute(
        "SELECT * FROM refresh_log ORDER BY id DESC LIMIT 1"
    ).fetchone()
    if row is None:
        return None
    return dict(row)
