"""SQLite store shared by the CLI, the reminder daemon and the dashboard.

Schema changes live in migrations/v###_<name>.py modules, each exposing
up(conn). Applied versions are recorded in schema_versions.
"""

import importlib
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "blanket.storage.migrations"
MIGRATIONS_DIR = Path(__file__).parent / "migrations"
BUSY_TIMEOUT_SECONDS = 5.0


def connect(db_path: str | Path) -> sqlite3.Connection:
    """Open the store in WAL mode, creating its directory if needed.

    Several processes write to the same file, so writers wait up to
    BUSY_TIMEOUT_SECONDS for a lock instead of failing at once. The
    connection may be used from the dashboard's worker threads.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(db_path), timeout=BUSY_TIMEOUT_SECONDS, check_same_thread=False
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply pending migrations in version order. Returns the names applied."""
    with conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_versions ("
            "  version TEXT PRIMARY KEY,"
            "  applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP"
            ")"
        )
    applied = {row["version"] for row in conn.execute("SELECT version FROM schema_versions")}

    newly_applied = []
    for name in _discover_migrations():
        if name in applied:
            continue
        module = importlib.import_module(f"{MIGRATIONS_PACKAGE}.{name}")
        # A migration and its version row land together or not at all.
        with conn:
            conn.execute("BEGIN")
            module.up(conn)
            conn.execute("INSERT INTO schema_versions (version) VALUES (?)", (name,))
        logger.info("Applied migration %s", name)
        newly_applied.append(name)
    return newly_applied


def open_store(db_path: str | Path) -> sqlite3.Connection:
    """Connect and bring the schema up to date."""
    conn = connect(db_path)
    run_migrations(conn)
    return conn


def _discover_migrations() -> list[str]:
    return sorted(p.stem for p in MIGRATIONS_DIR.glob("v[0-9]*_*.py"))
