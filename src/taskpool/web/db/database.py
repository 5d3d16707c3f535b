"""Async SQLite connection manager (singleton pattern)."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

_db: aiosqlite.Connection | None = None
_db_path: str = ""


async def connect(db_path: str) -> aiosqlite.Connection:
    """Open a connection configured for the task store and apply the schema."""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA journal_mode=WAL")
    # Wait for a competing writer's lock instead of failing a claim with SQLITE_BUSY
    await conn.execute("PRAGMA busy_timeout=5000")

    # Migrate first so indexes in the schema can rely on every column existing
    await _run_migrations(conn)
    await conn.executescript(SCHEMA_PATH.read_text())
    await conn.commit()
    return conn


async def init_db(db_path: str) -> None:
    """Initialize the shared database connection and run schema."""
    global _db, _db_path
    _db_path = db_path
    _db = await connect(db_path)
    logger.info("Task store ready at %s", db_path)


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Add columns that may be missing from older task stores."""
    cursor = await db.execute("PRAGMA table_info(tasks)")
    existing = {row[1] for row in await cursor.fetchall()}
    if not existing:
        return
    new_cols = [
        ("target_employee_id", "TEXT"),
        ("tags_json", "TEXT NOT NULL DEFAULT '[]'"),
        ("source", "TEXT NOT NULL DEFAULT 'manual'"),
        ("claimed_by_agent_id", "TEXT"),
        ("claim_expires_at", "TIMESTAMP"),
    ]
    for col_name, col_def in new_cols:
        if col_name not in existing:
            logger.info("Migrating tasks table: adding column %s", col_name)
            await db.execute(f"ALTER TABLE tasks ADD COLUMN {col_name} {col_def}")
    await db.commit()


async def get_db() -> aiosqlite.Connection:
    """Get the active database connection."""
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
