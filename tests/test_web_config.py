"""Tests for server config loading and store migrations."""

from __future__ import annotations

import aiosqlite

from taskpool.web.config import WebConfig
from taskpool.web.db.database import connect


class TestWebConfig:
    def test_defaults(self, monkeypatch):
        for name in ("TASKPOOL_HOST", "TASKPOOL_PORT", "TASKPOOL_DEFAULT_LEASE_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = WebConfig.load()

        assert config.port == 8000
        assert config.default_lease_seconds == 3600

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TASKPOOL_PORT", "9100")
        monkeypatch.setenv("TASKPOOL_DB_PATH", "/tmp/pool.db")
        monkeypatch.setenv("TASKPOOL_CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("TASKPOOL_DEFAULT_LEASE_SECONDS", "900")

        config = WebConfig.load()

        assert config.port == 9100
        assert config.db_path == "/tmp/pool.db"
        assert config.cors_origins == ["http://a.test", "http://b.test"]
        assert config.default_lease_seconds == 900

    def test_out_of_range_default_lease_is_ignored(self, monkeypatch):
        monkeypatch.setenv("TASKPOOL_DEFAULT_LEASE_SECONDS", "0")

        assert WebConfig.load().default_lease_seconds == 3600


class TestMigrations:
    async def test_adds_claim_columns_to_old_store(self, tmp_path):
        path = str(tmp_path / "old.db")
        async with aiosqlite.connect(path) as old:
            await old.execute(
                """CREATE TABLE tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'open',
                    priority TEXT NOT NULL DEFAULT 'medium',
                    due_date TEXT,
                    assigned_to TEXT,
                    created_by TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )"""
            )
            await old.execute(
                "INSERT INTO tasks (id, title, created_by, created_at, updated_at) "
                "VALUES ('t1', 'Legacy', 'hr1', '2025-01-01 00:00:00.000000', "
                "'2025-01-01 00:00:00.000000')"
            )
            await old.commit()

        db = await connect(path)
        try:
            cursor = await db.execute("PRAGMA table_info(tasks)")
            columns = {row[1] for row in await cursor.fetchall()}
            assert {"claimed_by_agent_id", "claim_expires_at", "tags_json"} <= columns

            cursor = await db.execute("SELECT claimed_by_agent_id FROM tasks WHERE id = 't1'")
            row = await cursor.fetchone()
            assert row[0] is None
        finally:
            await db.close()
