"""Shared fixtures: a fresh SQLite task store per test."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
import pytest_asyncio

from taskpool.web.db.database import connect

NOW = datetime(2025, 3, 14, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "tasks.db")


@pytest_asyncio.fixture
async def db(db_path):
    """Create a test database with the full schema."""
    conn = await connect(db_path)

    yield conn

    await conn.close()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_task(db):
    """Create a task through the service with sensible defaults."""
    from taskpool.web.tasks.service import create_task

    async def _make(**fields):
        data = {"title": "Review onboarding checklist", "created_by": "user1"}
        data.update(fields)
        now = data.pop("now", None)
        return await create_task(db, data, now=now)

    return _make
