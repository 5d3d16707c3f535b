"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

import aiosqlite
from fastapi import Depends

from .db.database import get_db


async def _get_db() -> aiosqlite.Connection:
    return await get_db()


Db = Annotated[aiosqlite.Connection, Depends(_get_db)]
