"""Task service - business logic.

The task row is its own lock. ``claim_task`` is the only operation where
agents race, and it settles the race with a single conditional UPDATE:
whichever write the store applies first wins, every other claimant sees
zero affected rows and gets ``None`` back.
"""

from __future__ import annotations

import json
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any

import aiosqlite
from pydantic import ValidationError

from ..db.timestamps import ensure_utc, parse_timestamp, to_db_timestamp, utcnow
from .errors import InvalidLeaseError, TaskNotFoundError, TaskValidationError
from .models import AgentContext, TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from .scoring import DEFAULT_RECOMMEND_LIMIT, rank_tasks

logger = logging.getLogger(__name__)

MIN_LEASE_SECONDS = 1
MAX_LEASE_SECONDS = 86400
DEFAULT_LEASE_SECONDS = 3600

# Claim fields are written only by claim_task.
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "assigned_to",
        "created_by",
        "target_employee_id",
        "tags",
        "source",
    }
)
_NOT_NULL_FIELDS = frozenset({"title", "created_by", "status", "priority", "tags", "source"})


def _resolve_now(now: datetime | None) -> datetime:
    return ensure_utc(now) if now is not None else utcnow()


def is_claimable(task: dict[str, Any], now: datetime) -> bool:
    """Open and either never leased or the lease has lapsed."""
    if task["status"] != TaskStatus.OPEN:
        return False
    expires = task.get("claim_expires_at")
    return expires is None or parse_timestamp(expires) < now


def is_overdue(task: dict[str, Any], now: datetime) -> bool:
    due = task.get("due_date")
    return bool(due) and task["status"] != TaskStatus.COMPLETED and parse_timestamp(due) < now


def _row_to_task(row: aiosqlite.Row, now: datetime) -> dict[str, Any]:
    task = dict(row)
    task["tags"] = json.loads(task.pop("tags_json", None) or "[]")
    task["is_overdue"] = is_overdue(task, now)
    task["is_claimable"] = is_claimable(task, now)
    return task


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def validate_lease_seconds(lease_seconds: int) -> int:
    """Reject lease durations outside [1, 86400] seconds."""
    if isinstance(lease_seconds, bool) or not isinstance(lease_seconds, int):
        raise TaskValidationError(f"lease_seconds must be an integer, got {lease_seconds!r}")
    if not MIN_LEASE_SECONDS <= lease_seconds <= MAX_LEASE_SECONDS:
        raise InvalidLeaseError(lease_seconds, MIN_LEASE_SECONDS, MAX_LEASE_SECONDS)
    return lease_seconds


async def create_task(
    db: aiosqlite.Connection,
    data: TaskCreate | dict[str, Any],
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Create a new open task with no claim."""
    if not isinstance(data, TaskCreate):
        try:
            data = TaskCreate.model_validate(data)
        except ValidationError as e:
            raise TaskValidationError(str(e)) from None

    now = _resolve_now(now)
    stamp = to_db_timestamp(now)
    task_id = secrets.token_hex(8)

    await db.execute(
        """INSERT INTO tasks (id, title, description, status, priority, due_date,
           assigned_to, created_by, target_employee_id, tags_json, source,
           created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            task_id,
            data.title,
            data.description,
            data.status.value,
            data.priority.value,
            to_db_timestamp(data.due_date) if data.due_date else None,
            data.assigned_to,
            data.created_by,
            data.target_employee_id,
            json.dumps(data.tags),
            data.source.value,
            stamp,
            stamp,
        ),
    )
    await db.commit()

    logger.info(
        "Created task %s (priority=%s, source=%s)", task_id, data.priority, data.source
    )
    return await get_task(db, task_id, now=now)


async def get_task(
    db: aiosqlite.Connection,
    task_id: str,
    *,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """Get a task by ID."""
    cursor = await db.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
    row = await cursor.fetchone()
    return _row_to_task(row, _resolve_now(now)) if row else None


async def get_tasks(
    db: aiosqlite.Connection,
    status: str | None = None,
    priority: str | None = None,
    assigned_to: str | None = None,
    search: str | None = None,
    employee_id: str | None = None,
    overdue: bool = False,
    *,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """List tasks matching every given filter, most recently updated first."""
    now = _resolve_now(now)
    conditions: list[str] = []
    params: list[Any] = []

    if status:
        try:
            params.append(TaskStatus(status).value)
        except ValueError:
            raise TaskValidationError(f"Unknown status filter '{status}'") from None
        conditions.append("status = ?")
    if priority:
        try:
            params.append(TaskPriority(priority).value)
        except ValueError:
            raise TaskValidationError(f"Unknown priority filter '{priority}'") from None
        conditions.append("priority = ?")
    if assigned_to:
        conditions.append("assigned_to = ?")
        params.append(assigned_to)
    if employee_id:
        conditions.append("target_employee_id = ?")
        params.append(employee_id)
    if overdue:
        conditions.append("due_date IS NOT NULL AND due_date < ? AND status != 'completed'")
        params.append(to_db_timestamp(now))
    if search:
        term = f"%{_escape_like(search)}%"
        conditions.append("(title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')")
        params.extend([term, term])

    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    cursor = await db.execute(
        f"SELECT * FROM tasks{where} ORDER BY updated_at DESC, rowid DESC", params
    )
    rows = await cursor.fetchall()
    return [_row_to_task(r, now) for r in rows]


async def update_task(
    db: aiosqlite.Connection,
    task_id: str,
    updates: dict[str, Any],
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Apply a partial edit.

    Keys outside EDITABLE_FIELDS (notably the claim fields) are ignored, so
    an edit can never steal or clear another agent's lease. A completed
    task's status cannot be changed.
    """
    ignored = sorted(set(updates) - EDITABLE_FIELDS)
    if ignored:
        logger.debug("Ignoring non-editable fields for task %s: %s", task_id, ignored)

    try:
        parsed = TaskUpdate.model_validate(
            {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
        )
    except ValidationError as e:
        raise TaskValidationError(str(e)) from None
    fields = parsed.model_dump(exclude_unset=True)

    nulled = sorted(k for k, v in fields.items() if v is None and k in _NOT_NULL_FIELDS)
    if nulled:
        raise TaskValidationError(f"Fields cannot be cleared: {', '.join(nulled)}")

    now = _resolve_now(now)
    assignments: list[str] = []
    params: list[Any] = []
    for key, value in fields.items():
        if key == "tags":
            assignments.append("tags_json = ?")
            params.append(json.dumps(value))
        elif key == "due_date":
            assignments.append("due_date = ?")
            params.append(to_db_timestamp(value) if value else None)
        else:
            assignments.append(f"{key} = ?")
            params.append(value.value if hasattr(value, "value") else value)

    assignments.append("updated_at = ?")
    params.extend([to_db_timestamp(now), task_id])

    where = "id = ?"
    if "status" in fields:
        # Completed is terminal; checked in the same statement as the write
        where += " AND (status != 'completed' OR ? = 'completed')"
        params.append(fields["status"].value)

    cursor = await db.execute(
        f"UPDATE tasks SET {', '.join(assignments)} WHERE {where}", params
    )
    updated = cursor.rowcount
    await db.commit()
    if updated == 0:
        if await get_task(db, task_id, now=now) is None:
            raise TaskNotFoundError(task_id)
        raise TaskValidationError(f"Task {task_id} is completed and cannot be reopened")

    return await get_task(db, task_id, now=now)


async def complete_task(
    db: aiosqlite.Connection,
    task_id: str,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Mark a task completed regardless of who holds its lease.

    Completing an already-completed task succeeds again (retried calls from
    flaky clients are expected).
    """
    now = _resolve_now(now)
    cursor = await db.execute(
        "UPDATE tasks SET status = 'completed', updated_at = ? WHERE id = ?",
        (to_db_timestamp(now), task_id),
    )
    updated = cursor.rowcount
    await db.commit()
    if updated == 0:
        raise TaskNotFoundError(task_id)

    logger.info("Completed task %s", task_id)
    return await get_task(db, task_id, now=now)


async def claim_task(
    db: aiosqlite.Connection,
    task_id: str,
    agent_id: str,
    lease_seconds: int = DEFAULT_LEASE_SECONDS,
    *,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """Atomically lease an open task to ``agent_id``.

    Returns the updated task, or None when the task is not claimable right
    now (someone else holds an unexpired lease, or it is not open). None is
    the normal outcome of contention; callers should move on to another
    task.

    Raises:
        TaskValidationError: Blank agent id or bad lease duration. Nothing
            is written.
        TaskNotFoundError: No task with this id.
    """
    if not isinstance(agent_id, str) or not agent_id.strip():
        raise TaskValidationError("agent_id must be a non-empty string")
    validate_lease_seconds(lease_seconds)

    now = _resolve_now(now)
    stamp = to_db_timestamp(now)
    expires_at = to_db_timestamp(now + timedelta(seconds=lease_seconds))

    cursor = await db.execute(
        """UPDATE tasks SET claimed_by_agent_id = ?, claim_expires_at = ?, updated_at = ?
           WHERE id = ? AND status = 'open'
             AND (claim_expires_at IS NULL OR claim_expires_at < ?)""",
        (agent_id, expires_at, stamp, task_id, stamp),
    )
    claimed = cursor.rowcount == 1
    # Commit even on a miss so the write lock is released for other claimants
    await db.commit()

    if not claimed:
        if await get_task(db, task_id, now=now) is None:
            raise TaskNotFoundError(task_id)
        logger.debug("Task %s not claimable by agent %s", task_id, agent_id)
        return None

    logger.info("Agent %s claimed task %s until %s", agent_id, task_id, expires_at)
    return await get_task(db, task_id, now=now)


async def recommend_tasks(
    db: aiosqlite.Connection,
    context: AgentContext | None = None,
    limit: int | None = DEFAULT_RECOMMEND_LIMIT,
    *,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Rank currently claimable tasks for an agent. Read-only.

    The result may be stale by the time the caller claims; claim_task
    re-checks against the store.
    """
    now = _resolve_now(now)
    cursor = await db.execute(
        """SELECT * FROM tasks
           WHERE status = 'open'
             AND (claim_expires_at IS NULL OR claim_expires_at < ?)
           ORDER BY updated_at DESC, rowid DESC""",
        (to_db_timestamp(now),),
    )
    rows = await cursor.fetchall()
    candidates = [_row_to_task(r, now) for r in rows]
    return rank_tasks(candidates, context, now, limit)


async def get_task_stats(
    db: aiosqlite.Connection,
    *,
    now: datetime | None = None,
) -> dict[str, int]:
    """Aggregate counts over all tasks."""
    now = _resolve_now(now)
    cursor = await db.execute(
        """SELECT count(*) AS total,
                  count(CASE WHEN status = 'open' THEN 1 END) AS open,
                  count(CASE WHEN status = 'in_progress' THEN 1 END) AS in_progress,
                  count(CASE WHEN status = 'completed' THEN 1 END) AS completed,
                  count(CASE WHEN due_date IS NOT NULL AND due_date < ?
                             AND status != 'completed' THEN 1 END) AS overdue
           FROM tasks""",
        (to_db_timestamp(now),),
    )
    row = await cursor.fetchone()
    return {
        "total": row["total"] or 0,
        "open": row["open"] or 0,
        "in_progress": row["in_progress"] or 0,
        "completed": row["completed"] or 0,
        "overdue": row["overdue"] or 0,
    }
