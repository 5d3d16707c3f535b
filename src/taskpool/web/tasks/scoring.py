"""Recommendation scoring.

A task's score is a pure function of the task, the requesting agent's
context and the current time:

    priority weight
  + 60 if the due date has passed, else max(50 - hours until due, 0)
  + 100 if the task is assigned to the requesting user

Ties keep the store's order (Python's sort is stable).
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from ..db.timestamps import parse_timestamp
from .models import AgentContext, TaskPriority

PRIORITY_WEIGHTS: dict[str, int] = {
    TaskPriority.CRITICAL: 100,
    TaskPriority.HIGH: 70,
    TaskPriority.MEDIUM: 40,
    TaskPriority.LOW: 10,
}
OVERDUE_BONUS = 60
URGENCY_WINDOW_HOURS = 50
ASSIGNMENT_BONUS = 100

MIN_RECOMMEND_LIMIT = 1
MAX_RECOMMEND_LIMIT = 100
DEFAULT_RECOMMEND_LIMIT = 10


def clamp_limit(limit: int | None) -> int:
    """Clamp a caller-supplied result count into [1, 100]."""
    if limit is None:
        return DEFAULT_RECOMMEND_LIMIT
    return max(MIN_RECOMMEND_LIMIT, min(MAX_RECOMMEND_LIMIT, int(limit)))


def urgency_bonus(due_date: str | datetime | None, now: datetime) -> float:
    if not due_date:
        return 0.0
    hours_until_due = (parse_timestamp(due_date) - now).total_seconds() / 3600
    if hours_until_due < 0:
        return float(OVERDUE_BONUS)
    return max(URGENCY_WINDOW_HOURS - hours_until_due, 0.0)


def score_task(
    task: Mapping[str, Any],
    context: AgentContext | None,
    now: datetime,
) -> float:
    score = float(PRIORITY_WEIGHTS.get(task.get("priority"), 0))
    score += urgency_bonus(task.get("due_date"), now)

    if context is not None and context.user_id and task.get("assigned_to") == context.user_id:
        score += ASSIGNMENT_BONUS

    return score


def rank_tasks(
    tasks: list[dict[str, Any]],
    context: AgentContext | None,
    now: datetime,
    limit: int | None = DEFAULT_RECOMMEND_LIMIT,
) -> list[dict[str, Any]]:
    """Sort tasks by descending score and keep the top ``limit``."""
    ranked = sorted(tasks, key=lambda t: score_task(t, context, now), reverse=True)
    return ranked[: clamp_limit(limit)]
