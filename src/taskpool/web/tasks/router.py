"""Task routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from ..deps import Db
from . import service
from .models import (
    AgentContext,
    ClaimConflict,
    TaskClaim,
    TaskCreate,
    TaskResponse,
    TaskStats,
    TaskUpdate,
)
from .scoring import DEFAULT_RECOMMEND_LIMIT

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    db: Db,
    status: str | None = None,
    priority: str | None = None,
    assigned_to: str | None = None,
    search: str | None = None,
    employee_id: str | None = None,
    overdue: bool = False,
):
    return await service.get_tasks(
        db,
        status=status,
        priority=priority,
        assigned_to=assigned_to,
        search=search,
        employee_id=employee_id,
        overdue=overdue,
    )


@router.get("/stats", response_model=TaskStats)
async def task_stats(db: Db):
    return await service.get_task_stats(db)


@router.get("/recommend", response_model=list[TaskResponse])
async def recommend_tasks(
    db: Db,
    user_id: str | None = None,
    role: str | None = None,
    department: str | None = None,
    scope: Annotated[list[str] | None, Query()] = None,
    limit: int = DEFAULT_RECOMMEND_LIMIT,
):
    context = AgentContext(
        user_id=user_id,
        role=role,
        department=department,
        scope=scope or [],
    )
    return await service.recommend_tasks(db, context, limit)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, db: Db):
    task = await service.get_task(db, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(body: TaskCreate, db: Db):
    return await service.create_task(db, body)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: str, body: TaskUpdate, db: Db):
    return await service.update_task(db, task_id, body.model_dump(exclude_unset=True))


@router.post("/{task_id}/complete", response_model=TaskResponse)
async def complete_task(task_id: str, db: Db):
    return await service.complete_task(db, task_id)


@router.post(
    "/{task_id}/claim",
    response_model=TaskResponse,
    responses={409: {"model": ClaimConflict}},
)
async def claim_task(task_id: str, body: TaskClaim, request: Request, db: Db):
    lease_seconds = body.lease_seconds
    if lease_seconds is None:
        lease_seconds = request.app.state.config.default_lease_seconds
    task = await service.claim_task(db, task_id, body.agent_id, lease_seconds)
    if task is None:
        return JSONResponse(
            status_code=409,
            content=ClaimConflict(task_id=task_id).model_dump(),
        )
    return task
