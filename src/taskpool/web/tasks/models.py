"""Task Pydantic models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class TaskStatus(StrEnum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"


class TaskPriority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskSource(StrEnum):
    MANUAL = "manual"
    AI = "ai"


def _require_text(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field_name} must not be empty")
    return value.strip()


class TaskCreate(BaseModel):
    """Fields accepted when creating a task.

    id, timestamps and the claim fields are assigned by the system.
    """

    model_config = ConfigDict(extra="ignore")

    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.OPEN
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    assigned_to: str | None = None
    created_by: str
    target_employee_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    source: TaskSource = TaskSource.MANUAL

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        return _require_text(v, "title")

    @field_validator("created_by")
    @classmethod
    def _created_by_not_blank(cls, v: str) -> str:
        return _require_text(v, "created_by")


class TaskUpdate(BaseModel):
    """Partial edit. Claim fields are not part of this model and are dropped."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to: str | None = None
    created_by: str | None = None
    target_employee_id: str | None = None
    tags: list[str] | None = None
    source: TaskSource | None = None

    @field_validator("title", "created_by")
    @classmethod
    def _not_blank(cls, v: str | None, info: ValidationInfo) -> str | None:
        if v is None:
            return v
        return _require_text(v, info.field_name)


class TaskResponse(BaseModel):
    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    due_date: str | None
    assigned_to: str | None
    created_by: str
    target_employee_id: str | None
    tags: list[str] = []
    source: TaskSource
    claimed_by_agent_id: str | None
    claim_expires_at: str | None
    created_at: str
    updated_at: str
    is_overdue: bool = False
    is_claimable: bool = False


class TaskClaim(BaseModel):
    agent_id: str
    # None means the server default; the range is checked by the lease manager
    lease_seconds: int | None = None


class ClaimConflict(BaseModel):
    detail: str = "Task is not claimable"
    task_id: str


class AgentContext(BaseModel):
    """Who is asking for work. Every field is optional."""

    user_id: str | None = None
    role: str | None = None
    department: str | None = None
    scope: list[str] = Field(default_factory=list)


class TaskStats(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
