"""Task engine exceptions.

A claim conflict is not an exception: ``claim_task`` returns ``None`` when
another agent holds the task.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for task engine errors."""


class TaskNotFoundError(TaskError, LookupError):
    """Raised when a referenced task id does not exist."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class TaskValidationError(TaskError, ValueError):
    """Raised for bad input, before any store interaction."""


class InvalidLeaseError(TaskValidationError):
    """Raised when a lease duration is outside the allowed range."""

    def __init__(self, lease_seconds: int, minimum: int, maximum: int):
        self.lease_seconds = lease_seconds
        super().__init__(
            f"Invalid lease duration {lease_seconds}s (must be between {minimum} and {maximum})"
        )
