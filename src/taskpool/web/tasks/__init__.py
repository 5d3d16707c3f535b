"""Task claim, lease, recommend and completion engine."""

from .errors import InvalidLeaseError, TaskError, TaskNotFoundError, TaskValidationError

__all__ = ["TaskError", "TaskNotFoundError", "TaskValidationError", "InvalidLeaseError"]
