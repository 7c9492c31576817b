"""TaskTrail engine - task workflow, validation and errors."""

from tasktrail.engine.core import TaskService
from tasktrail.engine.errors import (
    LogNotFound,
    RateLimitExceededError,
    ServiceMisconfigured,
    TaskNotFound,
    TaskTrailError,
    UnauthorizedError,
    ValidationError,
)
from tasktrail.engine.validation import validate_status_filter, validate_task_data

__all__ = [
    "LogNotFound",
    "RateLimitExceededError",
    "ServiceMisconfigured",
    "TaskNotFound",
    "TaskService",
    "TaskTrailError",
    "UnauthorizedError",
    "ValidationError",
    "validate_status_filter",
    "validate_task_data",
]
