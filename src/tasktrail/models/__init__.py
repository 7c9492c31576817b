"""TaskTrail data models."""

from tasktrail.models.enums import EntityType, LogAction, TaskStatus
from tasktrail.models.log import Log
from tasktrail.models.task import TITLE_MAX_LENGTH, Task

__all__ = [
    "EntityType",
    "Log",
    "LogAction",
    "TITLE_MAX_LENGTH",
    "Task",
    "TaskStatus",
]
