"""TaskTrail enumerations."""

from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status. Any status may replace any other."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def values(cls) -> list[str]:
        """Return the accepted string values, in declaration order."""
        return [status.value for status in cls]


class LogAction(str, Enum):
    """Audited mutation kinds."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS = {
    LogAction.CREATED: "Created",
    LogAction.UPDATED: "Updated",
    LogAction.DELETED: "Deleted",
}


class EntityType(str, Enum):
    """Subjects an audit record can reference."""

    TASK = "task"
