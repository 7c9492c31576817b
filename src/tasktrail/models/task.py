"""Task model - the tracked unit of work."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from tasktrail.models.enums import TaskStatus


TITLE_MAX_LENGTH = 255


class Task(BaseModel):
    """Task entity as persisted by the task store."""

    # Identity (store-generated, immutable)
    id: int

    title: str = Field(..., max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING

    # Timestamps (maintained by the store layer)
    created_at: datetime
    updated_at: datetime

    def snapshot(self) -> dict[str, Any]:
        """JSON-safe copy of the task, as embedded in audit records."""
        return self.model_dump(mode="json")
