"""API request/response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from tasktrail.config import settings
from tasktrail.models import Log, Task
from tasktrail.utils.time import utc_now


# ============================================================================
# Shared schemas
# ============================================================================


class Meta(BaseModel):
    """Envelope metadata attached to data responses."""

    version: str = Field(default_factory=lambda: settings.api_version)
    timestamp: datetime = Field(default_factory=utc_now)


class ErrorResponse(BaseModel):
    """Error body returned for every handled failure."""

    error: str
    message: str
    code: str
    details: Optional[dict[str, Any]] = None
    retry_after: Optional[int] = None


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


# ============================================================================
# Task schemas
# ============================================================================


class TaskResponse(BaseModel):
    """Task as exposed by the API."""

    id: int
    title: str
    description: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status.value,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class Pagination(BaseModel):
    """Page position for paginated task listings."""

    page: int
    per_page: int
    total: int
    last_page: int


class TaskEnvelope(BaseModel):
    data: TaskResponse
    meta: Meta = Field(default_factory=Meta)


class TaskMutationResponse(BaseModel):
    message: str
    data: TaskResponse
    meta: Meta = Field(default_factory=Meta)


class TaskListResponse(BaseModel):
    data: list[TaskResponse]
    meta: Meta = Field(default_factory=Meta)
    pagination: Optional[Pagination] = None


class TaskStatistics(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int


class TaskStatisticsResponse(BaseModel):
    data: TaskStatistics
    meta: Meta = Field(default_factory=Meta)


# ============================================================================
# Log schemas
# ============================================================================


class LogResponse(BaseModel):
    """Audit record as exposed by the API."""

    id: str
    entity_type: str
    entity_id: str
    action: str
    action_label: str
    data: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_log(cls, log: Log) -> "LogResponse":
        return cls(
            id=log.id,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            action=log.action,
            action_label=log.action_label,
            data=log.data,
            created_at=log.created_at,
        )


class LogEnvelope(BaseModel):
    data: LogResponse
    meta: Meta = Field(default_factory=Meta)


class LogListResponse(BaseModel):
    data: list[LogResponse]
    meta: Meta = Field(default_factory=Meta)


# ============================================================================
# Service schemas
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    message: str
    timestamp: datetime
    version: str
