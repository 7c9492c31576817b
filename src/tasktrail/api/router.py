"""REST API router."""

import math
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, Query

from tasktrail.api.deps import (
    get_audit_logger,
    get_json_body,
    get_task_service,
    verify_api_key,
)
from tasktrail.api.schemas import (
    ErrorResponse,
    HealthResponse,
    LogEnvelope,
    LogListResponse,
    LogResponse,
    MessageResponse,
    Pagination,
    TaskEnvelope,
    TaskListResponse,
    TaskMutationResponse,
    TaskResponse,
    TaskStatistics,
    TaskStatisticsResponse,
)
from tasktrail.audit import AuditLogger
from tasktrail.config import settings
from tasktrail.engine import LogNotFound, TaskNotFound, TaskService, validate_status_filter
from tasktrail.middleware.rate_limit import rate_limit_dependency
from tasktrail.models import EntityType
from tasktrail.utils.time import utc_now

router = APIRouter(dependencies=[Depends(rate_limit_dependency)])

WRITE_ERRORS = {
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}
NOT_FOUND = {404: {"model": ErrorResponse}}


# ============================================================================
# Health & Info
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        message="API is running",
        timestamp=utc_now(),
        version=settings.api_version,
    )


@router.get("/info")
async def info() -> dict[str, Any]:
    """Describe the API surface."""
    return {
        "name": settings.app_name,
        "version": settings.api_version,
        "description": "Task management API with an audit trail of task mutations",
        "endpoints": {
            "tasks": {
                "GET /tasks": "List tasks (optional ?status=, ?page=, ?per_page=)",
                "GET /tasks/statistics": "Task counts by status",
                "POST /tasks": "Create a task",
                "GET /tasks/{id}": "Get a task",
                "PUT /tasks/{id}": "Update a task",
                "DELETE /tasks/{id}": "Delete a task",
            },
            "logs": {
                "GET /logs": "List recent audit logs",
                "GET /logs?id={id}": "Get a specific audit log",
                "GET /logs?entity_id={id}": "Audit trail of one task",
            },
        },
        "authentication": {
            "type": "API Key",
            "header": "X-API-KEY",
            "required_for": ["POST", "PUT", "DELETE"],
        },
    }


# ============================================================================
# Tasks
# ============================================================================


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: Optional[str] = Query(None),
    page: Optional[int] = Query(None, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=settings.max_per_page),
    service: TaskService = Depends(get_task_service),
):
    """List tasks, newest first. Paginated when page or per_page is given."""
    status_filter = validate_status_filter(status.strip() if status else None)
    filters = {"status": status_filter} if status_filter else {}

    if page is None and per_page is None:
        tasks = await service.list_tasks(filters)
        return TaskListResponse(data=[TaskResponse.from_task(t) for t in tasks])

    page = page or 1
    per_page = per_page or settings.default_per_page
    tasks, total = await service.list_paginated_tasks(page, per_page, filters)
    return TaskListResponse(
        data=[TaskResponse.from_task(t) for t in tasks],
        pagination=Pagination(
            page=page,
            per_page=per_page,
            total=total,
            last_page=max(1, math.ceil(total / per_page)),
        ),
    )


@router.get("/tasks/statistics", response_model=TaskStatisticsResponse)
async def task_statistics(service: TaskService = Depends(get_task_service)):
    """Task counts overall and per status."""
    stats = await service.get_task_statistics()
    return TaskStatisticsResponse(data=TaskStatistics(**stats))


@router.post(
    "/tasks",
    response_model=TaskMutationResponse,
    status_code=201,
    responses=WRITE_ERRORS,
    dependencies=[Depends(verify_api_key)],
)
async def create_task(
    body: dict[str, Any] = Depends(get_json_body),
    service: TaskService = Depends(get_task_service),
):
    """Create a task. Requires X-API-KEY."""
    task = await service.create_task(body)
    return TaskMutationResponse(
        message="Task created successfully",
        data=TaskResponse.from_task(task),
    )


@router.get("/tasks/{task_id}", response_model=TaskEnvelope, responses=NOT_FOUND)
async def get_task(task_id: int, service: TaskService = Depends(get_task_service)):
    """Get a task by ID."""
    task = await service.get_task_by_id(task_id)
    if not task:
        raise TaskNotFound(task_id)
    return TaskEnvelope(data=TaskResponse.from_task(task))


@router.put(
    "/tasks/{task_id}",
    response_model=TaskMutationResponse,
    responses=WRITE_ERRORS,
    dependencies=[Depends(verify_api_key)],
)
async def update_task(
    task_id: int,
    body: dict[str, Any] = Depends(get_json_body),
    service: TaskService = Depends(get_task_service),
):
    """Partially update a task. Requires X-API-KEY."""
    task = await service.update_task(task_id, body)
    if not task:
        raise TaskNotFound(task_id)
    return TaskMutationResponse(
        message="Task updated successfully",
        data=TaskResponse.from_task(task),
    )


@router.delete(
    "/tasks/{task_id}",
    response_model=MessageResponse,
    responses=WRITE_ERRORS,
    dependencies=[Depends(verify_api_key)],
)
async def delete_task(task_id: int, service: TaskService = Depends(get_task_service)):
    """Delete a task. Requires X-API-KEY."""
    if not await service.delete_task(task_id):
        raise TaskNotFound(task_id)
    return MessageResponse(message="Task deleted successfully")


# ============================================================================
# Logs
# ============================================================================


@router.get(
    "/logs",
    response_model=Union[LogEnvelope, LogListResponse],
    responses=NOT_FOUND,
)
async def list_logs(
    id: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_log_limit),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """
    List recent audit logs, or fetch one with ``?id=``.

    ``entity_type`` (and optionally ``entity_id``) narrows the listing to
    the audit trail of one kind of entity or one entity. An ``entity_id``
    on its own refers to a task.
    """
    log_id = id.strip() if id else None
    if log_id:
        log = await audit.get_log_by_id(log_id)
        if not log:
            raise LogNotFound(log_id)
        return LogEnvelope(data=LogResponse.from_log(log))

    entity_type = entity_type.strip() if entity_type else None
    entity_id = entity_id.strip() if entity_id else None
    if entity_id and not entity_type:
        entity_type = EntityType.TASK.value
    if entity_type:
        logs = await audit.list_logs_by_entity(entity_type, entity_id or None, limit)
    else:
        logs = await audit.list_recent_logs(limit)
    return LogListResponse(data=[LogResponse.from_log(log) for log in logs])
