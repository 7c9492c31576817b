"""TaskTrail core engine - task workflow with audit logging."""

import logging
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError

from tasktrail.audit.logger import AuditLogger
from tasktrail.db.repositories import TaskRepository
from tasktrail.engine.validation import validate_task_data
from tasktrail.models import Task, TaskStatus
from tasktrail.observability.metrics import (
    TASKS_CREATED,
    TASKS_DELETED,
    TASKS_LIST_DEGRADED,
    TASKS_TOTAL,
    TASKS_UPDATED,
    metrics,
)

logger = logging.getLogger(__name__)


class TaskService:
    """
    Coordinates validation, task persistence and audit logging.

    Every successful mutation produces an audit record, or the operation
    fails visibly. The task write and the audit write go to independent
    stores with no shared transaction:

    - create/update: the task write is committed first; if the audit write
      then fails the error propagates and the task change stays committed.
    - delete: the audit record is written before the row is removed, so a
      crash in between leaves an audit record for a task that still exists
      rather than a deleted task with no audit record.

    ``update_task`` reads then writes without a lock; concurrent updates to
    the same task can lose one another's changes.
    """

    def __init__(self, tasks: TaskRepository, audit: AuditLogger | None = None):
        self.tasks = tasks
        self.audit = audit

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_tasks(self, filters: Mapping[str, Any] | None = None) -> list[Task]:
        """List tasks. Storage failures degrade to an empty list (read path only)."""
        try:
            return await self.tasks.find_all(filters or {})
        except (SQLAlchemyError, OSError) as e:
            # asyncpg raises raw socket errors when the server is unreachable
            metrics.inc_counter(TASKS_LIST_DEGRADED)
            logger.warning(f"Task store unavailable, returning empty task list: {e}")
            return []

    async def list_paginated_tasks(
        self,
        page: int = 1,
        per_page: int = 15,
        filters: Mapping[str, Any] | None = None,
    ) -> tuple[list[Task], int]:
        """One page of tasks plus the total number of matches."""
        return await self.tasks.find_paginated(page, per_page, filters or {})

    async def get_task_by_id(self, task_id: int) -> Task | None:
        return await self.tasks.find_by_id(task_id)

    async def get_task_statistics(self) -> dict[str, int]:
        """
        Task counts overall and per status.

        One count query per figure, not taken atomically: a concurrent
        mutation can make ``total`` disagree with the per-status breakdown.
        """
        stats = {"total": await self.tasks.count_by_status()}
        for status in TaskStatus:
            stats[status.value] = await self.tasks.count_by_status(status)
        metrics.set_gauge(TASKS_TOTAL, stats["total"])
        return stats

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_task(self, data: Mapping[str, Any]) -> Task:
        """Validate and create a task, then record a ``created`` audit entry."""
        validated = validate_task_data(data)

        task = await self.tasks.create(validated)
        metrics.inc_counter(TASKS_CREATED)
        logger.info(f"Task created: id={task.id} status={task.status.value}")

        if self.audit:
            await self.audit.log_task_created(task)

        return task

    async def update_task(self, task_id: int, data: Mapping[str, Any]) -> Task | None:
        """
        Apply a partial update. Returns None when the task does not exist.

        The audit entry carries the full pre-update snapshot as ``old`` and
        the validated patch as ``new``.
        """
        existing = await self.tasks.find_by_id(task_id)
        if not existing:
            return None

        validated = validate_task_data(data, is_update=True)
        old_data = existing.snapshot()

        updated = await self.tasks.update(task_id, validated)
        if not updated:
            # Deleted between the read and the write
            return None

        metrics.inc_counter(TASKS_UPDATED)
        logger.info(f"Task updated: id={task_id} fields={sorted(validated)}")

        if self.audit:
            await self.audit.log_task_updated(updated, old_data, _json_patch(validated))

        return updated

    async def delete_task(self, task_id: int) -> bool:
        """Delete a task, auditing the pre-delete snapshot first."""
        task = await self.tasks.find_by_id(task_id)
        if not task:
            return False

        if self.audit:
            await self.audit.log_task_deleted(task)

        deleted = await self.tasks.delete(task_id)
        if deleted:
            metrics.inc_counter(TASKS_DELETED)
            logger.info(f"Task deleted: id={task_id}")
        return deleted


def _json_patch(validated: Mapping[str, Any]) -> dict[str, Any]:
    """Validated fields in their JSON form (enums as values)."""
    return {
        key: value.value if isinstance(value, TaskStatus) else value
        for key, value in validated.items()
    }
