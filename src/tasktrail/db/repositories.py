"""Database repositories for TaskTrail entities."""

from typing import Any, Mapping

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrail.db.tables import TaskTable
from tasktrail.models import Task, TaskStatus
from tasktrail.utils.time import ensure_utc, utc_now


class TaskRepository:
    """
    Repository for task operations.

    Each write commits on its own: the task store is an independent resource
    and a later failure elsewhere (e.g. in the log store) must not undo it.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _filtered(self, query, filters: Mapping[str, Any] | None):
        status = (filters or {}).get("status")
        if status:
            query = query.where(TaskTable.status == TaskStatus(status))
        return query

    async def find_by_id(self, task_id: int) -> Task | None:
        """Get a task by ID."""
        row = await self.session.get(TaskTable, task_id, populate_existing=True)
        return self._row_to_model(row) if row else None

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[Task]:
        """List tasks, newest first, with optional status filter."""
        query = self._filtered(select(TaskTable), filters)
        query = query.order_by(TaskTable.created_at.desc(), TaskTable.id.desc())

        result = await self.session.execute(query)
        return [self._row_to_model(r) for r in result.scalars().all()]

    async def find_paginated(
        self,
        page: int = 1,
        per_page: int = 15,
        filters: Mapping[str, Any] | None = None,
    ) -> tuple[list[Task], int]:
        """Return one page of tasks (newest first) and the total match count."""
        total = await self.session.scalar(
            self._filtered(select(func.count()).select_from(TaskTable), filters)
        )

        query = self._filtered(select(TaskTable), filters)
        query = (
            query.order_by(TaskTable.created_at.desc(), TaskTable.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await self.session.execute(query)
        return [self._row_to_model(r) for r in result.scalars().all()], int(total or 0)

    async def find_by_status(self, status: TaskStatus) -> list[Task]:
        """List tasks with a given status, newest first."""
        return await self.find_all({"status": status})

    async def create(self, data: Mapping[str, Any]) -> Task:
        """Insert a new task and commit."""
        now = utc_now()
        row = TaskTable(
            title=data["title"],
            description=data.get("description"),
            status=data.get("status") or TaskStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        return self._row_to_model(row)

    async def update(self, task_id: int, data: Mapping[str, Any]) -> Task | None:
        """Apply a partial update and commit. Returns None if the task is absent."""
        if not await self.exists(task_id):
            return None

        if data:
            values = dict(data)
            values["updated_at"] = utc_now()
            await self.session.execute(
                update(TaskTable).where(TaskTable.id == task_id).values(**values)
            )
            await self.session.commit()

        return await self.find_by_id(task_id)

    async def delete(self, task_id: int) -> bool:
        """Hard-delete a task and commit. Returns False if nothing was deleted."""
        result = await self.session.execute(
            delete(TaskTable).where(TaskTable.id == task_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def exists(self, task_id: int) -> bool:
        """Check whether a task exists."""
        found = await self.session.scalar(
            select(TaskTable.id).where(TaskTable.id == task_id)
        )
        return found is not None

    async def count_by_status(self, status: TaskStatus | None = None) -> int:
        """Count tasks, optionally restricted to one status."""
        query = select(func.count()).select_from(TaskTable)
        if status:
            query = query.where(TaskTable.status == status)
        return int(await self.session.scalar(query) or 0)

    def _row_to_model(self, row: TaskTable) -> Task:
        """Convert a table row to the domain model."""
        return Task(
            id=row.id,
            title=row.title,
            description=row.description,
            status=row.status,
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )
