#!/usr/bin/env python3
"""Seed the task store with demo tasks (each creation is audited)."""

import asyncio
import logging

from tasktrail.audit import AuditLogger, create_log_store
from tasktrail.config import settings
from tasktrail.db.base import close_db, get_session, init_db
from tasktrail.db.repositories import TaskRepository
from tasktrail.engine import TaskService
from tasktrail.models import TaskStatus

logger = logging.getLogger("tasktrail.seed")

DEMO_TASKS = [
    {
        "title": "Implement API authentication",
        "description": "Protect write endpoints with an X-API-KEY shared secret",
        "status": TaskStatus.COMPLETED,
    },
    {
        "title": "Configure databases",
        "description": "Set up the relational task store and the document log store",
        "status": TaskStatus.IN_PROGRESS,
    },
    {
        "title": "Implement RESTful endpoints",
        "description": "Create all CRUD endpoints for tasks",
        "status": TaskStatus.PENDING,
    },
    {
        "title": "Set up audit logging",
        "description": "Record every task mutation in the log store",
        "status": TaskStatus.PENDING,
    },
    {
        "title": "Write API documentation",
        "description": "Document every endpoint in the OpenAPI schema",
        "status": TaskStatus.PENDING,
    },
    {
        "title": "Write unit tests",
        "description": "Cover every endpoint and the audit workflow",
        "status": TaskStatus.PENDING,
    },
    {
        "title": "Configure Docker Compose",
        "description": "Containerized development environment",
        "status": TaskStatus.IN_PROGRESS,
    },
    {
        "title": "Add Redis rate limiting",
        "description": "Share rate-limit counters across instances",
        "status": TaskStatus.PENDING,
    },
]


async def seed() -> int:
    await init_db()
    log_store = create_log_store(settings)
    await log_store.ensure_indexes()

    try:
        async with get_session() as session:
            service = TaskService(TaskRepository(session), AuditLogger(log_store))
            for data in DEMO_TASKS:
                task = await service.create_task(data)
                logger.info(f"Seeded task {task.id}: {task.title}")
    finally:
        await log_store.close()
        await close_db()

    return len(DEMO_TASKS)


def main() -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    count = asyncio.run(seed())
    print(f"Seeded {count} tasks.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
