"""
AuditLogger tests: record shaping per action, failure propagation and reads.
"""

from datetime import datetime, timezone

import pytest

from tasktrail.audit import AuditLogger, InMemoryLogStore
from tasktrail.models import LogAction, Task, TaskStatus
from tasktrail.observability.metrics import AUDIT_FAILED, AUDIT_WRITTEN, metrics


class FailingLogStore(InMemoryLogStore):
    async def create(self, document):
        raise ConnectionError("log store unavailable")


def _task(task_id: int = 1, **overrides) -> Task:
    now = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)
    fields = {
        "id": task_id,
        "title": "Audited task",
        "description": None,
        "status": TaskStatus.PENDING,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return Task(**fields)


@pytest.mark.asyncio
async def test_log_task_created_stores_snapshot(audit: AuditLogger):
    task = _task(7)

    log = await audit.log_task_created(task)

    assert log.entity_type == "task"
    assert log.entity_id == "7", "Entity ids are stored as strings"
    assert log.action == "created"
    assert log.action_label == "Created"
    assert log.data == {
        "id": 7,
        "title": "Audited task",
        "description": None,
        "status": "pending",
        "created_at": "2026-01-15T09:30:00Z",
        "updated_at": "2026-01-15T09:30:00Z",
    }
    assert log.created_at.tzinfo is not None
    assert metrics.counter(AUDIT_WRITTEN) == 1


@pytest.mark.asyncio
async def test_log_task_updated_stores_old_and_new(audit: AuditLogger):
    task = _task(3, status=TaskStatus.COMPLETED)
    old = _task(3).snapshot()

    log = await audit.log_task_updated(task, old, {"status": "completed"})

    assert log.action == "updated"
    assert log.data == {"old": old, "new": {"status": "completed"}}


@pytest.mark.asyncio
async def test_updated_record_fills_missing_halves(audit: AuditLogger):
    log = await audit.record(LogAction.UPDATED, "task", "5", {})

    assert log.data == {"old": {}, "new": {}}


@pytest.mark.asyncio
async def test_log_task_deleted_stores_snapshot(audit: AuditLogger):
    task = _task(11, title="Gone")

    log = await audit.log_task_deleted(task)

    assert log.action == "deleted"
    assert log.action_label == "Deleted"
    assert log.data["title"] == "Gone"


@pytest.mark.asyncio
async def test_unknown_action_is_stored_verbatim(audit: AuditLogger):
    """Actions outside created/updated/deleted fall back to a generic record."""
    log = await audit.record("archived", "task", "9", {"reason": "stale"})

    assert log.action == "archived"
    assert log.action_label == "Unknown"
    assert log.data == {"reason": "stale"}


@pytest.mark.asyncio
async def test_write_failure_is_reraised_and_counted():
    audit = AuditLogger(FailingLogStore())

    with pytest.raises(ConnectionError):
        await audit.log_task_created(_task())

    assert metrics.counter(AUDIT_FAILED) == 1
    assert metrics.counter(AUDIT_WRITTEN) == 0


@pytest.mark.asyncio
async def test_list_recent_logs_uses_default_limit(log_store):
    audit = AuditLogger(log_store, default_limit=30)
    for i in range(35):
        await audit.log_task_created(_task(i + 1))

    recent = await audit.list_recent_logs()

    assert len(recent) == 30, "Default limit caps the listing"
    assert recent[0].entity_id == "35", "Newest record first"
    assert len(await audit.list_recent_logs(limit=5)) == 5


@pytest.mark.asyncio
async def test_list_logs_by_entity(audit: AuditLogger):
    await audit.log_task_created(_task(1))
    await audit.log_task_created(_task(2))
    await audit.log_task_deleted(_task(1))

    task_one = await audit.list_logs_by_entity("task", "1")
    all_tasks = await audit.list_logs_by_entity("task")

    assert [log.action for log in task_one] == ["deleted", "created"]
    assert len(all_tasks) == 3
    assert await audit.count_logs_by_entity("task", "1") == 2
    assert await audit.count_logs_by_entity("task") == 3
    assert await audit.list_logs_by_entity("project") == []


@pytest.mark.asyncio
async def test_get_log_by_id(audit: AuditLogger):
    created = await audit.log_task_created(_task(4))

    found = await audit.get_log_by_id(created.id)

    assert found == created
    assert await audit.get_log_by_id("000000000000000000000000") is None
