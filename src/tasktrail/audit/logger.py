"""
Audit logger - builds and persists audit records for task mutations.

Writes are synchronous from the caller's point of view. A failed write is
logged and re-raised: the audit trail is a compliance feature, so the caller
must see the failure rather than have it swallowed here.
"""

import logging
from typing import Any

from tasktrail.audit.store import LogStore
from tasktrail.models import EntityType, Log, LogAction, Task
from tasktrail.observability.metrics import AUDIT_FAILED, AUDIT_WRITTEN, metrics

logger = logging.getLogger("tasktrail.audit")


class AuditLogger:
    """Records created/updated/deleted events and serves audit reads."""

    def __init__(self, store: LogStore, default_limit: int = 30):
        self.store = store
        self.default_limit = default_limit

    # =========================================================================
    # Writes
    # =========================================================================

    async def record(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        payload: dict[str, Any],
    ) -> Log:
        """
        Persist one audit record, shaping ``data`` by action.

        - created / deleted: ``payload`` is the full entity snapshot
        - updated: ``payload`` carries ``old`` and ``new``; missing halves
          are stored as empty objects
        - anything else: stored verbatim under the given action
        """
        if action == LogAction.UPDATED:
            data = {
                "old": payload.get("old") or {},
                "new": payload.get("new") or {},
            }
        else:
            data = payload

        action_value = action.value if isinstance(action, LogAction) else action
        document = {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "action": action_value,
            "data": data,
        }

        try:
            log = await self.store.create(document)
        except Exception:
            metrics.inc_counter(AUDIT_FAILED)
            logger.error(
                f"Failed to write audit record: action={action_value} "
                f"entity={entity_type}:{entity_id}",
                exc_info=True,
            )
            raise

        metrics.inc_counter(AUDIT_WRITTEN)
        logger.info(
            f"Audit record written: action={action_value} "
            f"entity={entity_type}:{entity_id} log_id={log.id}"
        )
        return log

    async def log_task_created(self, task: Task) -> Log:
        return await self.record(
            LogAction.CREATED, EntityType.TASK.value, str(task.id), task.snapshot()
        )

    async def log_task_updated(
        self, task: Task, old_data: dict[str, Any], new_data: dict[str, Any]
    ) -> Log:
        return await self.record(
            LogAction.UPDATED,
            EntityType.TASK.value,
            str(task.id),
            {"old": old_data, "new": new_data},
        )

    async def log_task_deleted(self, task: Task) -> Log:
        return await self.record(
            LogAction.DELETED, EntityType.TASK.value, str(task.id), task.snapshot()
        )

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_recent_logs(self, limit: int | None = None) -> list[Log]:
        return await self.store.find_recent(limit or self.default_limit)

    async def list_logs_by_entity(
        self,
        entity_type: str,
        entity_id: str | None = None,
        limit: int | None = None,
    ) -> list[Log]:
        return await self.store.find_by_entity(
            entity_type, entity_id, limit or self.default_limit
        )

    async def get_log_by_id(self, log_id: str) -> Log | None:
        return await self.store.find_by_id(log_id)

    async def count_logs_by_entity(self, entity_type: str, entity_id: str | None = None) -> int:
        return await self.store.count_by_entity(entity_type, entity_id)
