"""In-memory implementation of LogStore."""

import copy
from typing import Any

from bson import ObjectId

from tasktrail.audit.store import LogStore
from tasktrail.models import Log
from tasktrail.utils.time import utc_now


class InMemoryLogStore(LogStore):
    """In-memory LogStore for testing and development.

    Uses a list in insertion order with linear scans for queries.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        self._logs: list[Log] = []

    async def create(self, document: dict[str, Any]) -> Log:
        log = Log(
            id=str(ObjectId()),
            entity_type=document["entity_type"],
            entity_id=str(document["entity_id"]),
            action=document["action"],
            data=copy.deepcopy(document.get("data") or {}),
            created_at=utc_now(),
        )
        self._logs.append(log)
        return log.model_copy(deep=True)

    async def find_by_id(self, log_id: str) -> Log | None:
        for log in self._logs:
            if log.id == log_id:
                return log.model_copy(deep=True)
        return None

    def _newest_first(self, logs: list[Log], limit: int) -> list[Log]:
        # Insertion order breaks created_at ties
        ordered = sorted(
            enumerate(logs), key=lambda item: (item[1].created_at, item[0]), reverse=True
        )
        return [log.model_copy(deep=True) for _, log in ordered[:limit]]

    async def find_recent(self, limit: int = 30) -> list[Log]:
        return self._newest_first(self._logs, limit)

    def _matching(self, entity_type: str, entity_id: str | None) -> list[Log]:
        return [
            log for log in self._logs
            if log.entity_type == entity_type
            and (entity_id is None or log.entity_id == entity_id)
        ]

    async def find_by_entity(
        self, entity_type: str, entity_id: str | None = None, limit: int = 30
    ) -> list[Log]:
        return self._newest_first(self._matching(entity_type, entity_id), limit)

    async def count_by_entity(self, entity_type: str, entity_id: str | None = None) -> int:
        return len(self._matching(entity_type, entity_id))
