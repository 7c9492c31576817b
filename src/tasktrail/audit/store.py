"""Log store interface."""

from abc import ABC, abstractmethod
from typing import Any

from tasktrail.models import Log


class LogStore(ABC):
    """
    Append-only document store for audit records.

    Implementations assign ``id`` and ``created_at`` on create. There is no
    update or delete: records are never mutated by the application.
    """

    @abstractmethod
    async def create(self, document: dict[str, Any]) -> Log:
        """Persist a new audit record built from entity_type/entity_id/action/data."""

    @abstractmethod
    async def find_by_id(self, log_id: str) -> Log | None:
        """Get a record by id. Malformed ids are treated as absent."""

    @abstractmethod
    async def find_recent(self, limit: int = 30) -> list[Log]:
        """Most recent records first."""

    @abstractmethod
    async def find_by_entity(
        self, entity_type: str, entity_id: str | None = None, limit: int = 30
    ) -> list[Log]:
        """Most recent records for an entity type, optionally one entity."""

    @abstractmethod
    async def count_by_entity(self, entity_type: str, entity_id: str | None = None) -> int:
        """Count records for an entity type, optionally one entity."""

    async def ensure_indexes(self) -> None:
        """Create backend indexes. No-op unless the backend has any."""

    async def close(self) -> None:
        """Release backend resources."""
