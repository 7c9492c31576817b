"""Audit trail: log stores and the audit logger."""

from tasktrail.audit.logger import AuditLogger
from tasktrail.audit.memory import InMemoryLogStore
from tasktrail.audit.mongo import MongoLogStore
from tasktrail.audit.store import LogStore
from tasktrail.config import LogStoreBackend, Settings


def create_log_store(config: Settings) -> LogStore:
    """Build the configured log store backend."""
    if config.log_store_backend == LogStoreBackend.MEMORY:
        return InMemoryLogStore()
    return MongoLogStore.from_url(config.mongo_url, config.mongo_database, config.log_collection)


__all__ = [
    "AuditLogger",
    "InMemoryLogStore",
    "LogStore",
    "MongoLogStore",
    "create_log_store",
]
