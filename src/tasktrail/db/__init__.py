"""TaskTrail database layer."""

from tasktrail.db.base import Base, get_session, init_db
from tasktrail.db.repositories import TaskRepository
from tasktrail.db.tables import TaskTable

__all__ = [
    "Base",
    "get_session",
    "init_db",
    "TaskRepository",
    "TaskTable",
]
