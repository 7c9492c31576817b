"""Audit log model - immutable record of a task mutation."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from tasktrail.models.enums import LogAction


class Log(BaseModel):
    """
    Audit record stored in the log store.

    ``entity_id`` is always a string, independent of the id type used by the
    store that owns the entity. ``action`` is usually a LogAction value but the
    generic fallback path may store other strings.
    """

    id: str
    entity_type: str
    entity_id: str
    action: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @property
    def action_label(self) -> str:
        try:
            return LogAction(self.action).label
        except ValueError:
            return "Unknown"
