# flowdesk/models/activity.py
from __future__ import annotations
from datetime import datetime
from pydantic import Field

from flowdesk.models.base import Entity, utcnow


class Activity(Entity):
    """Append-only feed entry: who did what to which item."""
    user_id: str
    action: str
    item_name: str = ""
    item_type: str = ""
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def summary(self) -> str:
        return f"{self.action} {self.item_name}".strip()
